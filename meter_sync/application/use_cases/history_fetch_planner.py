"""
Application Use Cases - History Fetch Planner

This module walks a provider's granularity tiers backwards from today,
chunk by chunk, until the required first day is covered or the provider's
availability window is exhausted. It is the only component issuing provider
requests, one at a time.
"""

from collections import deque
from datetime import date, datetime
from typing import Deque, List, Optional

from meter_sync.domain.entities.errors import (
    NoDataAvailableError,
    ProviderTransportError,
)
from meter_sync.domain.entities.fetch import ChunkRequest, FetchTier, Granularity
from meter_sync.domain.entities.meter import MeterConfig
from meter_sync.domain.entities.time_series import DataPoint, DateRange, RawSample
from meter_sync.domain.gateways.energy_provider_gateway import IEnergyProviderGateway
from meter_sync.shared import get_logger

logger = get_logger(__name__)


def plan_chunk(
    tier: FetchTier, cursor: date, first_day: Optional[date]
) -> ChunkRequest:
    """
    Compute the request covering the chunk that ends at ``cursor``.

    Args:
        tier: Tier the chunk belongs to
        cursor: Exclusive end of the chunk
        first_day: Earliest day required, None for the provider maximum

    Returns:
        The request, flagged when it reaches ``first_day``
    """
    start = tier.step_back(cursor)
    if first_day is not None and start <= first_day:
        return ChunkRequest(
            date_range=DateRange(first_day, cursor),
            granularity=tier.granularity,
            reaches_first_day=True,
        )
    return ChunkRequest(date_range=DateRange(start, cursor), granularity=tier.granularity)


def clip_points(
    points: List[DataPoint], date_range: DateRange, before: Optional[datetime]
) -> List[DataPoint]:
    """Keep points inside ``date_range`` and strictly before ``before``."""
    return [
        p
        for p in points
        if date_range.contains(p.date.date()) and (before is None or p.date < before)
    ]


class HistoryFetchPlanner:
    """Fetches the energy history of a meter across the provider's tiers."""

    def __init__(self, provider: IEnergyProviderGateway):
        """
        Initialize the planner.

        Args:
            provider: Gateway of the provider serving the meter
        """
        self.provider = provider

    async def fetch_history(
        self,
        meter: MeterConfig,
        first_day: Optional[date],
        today: Optional[date] = None,
    ) -> List[DataPoint]:
        """
        Fetch every available point from ``first_day`` until now.

        Provider errors end the current tier and are never raised.

        Args:
            meter: Meter to read
            first_day: Earliest day required, None for as much as possible
            today: Current local date, for tests

        Returns:
            Hourly and daily points in Wh, oldest first, possibly empty
        """
        today = today or date.today()
        cursor = self.provider.history_end(today)

        if first_day is not None and first_day >= cursor:
            logger.warning(
                "planner.first_day_in_future",
                meter=meter.label,
                first_day=first_day.isoformat(),
            )
            return []

        buffer: Deque[List[DataPoint]] = deque()
        earliest: Optional[datetime] = None
        complete = False

        for tier in self.provider.fetch_tiers:
            if complete:
                break

            for _ in range(tier.max_chunks):
                request = plan_chunk(tier, cursor, first_day)
                samples = await self._fetch_chunk(meter, request)
                if samples is None:
                    break

                points = clip_points(
                    self.provider.normalize(tier, samples), request.date_range, earliest
                )
                if points:
                    buffer.appendleft(points)
                    earliest = points[0].date

                logger.debug(
                    "planner.chunk.fetched",
                    granularity=tier.granularity.value,
                    date_range=str(request.date_range),
                    samples=len(samples),
                    points=len(points),
                )

                cursor = request.date_range.start
                if request.reaches_first_day:
                    complete = True
                    break

        history = [point for chunk in buffer for point in chunk]

        if history:
            logger.info(
                "planner.history_fetched",
                meter=meter.label,
                count=len(history),
                date_from=history[0].date.isoformat(),
                date_to=history[-1].date.isoformat(),
            )
        else:
            logger.warning("planner.history_empty", meter=meter.label)

        return history

    async def _fetch_chunk(
        self, meter: MeterConfig, request: ChunkRequest
    ) -> Optional[List[RawSample]]:
        """Issue one request. Returns None when the tier walk must stop."""

        try:
            if request.granularity == Granularity.FINE:
                return await self.provider.fetch_fine_grained_energy(
                    meter, request.date_range
                )
            return await self.provider.fetch_coarse_grained_energy(
                meter, request.date_range
            )
        except NoDataAvailableError as exc:
            logger.info(
                "planner.history_exhausted",
                granularity=request.granularity.value,
                date_range=str(request.date_range),
                reason=exc.message,
            )
        except ProviderTransportError as exc:
            logger.warning(
                "planner.chunk_failed",
                granularity=request.granularity.value,
                date_range=str(request.date_range),
                error=exc.message,
            )
        return None
