"""
Application Use Cases - Meter Sync

This module reconciles the statistics of one meter with its provider:
importing the whole available history for a new meter, extending an
existing series incrementally, or purging it on request.
"""

from datetime import date, datetime, timedelta, tzinfo
from typing import Callable, Dict, List, Mapping, Optional

from meter_sync.application.use_cases.history_fetch_planner import HistoryFetchPlanner
from meter_sync.domain.entities.errors import ConfigurationError, PriceFeedError
from meter_sync.domain.entities.meter import MeterConfig
from meter_sync.domain.entities.pricing import PriceHistoryEntry
from meter_sync.domain.entities.time_series import (
    DataPoint,
    StatisticMetadata,
    StatisticPoint,
)
from meter_sync.domain.gateways.energy_provider_gateway import IEnergyProviderGateway
from meter_sync.domain.gateways.history_archive_gateway import IHistoryArchiveGateway
from meter_sync.domain.gateways.price_feed_gateway import IPriceFeedGateway
from meter_sync.domain.repositories.statistics_store import IStatisticsStore
from meter_sync.domain.services.cost_engine import compute_costs, required_price_entities
from meter_sync.domain.services.statistics_builder import (
    points_after,
    shift_sums,
    to_cumulative,
)
from meter_sync.shared import (
    DEFAULT_COST_UNIT,
    ENERGY_UNIT,
    bind_meter_context,
    clear_meter_context,
    get_logger,
)

logger = get_logger(__name__)

COST_DIGITS = 3


class MeterSyncUseCase:
    """
    Runs one of the following for a meter:
      - reset: purge its energy and cost series
      - init: import the whole available history into new series
      - sync: append what was produced since the last persisted point
    """

    def __init__(
        self,
        providers: Mapping[str, IEnergyProviderGateway],
        statistics_store: IStatisticsStore,
        timezone: tzinfo,
        price_feed: Optional[IPriceFeedGateway] = None,
        history_archive: Optional[IHistoryArchiveGateway] = None,
        cost_unit: str = DEFAULT_COST_UNIT,
        sync_min_age: timedelta = timedelta(days=2),
        sync_not_before_hour: int = 6,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize the use case.

        Args:
            providers: Provider gateways keyed by provider name
            statistics_store: Store receiving the statistics
            timezone: Local timezone of the meters
            price_feed: Source of entity price histories
            history_archive: Archive of exports older than the provider API
            cost_unit: Unit of the cost series
            sync_min_age: Minimum age of the last point before a sync fetches
            sync_not_before_hour: Local hour before which syncs are skipped
            clock: Returns the current aware datetime
        """
        self.providers = providers
        self.statistics_store = statistics_store
        self.timezone = timezone
        self.price_feed = price_feed
        self.history_archive = history_archive
        self.cost_unit = cost_unit
        self.sync_min_age = sync_min_age
        self.sync_not_before_hour = sync_not_before_hour
        self.clock = clock or (lambda: datetime.now(self.timezone))

    async def execute(self, meter: MeterConfig) -> None:
        """Initialize or sync ``meter`` depending on what the store holds."""
        bind_meter_context(meter.statistic_id)
        try:
            if await self.statistics_store.is_new_series(meter.statistic_id):
                await self.init(meter)
            else:
                await self.sync(meter)
        finally:
            clear_meter_context()

    async def reset(self, meter: MeterConfig) -> None:
        """Remove the energy and cost series of ``meter``."""
        logger.warning("meter.reset", meter=meter.label)
        await self.statistics_store.purge(meter.statistic_id)
        await self.statistics_store.purge(meter.cost_statistic_id)
        logger.info("meter.reset.done", meter=meter.label)

    async def init(self, meter: MeterConfig) -> None:
        """Import the whole history of a meter the store does not know yet."""
        logger.info("meter.init.started", meter=meter.label)

        energy = await self._planner(meter).fetch_history(
            meter, None, today=self._today()
        )
        energy = self._complete_days(await self._with_archive(meter, energy))

        if not energy:
            logger.warning("meter.init.no_history", meter=meter.label)
            return

        await self.statistics_store.append_points(
            self._energy_metadata(meter), to_cumulative(energy)
        )
        logger.info("meter.init.energy_saved", meter=meter.label, count=len(energy))

        if meter.costs:
            costs = compute_costs(
                energy, meter.costs, await self._price_history(meter, energy)
            )
            if costs:
                await self.statistics_store.append_points(
                    self._cost_metadata(meter),
                    to_cumulative(costs, ndigits=COST_DIGITS),
                )
            else:
                logger.warning("meter.init.no_costs", meter=meter.label)

    async def sync(self, meter: MeterConfig) -> None:
        """Append the points produced since the last persisted one."""
        logger.info("meter.sync.started", meter=meter.label)

        last = await self.statistics_store.find_last_point(meter.statistic_id)
        if last is None:
            logger.warning("meter.sync.no_previous_statistic", meter=meter.label)
            return

        if not self.is_sync_needed(last, self.clock()):
            logger.debug(
                "meter.sync.up_to_date", meter=meter.label, last=last.start.isoformat()
            )
            return

        # Providers publish whole days, the day of the last point is complete.
        first_day = self._local_date(last.start) + timedelta(days=1)
        fetched = await self._planner(meter).fetch_history(
            meter, first_day, today=self._today()
        )
        fetched = [
            p for p in self._complete_days(fetched) if self._local_date(p.date) >= first_day
        ]
        energy = points_after(fetched, last.start)

        if not energy:
            logger.warning("meter.sync.no_new_data", meter=meter.label)
            return

        await self.statistics_store.append_points(
            self._energy_metadata(meter),
            shift_sums(to_cumulative(energy), last.sum),
        )
        logger.info("meter.sync.energy_saved", meter=meter.label, count=len(energy))

        if meter.costs:
            await self._sync_costs(meter, energy)

    def is_sync_needed(self, last: StatisticPoint, now: datetime) -> bool:
        """
        Tell whether a sync should query the provider.

        Providers publish a day once it is over, so a series whose last point
        is recent has nothing new to fetch. Early morning runs are skipped
        because the previous day is usually not published yet.
        """
        local_now = now.astimezone(self.timezone)
        return (
            last.start < now - self.sync_min_age
            and local_now.hour >= self.sync_not_before_hour
        )

    async def _sync_costs(self, meter: MeterConfig, energy: List[DataPoint]) -> None:
        last_cost = await self.statistics_store.find_last_point(meter.cost_statistic_id)

        costs = compute_costs(
            energy, meter.costs, await self._price_history(meter, energy)
        )
        offset = 0.0
        if last_cost is not None:
            costs = points_after(costs, last_cost.start)
            offset = last_cost.sum

        if not costs:
            logger.warning("meter.sync.no_costs", meter=meter.label)
            return

        stats = [
            StatisticPoint(p.start, p.state, round(p.sum, COST_DIGITS))
            for p in shift_sums(to_cumulative(costs, ndigits=COST_DIGITS), offset)
        ]
        await self.statistics_store.append_points(self._cost_metadata(meter), stats)

    async def _with_archive(
        self, meter: MeterConfig, energy: List[DataPoint]
    ) -> List[DataPoint]:
        """Prepend archived points older than the provider history."""
        if self.history_archive is None:
            return energy

        archived = await self.history_archive.find_history(meter)
        if energy:
            archived = [p for p in archived if p.date < energy[0].date]
        if archived:
            logger.info("meter.init.archive_used", meter=meter.label, count=len(archived))
        return archived + energy

    async def _price_history(
        self, meter: MeterConfig, energy: List[DataPoint]
    ) -> Dict[str, List[PriceHistoryEntry]]:
        """Fetch, once per run, the history of every price entity ``meter`` uses."""
        entities = required_price_entities(meter.costs)
        if not entities or not energy:
            return {}

        if self.price_feed is None:
            logger.warning("meter.price_feed.missing", entities=entities)
            return {}

        start = energy[0].date
        end = energy[-1].date + timedelta(hours=1)
        history: Dict[str, List[PriceHistoryEntry]] = {}

        for entity_id in entities:
            try:
                history[entity_id] = await self.price_feed.fetch_history(
                    entity_id, start, end
                )
            except PriceFeedError as exc:
                logger.warning(
                    "meter.price_feed.failed", entity_id=entity_id, error=exc.message
                )

        return history

    def _planner(self, meter: MeterConfig) -> HistoryFetchPlanner:
        provider = self.providers.get(meter.provider.value)
        if provider is None:
            raise ConfigurationError(
                f"No gateway configured for provider '{meter.provider.value}'",
                details={"meter": meter.label},
            )
        return HistoryFetchPlanner(provider)

    def _today(self) -> date:
        return self._local_date(self.clock())

    def _local_date(self, moment: datetime) -> date:
        return moment.astimezone(self.timezone).date()

    def _complete_days(self, points: List[DataPoint]) -> List[DataPoint]:
        """Drop the points of the current local day, which is not over yet."""
        today = self._today()
        kept = [p for p in points if self._local_date(p.date) < today]
        if len(kept) < len(points):
            logger.debug("meter.partial_day_dropped", count=len(points) - len(kept))
        return kept

    def _energy_metadata(self, meter: MeterConfig) -> StatisticMetadata:
        return StatisticMetadata(
            statistic_id=meter.statistic_id,
            name=meter.name,
            source=meter.source,
            unit_of_measurement=ENERGY_UNIT,
        )

    def _cost_metadata(self, meter: MeterConfig) -> StatisticMetadata:
        return StatisticMetadata(
            statistic_id=meter.cost_statistic_id,
            name=f"{meter.name} (costs)",
            source=meter.source,
            unit_of_measurement=self.cost_unit,
        )
