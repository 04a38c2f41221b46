"""
Infrastructure Gateway - Linky Implementation

This module implements the energy provider gateway for Enedis Linky meters,
read through the conso.boris.sh proxy API.
"""

from datetime import date, datetime, tzinfo
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from meter_sync.domain.entities.errors import NoDataAvailableError, ProviderTransportError
from meter_sync.domain.entities.fetch import FetchTier, Granularity
from meter_sync.domain.entities.meter import MeterConfig
from meter_sync.domain.entities.time_series import DataPoint, DateRange, RawSample
from meter_sync.domain.gateways.energy_provider_gateway import IEnergyProviderGateway
from meter_sync.domain.services.normalizer import normalize_daily, normalize_load_curve
from meter_sync.shared.consts import APP_NAME, APP_VERSION

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://conso.boris.sh/api"

LOAD_CURVE_TIER = FetchTier(Granularity.FINE, max_chunks=1, chunk_days=7)
DAILY_TIER = FetchTier(Granularity.COARSE, max_chunks=10, chunk_days=150)


def parse_reading_date(value: str) -> datetime:
    """Parse ``2024-01-01`` or ``2024-01-01 00:30:00`` style dates."""
    if len(value) == 10:
        return datetime.combine(date.fromisoformat(value), datetime.min.time())
    return datetime.fromisoformat(value)


class LinkyGateway(IEnergyProviderGateway):
    """Implementation of the energy provider gateway for Linky meters."""

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        timezone: Optional[tzinfo] = None,
    ):
        """
        Initialize Linky gateway.

        Args:
            base_url: Base URL of the proxy API (e.g., "https://conso.boris.sh/api")
            timeout: Request timeout in seconds
            timezone: Timezone of the dates returned by the API
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.timezone = timezone

    @property
    def fetch_tiers(self) -> Sequence[FetchTier]:
        return (LOAD_CURVE_TIER, DAILY_TIER)

    def history_end(self, today: date) -> date:
        # Enedis publishes a day once it is over.
        return today

    def normalize(self, tier: FetchTier, samples: List[RawSample]) -> List[DataPoint]:
        if tier.granularity == Granularity.FINE:
            return normalize_load_curve(samples, self.timezone)
        return normalize_daily(samples, self.timezone)

    async def fetch_fine_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        endpoint = "production_load_curve" if meter.production else "consumption_load_curve"
        return await self._fetch_readings(meter, endpoint, date_range)

    async def fetch_coarse_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        endpoint = "daily_production" if meter.production else "daily_consumption"
        return await self._fetch_readings(meter, endpoint, date_range)

    async def _fetch_readings(
        self, meter: MeterConfig, endpoint: str, date_range: DateRange
    ) -> List[RawSample]:
        if not meter.token:
            raise ProviderTransportError(
                f"No Linky token configured for PRM {meter.id}"
            )

        url = f"{self.base_url}/{endpoint}"
        params = {
            "prm": meter.id,
            "start": date_range.start.isoformat(),
            "end": date_range.end.isoformat(),
        }
        headers = {
            "Authorization": f"Bearer {meter.token}",
            "User-Agent": f"{APP_NAME}/{APP_VERSION}",
            "Accept": "application/json",
        }

        logger.debug("linky.request", endpoint=endpoint, **params)

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            body = e.response.text
            if status_code == 404 or "no_data" in body:
                raise NoDataAvailableError(
                    f"Linky has no data from {date_range.start} to {date_range.end}",
                    details={"endpoint": endpoint, "status_code": status_code},
                ) from e
            logger.error(
                "linky.http_error",
                status_code=status_code,
                response_text=body,
                endpoint=endpoint,
            )
            raise ProviderTransportError(
                f"Linky HTTP error {status_code}: {body}",
                details={"endpoint": endpoint, "status_code": status_code},
            ) from e

        except httpx.RequestError as e:
            logger.error("linky.request_error", error=str(e), endpoint=endpoint)
            raise ProviderTransportError(f"Linky request failed: {str(e)}") from e

        except ValueError as e:
            logger.error("linky.invalid_response", error=str(e), endpoint=endpoint)
            raise ProviderTransportError(f"Linky returned invalid JSON: {str(e)}") from e

        return self._parse_readings(data, endpoint)

    def _parse_readings(self, data: Any, endpoint: str) -> List[RawSample]:
        """Parse the ``interval_reading`` list of a Linky response."""
        if not isinstance(data, dict):
            raise ProviderTransportError(
                "Unexpected Linky response", details={"endpoint": endpoint}
            )

        error = data.get("error")
        if error:
            if "no_data" in str(error):
                raise NoDataAvailableError(
                    f"Linky has no data: {error}", details={"endpoint": endpoint}
                )
            raise ProviderTransportError(
                f"Linky returned an error: {error}", details={"endpoint": endpoint}
            )

        readings: List[Dict[str, Any]] = data.get("interval_reading") or []
        samples: List[RawSample] = []
        for reading in readings:
            try:
                samples.append(
                    RawSample(
                        timestamp=parse_reading_date(reading["date"]),
                        raw_value=reading["value"],
                        interval_length_minutes=reading.get("interval_length"),
                    )
                )
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("linky.reading_skipped", reading=reading, error=str(e))

        return samples
