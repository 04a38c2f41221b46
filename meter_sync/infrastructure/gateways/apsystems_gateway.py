"""
Infrastructure Gateway - APsystems Implementation

This module implements the energy provider gateway for APsystems ECUs using
the signed APsystems OpenAPI.
"""

import base64
import calendar
import hashlib
import hmac
import time
import uuid
from datetime import date, datetime, timedelta, tzinfo
from typing import Any, Dict, List, Optional, Sequence

import httpx
import structlog

from meter_sync.domain.entities.errors import NoDataAvailableError, ProviderTransportError
from meter_sync.domain.entities.fetch import ChunkAlignment, FetchTier, Granularity
from meter_sync.domain.entities.meter import MeterConfig
from meter_sync.domain.entities.time_series import DataPoint, DateRange, RawSample
from meter_sync.domain.gateways.energy_provider_gateway import IEnergyProviderGateway
from meter_sync.domain.services.normalizer import kwh_to_wh, normalize_daily

logger = structlog.get_logger(__name__)

DEFAULT_BASE_URL = "https://api.apsystemsema.com:9282/user/api/v2"

SIGNATURE_METHOD = "HmacSHA256"
SUCCESS_CODES = (0, 1000)
ACCESS_LIMIT_CODE = 2005
ACCESS_LIMIT_MIN_CODE = 7000

HOURLY_TIER = FetchTier(Granularity.FINE, max_chunks=7, chunk_days=1)
MONTHLY_TIER = FetchTier(
    Granularity.COARSE, max_chunks=2, alignment=ChunkAlignment.MONTH
)


def months_between(date_range: DateRange) -> List[date]:
    """First day of every month touched by ``date_range``."""
    months: List[date] = []
    current = date_range.start.replace(day=1)
    while current < date_range.end:
        months.append(current)
        current = (current + timedelta(days=32)).replace(day=1)
    return months


class ApsystemsGateway(IEnergyProviderGateway):
    """Implementation of the energy provider gateway for APsystems ECUs."""

    def __init__(
        self,
        app_id: Optional[str] = None,
        app_secret: Optional[str] = None,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 30.0,
        timezone: Optional[tzinfo] = None,
    ):
        """
        Initialize APsystems gateway.

        Args:
            app_id: OpenAPI application identifier
            app_secret: OpenAPI application secret
            base_url: Base URL of the OpenAPI
            timeout: Request timeout in seconds
            timezone: Timezone of the ECU
        """
        self.app_id = app_id
        self.app_secret = app_secret
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.timezone = timezone

    @property
    def fetch_tiers(self) -> Sequence[FetchTier]:
        return (HOURLY_TIER, MONTHLY_TIER)

    def history_end(self, today: date) -> date:
        # Only whole days are imported, today is read once it is over.
        return today

    def normalize(self, tier: FetchTier, samples: List[RawSample]) -> List[DataPoint]:
        return kwh_to_wh(normalize_daily(samples, self.timezone))

    async def fetch_fine_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        samples: List[RawSample] = []
        day = date_range.start
        while day < date_range.end:
            values = await self._call_energy(meter, "hourly", day.isoformat())
            # Hours the ECU did not report are left out.
            for hour, value in enumerate(values[:24]):
                samples.append(
                    RawSample(
                        timestamp=datetime(day.year, day.month, day.day, hour),
                        raw_value=value,
                    )
                )
            day += timedelta(days=1)
        return samples

    async def fetch_coarse_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        samples: List[RawSample] = []
        for month in months_between(date_range):
            values = await self._call_energy(meter, "daily", month.strftime("%Y-%m"))
            _, days_in_month = calendar.monthrange(month.year, month.month)
            for index, value in enumerate(values[:days_in_month]):
                samples.append(
                    RawSample(
                        timestamp=datetime(month.year, month.month, index + 1),
                        raw_value=value,
                    )
                )
        return samples

    def sign(self, path: str, timestamp: str, nonce: str) -> str:
        """
        Compute the request signature.

        The signed string is
        ``timestamp/nonce/appId/<last path segment>/GET/HmacSHA256``.
        """
        segment = path.rstrip("/").split("/")[-1]
        payload = f"{timestamp}/{nonce}/{self.app_id}/{segment}/GET/{SIGNATURE_METHOD}"
        digest = hmac.new(
            (self.app_secret or "").encode("utf-8"),
            payload.encode("utf-8"),
            hashlib.sha256,
        ).digest()
        return base64.b64encode(digest).decode("ascii")

    def _headers(self, path: str) -> Dict[str, str]:
        timestamp = str(int(time.time() * 1000))
        nonce = uuid.uuid4().hex
        return {
            "X-CA-AppId": self.app_id or "",
            "X-CA-Timestamp": timestamp,
            "X-CA-Nonce": nonce,
            "X-CA-Signature-Method": SIGNATURE_METHOD,
            "X-CA-Signature": self.sign(path, timestamp, nonce),
            "Accept": "application/json",
        }

    async def _call_energy(
        self, meter: MeterConfig, energy_level: str, date_range: str
    ) -> List[float]:
        """Call the ECU energy endpoint and return its values in kWh."""
        if not self.app_id or not self.app_secret:
            raise ProviderTransportError("APsystems OpenAPI app id and secret are mandatory")
        if not meter.system_id:
            raise ProviderTransportError(f"No system id configured for ECU {meter.id}")

        path = f"/systems/{meter.system_id}/devices/ecu/energy/{meter.id}"
        params = {"energy_level": energy_level, "date_range": date_range}

        logger.debug(
            "apsystems.request",
            system_id=meter.system_id,
            ecu_id=meter.id,
            **params,
        )

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(
                    f"{self.base_url}{path}", params=params, headers=self._headers(path)
                )
                response.raise_for_status()
                data = response.json()

        except httpx.HTTPStatusError as e:
            logger.error(
                "apsystems.http_error",
                status_code=e.response.status_code,
                response_text=e.response.text,
                path=path,
            )
            raise ProviderTransportError(
                f"APsystems HTTP error {e.response.status_code}: {e.response.text}"
            ) from e

        except httpx.RequestError as e:
            logger.error("apsystems.request_error", error=str(e), path=path)
            raise ProviderTransportError(f"APsystems request failed: {str(e)}") from e

        except ValueError as e:
            logger.error("apsystems.invalid_response", error=str(e), path=path)
            raise ProviderTransportError(
                f"APsystems returned invalid JSON: {str(e)}"
            ) from e

        code = self._parse_code(data)
        if code in SUCCESS_CODES:
            return self._parse_values(data)
        if code == ACCESS_LIMIT_CODE or code >= ACCESS_LIMIT_MIN_CODE:
            raise NoDataAvailableError(
                f"OpenAPI access limit: (code:{code})",
                details={"energy_level": energy_level, "date_range": date_range},
            )
        raise ProviderTransportError(
            f"OpenAPI cannot get result: (code:{code})",
            details={"energy_level": energy_level, "date_range": date_range},
        )

    @staticmethod
    def _parse_code(data: Any) -> int:
        if not isinstance(data, dict) or "code" not in data:
            raise ProviderTransportError("Unexpected APsystems response")
        try:
            return int(data["code"])
        except (TypeError, ValueError) as e:
            raise ProviderTransportError(f"Unexpected APsystems code: {str(e)}") from e

    @staticmethod
    def _parse_values(data: Dict[str, Any]) -> List[float]:
        try:
            return [float(value) for value in (data.get("data") or [])]
        except (TypeError, ValueError) as e:
            raise ProviderTransportError(
                f"Unexpected APsystems values: {str(e)}"
            ) from e
