from __future__ import annotations

import sys
from datetime import date, datetime, timedelta, timezone, tzinfo
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple
from zoneinfo import ZoneInfo

import pytest

from meter_sync.domain.entities.errors import PriceFeedError
from meter_sync.domain.entities.fetch import FetchTier, Granularity
from meter_sync.domain.entities.meter import MeterConfig, ProviderKind
from meter_sync.domain.entities.pricing import PriceHistoryEntry, PriceState
from meter_sync.domain.entities.time_series import (
    DataPoint,
    DateRange,
    RawSample,
    StatisticMetadata,
    StatisticPoint,
)
from meter_sync.domain.gateways.energy_provider_gateway import IEnergyProviderGateway
from meter_sync.domain.gateways.history_archive_gateway import IHistoryArchiveGateway
from meter_sync.domain.gateways.price_feed_gateway import IPriceFeedGateway
from meter_sync.domain.repositories.statistics_store import IStatisticsStore
from meter_sync.domain.services.normalizer import normalize_daily

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

PARIS = ZoneInfo("Europe/Paris")

Call = Tuple[Granularity, date, date]


class FakeEnergyProvider(IEnergyProviderGateway):
    """Scripted provider returning one sample per day of every requested range."""

    def __init__(
        self,
        tiers: Sequence[FetchTier],
        end_offset_days: int = 0,
        values: Optional[Dict[Granularity, float]] = None,
        tz: tzinfo = timezone.utc,
    ) -> None:
        self.tiers = tuple(tiers)
        self.end_offset_days = end_offset_days
        self.values = values or {Granularity.FINE: 1.0, Granularity.COARSE: 10.0}
        self.tz = tz
        self.calls: List[Call] = []
        self.failures: Dict[Tuple[Granularity, date], Exception] = {}
        self.extra_days = 0

    @property
    def fetch_tiers(self) -> Sequence[FetchTier]:
        return self.tiers

    def history_end(self, today: date) -> date:
        return today + timedelta(days=self.end_offset_days)

    def normalize(self, tier: FetchTier, samples: List[RawSample]) -> List[DataPoint]:
        return normalize_daily(samples, self.tz)

    async def fetch_fine_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        return self._respond(Granularity.FINE, date_range)

    async def fetch_coarse_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        return self._respond(Granularity.COARSE, date_range)

    def _respond(self, granularity: Granularity, date_range: DateRange) -> List[RawSample]:
        self.calls.append((granularity, date_range.start, date_range.end))
        failure = self.failures.get((granularity, date_range.start))
        if failure is not None:
            raise failure

        samples = []
        day = date_range.start
        # extra_days simulates providers answering past the requested range
        while day < date_range.end + timedelta(days=self.extra_days):
            samples.append(
                RawSample(
                    timestamp=datetime(day.year, day.month, day.day),
                    raw_value=self.values[granularity],
                )
            )
            day += timedelta(days=1)
        return samples


class FakeStatisticsStore(IStatisticsStore):
    def __init__(self) -> None:
        self.series: Dict[str, List[StatisticPoint]] = {}
        self.metadata: Dict[str, StatisticMetadata] = {}
        self.purged: List[str] = []
        self.appends: List[Tuple[StatisticMetadata, List[StatisticPoint]]] = []
        self.error: Optional[Exception] = None

    def seed(self, statistic_id: str, points: List[StatisticPoint]) -> None:
        self.series[statistic_id] = list(points)

    async def find_last_point(self, statistic_id: str) -> Optional[StatisticPoint]:
        self._maybe_fail()
        points = self.series.get(statistic_id)
        return points[-1] if points else None

    async def append_points(
        self, metadata: StatisticMetadata, points: List[StatisticPoint]
    ) -> None:
        self._maybe_fail()
        self.appends.append((metadata, list(points)))
        self.metadata[metadata.statistic_id] = metadata
        self.series.setdefault(metadata.statistic_id, []).extend(points)

    async def purge(self, statistic_id: str) -> None:
        self._maybe_fail()
        self.purged.append(statistic_id)
        self.series.pop(statistic_id, None)

    async def is_new_series(self, statistic_id: str) -> bool:
        self._maybe_fail()
        return statistic_id not in self.series

    def _maybe_fail(self) -> None:
        if self.error is not None:
            raise self.error


class FakePriceFeed(IPriceFeedGateway):
    def __init__(self, histories: Optional[Dict[str, List[PriceHistoryEntry]]] = None):
        self.histories = histories or {}
        self.calls: List[Tuple[str, datetime, datetime]] = []
        self.failing: set = set()

    async def fetch_history(
        self, entity_id: str, start: datetime, end: datetime
    ) -> List[PriceHistoryEntry]:
        self.calls.append((entity_id, start, end))
        if entity_id in self.failing:
            raise PriceFeedError(f"Cannot read history of {entity_id}")
        return self.histories.get(entity_id, [])

    async def fetch_current_state(self, entity_id: str) -> PriceState:
        entries = self.histories.get(entity_id)
        if not entries:
            raise PriceFeedError(f"Entity {entity_id} not found")
        return PriceState(value=entries[-1].value, unit=entries[-1].unit)


class FakeHistoryArchive(IHistoryArchiveGateway):
    def __init__(self, points: Optional[List[DataPoint]] = None) -> None:
        self.points = points or []

    async def find_history(self, meter: MeterConfig) -> List[DataPoint]:
        return list(self.points)


@pytest.fixture()
def paris() -> ZoneInfo:
    return PARIS


@pytest.fixture()
def linky_meter() -> MeterConfig:
    return MeterConfig(id="12345678901234", name="Linky consumption", token="token")


@pytest.fixture()
def apsystems_meter() -> MeterConfig:
    return MeterConfig(
        id="216000012345",
        name="APsystems production",
        provider=ProviderKind.APSYSTEMS,
        production=True,
        system_id="AZ12649A3DFF",
    )


@pytest.fixture()
def statistics_store() -> FakeStatisticsStore:
    return FakeStatisticsStore()


@pytest.fixture()
def price_feed() -> FakePriceFeed:
    return FakePriceFeed()
