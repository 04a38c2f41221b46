from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest
from conftest import PARIS, FakeEnergyProvider, FakeHistoryArchive

from meter_sync.application.use_cases.meter_sync_use_case import MeterSyncUseCase
from meter_sync.domain.entities.errors import ConfigurationError, NoDataAvailableError
from meter_sync.domain.entities.fetch import FetchTier, Granularity
from meter_sync.domain.entities.pricing import CostRule, PriceHistoryEntry
from meter_sync.domain.entities.time_series import (
    DataPoint,
    DateRange,
    RawSample,
    StatisticPoint,
)

FINE, COARSE = Granularity.FINE, Granularity.COARSE
TIERS = (
    FetchTier(FINE, max_chunks=1, chunk_days=2),
    FetchTier(COARSE, max_chunks=1, chunk_days=3),
)
NOW = datetime(2024, 1, 5, 10, 0, tzinfo=PARIS)


class _HourlyProvider(FakeEnergyProvider):
    """Answers 24 hourly samples for every day of the requested range."""

    def _respond(self, granularity: Granularity, date_range: DateRange):
        self.calls.append((granularity, date_range.start, date_range.end))
        samples = []
        day = date_range.start
        while day < date_range.end:
            for hour in range(24):
                samples.append(
                    RawSample(
                        timestamp=datetime(day.year, day.month, day.day, hour),
                        raw_value=self.values[granularity],
                    )
                )
            day += timedelta(days=1)
        return samples


def _local(day: int, month: int = 1, year: int = 2024) -> datetime:
    return datetime(year, month, day, tzinfo=PARIS)


@pytest.fixture()
def provider() -> FakeEnergyProvider:
    return FakeEnergyProvider(TIERS, values={FINE: 1000, COARSE: 2000}, tz=PARIS)


@pytest.fixture()
def build_use_case(provider, statistics_store, price_feed):
    def _build(now: datetime = NOW, **kwargs) -> MeterSyncUseCase:
        options = {
            "providers": {"linky": provider},
            "statistics_store": statistics_store,
            "timezone": PARIS,
            "price_feed": price_feed,
            "clock": lambda: now,
        }
        options.update(kwargs)
        return MeterSyncUseCase(**options)

    return _build


@pytest.mark.asyncio
async def test_init_imports_whole_history(build_use_case, statistics_store, linky_meter) -> None:
    await build_use_case().execute(linky_meter)

    metadata, points = statistics_store.appends[0]
    assert len(statistics_store.appends) == 1
    assert metadata.statistic_id == "linky:12345678901234"
    assert metadata.unit_of_measurement == "Wh"
    assert metadata.source == "linky"
    assert metadata.name == "Linky consumption"
    assert [p.start for p in points] == [
        _local(31, 12, 2023),
        _local(1),
        _local(2),
        _local(3),
        _local(4),
    ]
    assert [p.state for p in points] == [2000, 2000, 2000, 1000, 1000]
    assert [p.sum for p in points] == [2000, 4000, 6000, 7000, 8000]


@pytest.mark.asyncio
async def test_init_builds_cost_series(build_use_case, statistics_store, linky_meter) -> None:
    linky_meter.costs = [CostRule(price=0.1)]

    await build_use_case().execute(linky_meter)

    metadata, points = statistics_store.appends[1]
    assert metadata.statistic_id == "linky:12345678901234_cost"
    assert metadata.unit_of_measurement == "€"
    assert [p.state for p in points] == [0.2, 0.2, 0.2, 0.1, 0.1]
    assert [p.sum for p in points] == [0.2, 0.4, 0.6, 0.7, 0.8]


@pytest.mark.asyncio
async def test_init_prepends_archived_history(
    build_use_case, statistics_store, linky_meter
) -> None:
    archive = FakeHistoryArchive(
        [
            DataPoint(_local(29, 12, 2023), 300),
            DataPoint(_local(30, 12, 2023), 300),
            DataPoint(_local(31, 12, 2023), 300),
        ]
    )

    await build_use_case(history_archive=archive).init(linky_meter)

    _, points = statistics_store.appends[0]
    assert [p.state for p in points] == [300, 300, 2000, 2000, 2000, 1000, 1000]
    assert points[-1].sum == 8600


@pytest.mark.asyncio
async def test_init_without_history_writes_nothing(
    build_use_case, provider, statistics_store, linky_meter
) -> None:
    provider.failures[(FINE, date(2024, 1, 3))] = NoDataAvailableError("no_data")
    provider.failures[(COARSE, date(2024, 1, 2))] = NoDataAvailableError("no_data")

    await build_use_case().execute(linky_meter)

    assert statistics_store.appends == []


@pytest.mark.asyncio
async def test_sync_appends_points_after_last_statistic(
    build_use_case, provider, statistics_store, linky_meter
) -> None:
    statistics_store.seed(
        linky_meter.statistic_id, [StatisticPoint(_local(2), state=100, sum=5000)]
    )

    await build_use_case().execute(linky_meter)

    assert provider.calls == [(FINE, date(2024, 1, 3), date(2024, 1, 5))]
    _, points = statistics_store.appends[0]
    assert [p.start for p in points] == [_local(3), _local(4)]
    assert [p.sum for p in points] == [6000, 7000]


@pytest.mark.asyncio
async def test_sync_continues_existing_cost_series(
    build_use_case, statistics_store, linky_meter
) -> None:
    linky_meter.costs = [CostRule(price=0.1)]
    statistics_store.seed(
        linky_meter.statistic_id, [StatisticPoint(_local(2), state=100, sum=5000)]
    )
    statistics_store.seed(
        linky_meter.cost_statistic_id, [StatisticPoint(_local(2), state=0.01, sum=1.5)]
    )

    await build_use_case().sync(linky_meter)

    metadata, points = statistics_store.appends[1]
    assert metadata.statistic_id == linky_meter.cost_statistic_id
    assert [p.sum for p in points] == [1.6, 1.7]


@pytest.mark.asyncio
async def test_sync_starts_cost_series_when_missing(
    build_use_case, statistics_store, linky_meter
) -> None:
    linky_meter.costs = [CostRule(price=0.1)]
    statistics_store.seed(
        linky_meter.statistic_id, [StatisticPoint(_local(2), state=100, sum=5000)]
    )

    await build_use_case().sync(linky_meter)

    _, points = statistics_store.appends[1]
    assert [p.sum for p in points] == [0.1, 0.2]


@pytest.mark.asyncio
async def test_sync_skips_recent_series(
    build_use_case, provider, statistics_store, linky_meter
) -> None:
    statistics_store.seed(
        linky_meter.statistic_id, [StatisticPoint(_local(4), state=100, sum=5000)]
    )

    await build_use_case().execute(linky_meter)

    assert provider.calls == []
    assert statistics_store.appends == []


@pytest.mark.asyncio
async def test_sync_waits_for_morning(
    build_use_case, provider, statistics_store, linky_meter
) -> None:
    statistics_store.seed(
        linky_meter.statistic_id, [StatisticPoint(_local(1), state=100, sum=5000)]
    )

    await build_use_case(now=NOW.replace(hour=5)).execute(linky_meter)

    assert provider.calls == []


@pytest.mark.asyncio
async def test_sync_without_previous_statistic(
    build_use_case, provider, statistics_store, linky_meter
) -> None:
    statistics_store.seed(linky_meter.statistic_id, [])

    await build_use_case().execute(linky_meter)

    assert provider.calls == []
    assert statistics_store.appends == []


def test_is_sync_needed(build_use_case) -> None:
    use_case = build_use_case()
    old = StatisticPoint(NOW - timedelta(days=3), 0, 0)
    recent = StatisticPoint(NOW - timedelta(days=1), 0, 0)

    assert use_case.is_sync_needed(old, NOW)
    assert not use_case.is_sync_needed(recent, NOW)
    assert not use_case.is_sync_needed(old, NOW.replace(hour=5, minute=59))
    assert use_case.is_sync_needed(old, NOW.replace(hour=6, minute=0))


@pytest.mark.asyncio
async def test_entity_prices_are_fetched_once_per_run(
    build_use_case, statistics_store, price_feed, linky_meter
) -> None:
    linky_meter.costs = [
        CostRule(entity_id="sensor.price", end_date=date(2024, 1, 3)),
        CostRule(entity_id="sensor.price"),
    ]
    price_feed.histories["sensor.price"] = [
        PriceHistoryEntry(_local(1, 12, 2023), 25, "c€/kWh")
    ]

    await build_use_case().execute(linky_meter)

    assert price_feed.calls == [
        ("sensor.price", _local(31, 12, 2023), _local(4) + timedelta(hours=1))
    ]
    _, points = statistics_store.appends[1]
    assert [p.state for p in points] == [0.5, 0.5, 0.5, 0.25, 0.25]


@pytest.mark.asyncio
async def test_price_feed_failure_skips_costs(
    build_use_case, statistics_store, price_feed, linky_meter
) -> None:
    linky_meter.costs = [CostRule(entity_id="sensor.price")]
    price_feed.failing.add("sensor.price")

    await build_use_case().execute(linky_meter)

    assert len(statistics_store.appends) == 1
    assert statistics_store.appends[0][0].statistic_id == linky_meter.statistic_id


@pytest.mark.asyncio
async def test_reset_purges_energy_and_costs(
    build_use_case, statistics_store, linky_meter
) -> None:
    await build_use_case().reset(linky_meter)

    assert statistics_store.purged == [
        "linky:12345678901234",
        "linky:12345678901234_cost",
    ]


@pytest.mark.asyncio
async def test_unknown_provider_is_a_configuration_error(
    build_use_case, apsystems_meter
) -> None:
    with pytest.raises(ConfigurationError):
        await build_use_case().execute(apsystems_meter)


@pytest.mark.asyncio
async def test_sync_after_daily_point_skips_that_day(
    build_use_case, statistics_store, linky_meter
) -> None:
    provider = _HourlyProvider(TIERS, values={FINE: 100, COARSE: 100}, tz=PARIS)
    statistics_store.seed(
        linky_meter.statistic_id, [StatisticPoint(_local(2), state=2400, sum=2400)]
    )

    await build_use_case(providers={"linky": provider}).execute(linky_meter)

    assert provider.calls == [(FINE, date(2024, 1, 3), date(2024, 1, 5))]
    _, points = statistics_store.appends[0]
    assert len(points) == 48
    assert points[0].start == _local(3)
    assert points[0].sum == 2500
    assert points[-1].sum == 2400 + 48 * 100


@pytest.mark.asyncio
async def test_sync_never_saves_the_current_day(
    build_use_case, statistics_store, linky_meter
) -> None:
    provider = _HourlyProvider(
        TIERS, end_offset_days=1, values={FINE: 100, COARSE: 100}, tz=PARIS
    )
    statistics_store.seed(
        linky_meter.statistic_id,
        [StatisticPoint(datetime(2024, 1, 2, 23, tzinfo=PARIS), state=100, sum=5000)],
    )

    await build_use_case(providers={"linky": provider}).execute(linky_meter)

    _, points = statistics_store.appends[0]
    assert all(p.start + timedelta(hours=1) <= NOW for p in points)
    assert points[-1].start == datetime(2024, 1, 4, 23, tzinfo=PARIS)
    assert len(points) == 48


@pytest.mark.asyncio
async def test_init_never_saves_the_current_day(
    build_use_case, statistics_store, linky_meter
) -> None:
    provider = _HourlyProvider(
        TIERS, end_offset_days=1, values={FINE: 100, COARSE: 100}, tz=PARIS
    )

    await build_use_case(providers={"linky": provider}).execute(linky_meter)

    _, points = statistics_store.appends[0]
    assert points[-1].start == datetime(2024, 1, 4, 23, tzinfo=PARIS)
    assert all(p.start < _local(5) for p in points)
