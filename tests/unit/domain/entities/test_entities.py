from __future__ import annotations

from datetime import date

from meter_sync.domain.entities.errors import (
    DomainError,
    NoDataAvailableError,
    ProviderError,
)
from meter_sync.domain.entities.fetch import ChunkAlignment, FetchTier, Granularity
from meter_sync.domain.entities.meter import MeterConfig, ProviderKind
from meter_sync.domain.entities.pricing import CostRule
from meter_sync.domain.entities.time_series import DateRange


def test_linky_statistic_ids() -> None:
    meter = MeterConfig(id="123", name="Linky")
    production = MeterConfig(id="123", name="Linky", production=True)

    assert meter.statistic_id == "linky:123"
    assert meter.cost_statistic_id == "linky:123_cost"
    assert production.statistic_id == "linky:123_production"
    assert meter.source == "linky"


def test_apsystems_statistic_ids() -> None:
    meter = MeterConfig(
        id="216000012345",
        name="Solar",
        provider=ProviderKind.APSYSTEMS,
        system_id="AZ1",
        production=True,
    )

    assert meter.statistic_id == "apsystems:AZ1_216000012345_production"
    assert meter.label == "AZ1/216000012345 (production)"


def test_day_tier_steps_back_by_chunk_width() -> None:
    tier = FetchTier(Granularity.COARSE, max_chunks=10, chunk_days=150)

    assert tier.step_back(date(2023, 12, 25)) == date(2023, 7, 28)


def test_month_tier_steps_back_to_month_start() -> None:
    tier = FetchTier(Granularity.COARSE, max_chunks=2, alignment=ChunkAlignment.MONTH)

    assert tier.step_back(date(2024, 8, 26)) == date(2024, 8, 1)
    assert tier.step_back(date(2024, 8, 1)) == date(2024, 7, 1)
    assert tier.step_back(date(2024, 1, 1)) == date(2023, 12, 1)


def test_date_range_is_half_open() -> None:
    date_range = DateRange(date(2024, 1, 1), date(2024, 1, 3))

    assert date_range.contains(date(2024, 1, 1))
    assert date_range.contains(date(2024, 1, 2))
    assert not date_range.contains(date(2024, 1, 3))
    assert str(date_range) == "2024-01-01..2024-01-03"


def test_cost_rule_kinds() -> None:
    assert CostRule(price=0).is_static
    assert CostRule(entity_id="sensor.price").is_entity_based
    assert not CostRule().is_entity_based


def test_errors_carry_details() -> None:
    error = NoDataAvailableError("nothing", details={"range": "a..b"})

    assert isinstance(error, ProviderError)
    assert isinstance(error, DomainError)
    assert error.message == "nothing"
    assert error.details == {"range": "a..b"}
    assert DomainError("x").details == {}
