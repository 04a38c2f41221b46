"""Domain entities for cost rules and price feeds."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import FrozenSet, Optional

WEEKDAYS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(slots=True, frozen=True)
class CostRule:
    """A pricing rule. Rules are evaluated in configured order.

    Exactly one of ``price`` (currency per kWh) or ``entity_id`` (a price
    sensor whose history gives the price) is expected. Time-of-day and
    weekday filters only apply to static prices.
    """

    price: Optional[float] = None
    entity_id: Optional[str] = None
    after_time: Optional[str] = None
    before_time: Optional[str] = None
    weekdays: FrozenSet[str] = field(default_factory=frozenset)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @property
    def is_static(self) -> bool:
        return self.price is not None

    @property
    def is_entity_based(self) -> bool:
        return self.price is None and bool(self.entity_id)


@dataclass(slots=True)
class PriceHistoryEntry:
    """A state of a price sensor at a point in time."""

    timestamp: datetime
    value: float
    unit: Optional[str] = None


@dataclass(slots=True)
class PriceState:
    """Current state of a price sensor."""

    value: Optional[float]
    unit: Optional[str] = None
