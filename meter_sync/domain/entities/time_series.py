"""Domain entities for energy and cost time series."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Union


@dataclass(slots=True)
class RawSample:
    """A single reading as returned by an energy provider.

    ``interval_length_minutes`` (minutes, or a duration such as ``PT30M``) is
    only set for load-curve samples, whose timestamp marks the end of the
    interval they cover.
    """

    timestamp: datetime
    raw_value: Union[str, float]
    interval_length_minutes: Union[str, int, None] = None


@dataclass(slots=True)
class DataPoint:
    """A normalized hourly or daily value (Wh for energy, currency for cost)."""

    date: datetime
    value: float


@dataclass(slots=True)
class StatisticPoint:
    """A cumulative statistic as persisted by the statistics store."""

    start: datetime
    state: float
    sum: float


@dataclass(slots=True, frozen=True)
class StatisticMetadata:
    """Metadata sent along with every batch of imported statistics."""

    statistic_id: str
    name: str
    source: str
    unit_of_measurement: str
    has_mean: bool = False
    has_sum: bool = True


@dataclass(slots=True, frozen=True)
class DateRange:
    """Half-open calendar range ``[start, end)``."""

    start: date
    end: date

    def contains(self, day: date) -> bool:
        return self.start <= day < self.end

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
