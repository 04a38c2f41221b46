"""Value objects used to plan history requests against a provider."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from enum import Enum

from meter_sync.domain.entities.time_series import DateRange


class Granularity(str, Enum):
    FINE = "fine"
    COARSE = "coarse"


class ChunkAlignment(str, Enum):
    """How a tier steps back from its cursor."""

    DAYS = "days"
    MONTH = "month"


@dataclass(slots=True, frozen=True)
class FetchTier:
    """One granularity tier and its provider-side availability window.

    The lookback window of the tier is ``chunk_days * max_chunks`` days for
    day-aligned tiers, or ``max_chunks`` calendar months for month-aligned
    ones.
    """

    granularity: Granularity
    max_chunks: int
    chunk_days: int = 1
    alignment: ChunkAlignment = ChunkAlignment.DAYS

    def step_back(self, cursor: date) -> date:
        """Return the candidate start of the chunk ending at ``cursor``."""
        if self.alignment == ChunkAlignment.MONTH:
            return (cursor - timedelta(days=1)).replace(day=1)
        return cursor - timedelta(days=self.chunk_days)


@dataclass(slots=True, frozen=True)
class ChunkRequest:
    """A single request emitted by the planner."""

    date_range: DateRange
    granularity: Granularity
    reaches_first_day: bool = False
