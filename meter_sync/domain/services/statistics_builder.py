"""Domain service building cumulative statistic series."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional, Sequence

from meter_sync.domain.entities.time_series import DataPoint, StatisticPoint


def to_cumulative(
    points: Sequence[DataPoint], ndigits: Optional[int] = None
) -> List[StatisticPoint]:
    """Convert a value series into ``(state, sum)`` statistics.

    ``state`` is the point value and ``sum`` the running total, starting at
    the first state. When ``ndigits`` is given the running total is rounded
    at every step so float noise does not accumulate.
    """
    result: List[StatisticPoint] = []
    running = 0.0

    for point in points:
        running += point.value
        if ndigits is not None:
            running = round(running, ndigits)
        result.append(StatisticPoint(start=point.date, state=point.value, sum=running))

    return result


def shift_sums(points: Sequence[StatisticPoint], offset: float) -> List[StatisticPoint]:
    """Return a copy of ``points`` with every sum increased by ``offset``."""
    return [StatisticPoint(start=p.start, state=p.state, sum=p.sum + offset) for p in points]


def points_after(points: Sequence[DataPoint], instant: datetime) -> List[DataPoint]:
    """Keep the points starting strictly after ``instant``."""
    return [p for p in points if p.date > instant]
