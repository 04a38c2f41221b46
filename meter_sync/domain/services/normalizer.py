"""Domain service turning raw provider samples into uniform hourly points."""

from __future__ import annotations

import re
from collections import defaultdict
from datetime import datetime, timedelta, timezone, tzinfo
from typing import Dict, List, Optional, Sequence, Union

from meter_sync.domain.entities.time_series import DataPoint, RawSample

DEFAULT_INTERVAL_MINUTES = 1

_DIGITS = re.compile(r"\d+")


def parse_interval_length(value: Union[str, int, None]) -> int:
    """Read an interval length such as ``PT30M`` or ``30`` as minutes.

    Falls back to one minute when the value is absent or unparseable.
    """
    if value is None:
        return DEFAULT_INTERVAL_MINUTES
    if isinstance(value, int):
        return value if value > 0 else DEFAULT_INTERVAL_MINUTES
    match = _DIGITS.search(str(value))
    if not match or int(match.group()) <= 0:
        return DEFAULT_INTERVAL_MINUTES
    return int(match.group())


def localize(moment: datetime, tz: Optional[tzinfo] = None) -> datetime:
    """Attach ``tz`` (UTC by default) to a naive datetime."""
    if moment.tzinfo is not None:
        return moment
    return moment.replace(tzinfo=tz or timezone.utc)


def _shift_back(moment: datetime, minutes: int) -> datetime:
    # Arithmetic on the absolute instant keeps DST offsets right.
    shifted = moment.astimezone(timezone.utc) - timedelta(minutes=minutes)
    return shifted.astimezone(moment.tzinfo)


def _floor_to_hour(moment: datetime) -> datetime:
    return moment.replace(minute=0, second=0, microsecond=0)


def normalize_daily(
    samples: Sequence[RawSample], tz: Optional[tzinfo] = None
) -> List[DataPoint]:
    """Map daily (or already aligned) samples one-to-one to data points."""
    return [
        DataPoint(date=localize(sample.timestamp, tz), value=float(sample.raw_value))
        for sample in samples
    ]


def normalize_load_curve(
    samples: Sequence[RawSample], tz: Optional[tzinfo] = None
) -> List[DataPoint]:
    """Aggregate sub-hourly load-curve samples into hourly points.

    Each sample timestamp marks the end of its interval. It is moved back to
    the interval start, then floored to the containing hour. Samples landing
    in the same hour are averaged.
    """
    buckets: Dict[datetime, List[float]] = defaultdict(list)

    for sample in samples:
        minutes = parse_interval_length(sample.interval_length_minutes)
        start = _shift_back(localize(sample.timestamp, tz), minutes)
        buckets[_floor_to_hour(start)].append(float(sample.raw_value))

    return [
        DataPoint(date=hour, value=round(sum(values) / len(values), 2))
        for hour, values in sorted(buckets.items(), key=lambda item: item[0])
    ]


def kwh_to_wh(points: Sequence[DataPoint]) -> List[DataPoint]:
    """Scale kWh points to Wh."""
    return [DataPoint(date=p.date, value=round(p.value * 1000, 3)) for p in points]
