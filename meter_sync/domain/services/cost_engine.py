"""Domain service computing cost series from energy series and pricing rules."""

from __future__ import annotations

import math
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Sequence

import structlog

from meter_sync.domain.entities.pricing import WEEKDAYS, CostRule, PriceHistoryEntry
from meter_sync.domain.entities.time_series import DataPoint
from meter_sync.domain.services.price_units import convert_price

logger = structlog.get_logger(__name__)

PriceHistory = Mapping[str, Sequence[PriceHistoryEntry]]


def _minutes(hhmm: str) -> Optional[int]:
    try:
        hours, minutes = hhmm.split(":", 1)
        return int(hours) * 60 + int(minutes)
    except (AttributeError, ValueError):
        return None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def rule_matches(rule: CostRule, moment: datetime) -> bool:
    """Tell whether every filter of ``rule`` accepts ``moment``.

    Filters are evaluated on the wall-clock time carried by ``moment``.
    """
    if rule.price is None and not rule.entity_id:
        return False

    day = moment.date()
    if rule.start_date and day < rule.start_date:
        return False
    if rule.end_date and day >= rule.end_date:
        return False

    if rule.weekdays and WEEKDAYS[moment.weekday()] not in rule.weekdays:
        return False

    minute_of_day = moment.hour * 60 + moment.minute
    if rule.after_time:
        after = _minutes(rule.after_time)
        if after is None or minute_of_day < after:
            return False
    if rule.before_time:
        before = _minutes(rule.before_time)
        if before is None or minute_of_day >= before:
            return False

    return True


def find_matching_rule(
    rules: Sequence[CostRule], moment: datetime
) -> Optional[CostRule]:
    """Return the first rule, in configured order, accepting ``moment``."""
    return next((rule for rule in rules if rule_matches(rule, moment)), None)


def price_at(
    entries: Sequence[PriceHistoryEntry], moment: datetime
) -> Optional[PriceHistoryEntry]:
    """Return the latest entry not after ``moment``. Entries must be sorted."""
    found: Optional[PriceHistoryEntry] = None
    for entry in entries:
        if entry.timestamp > moment:
            break
        found = entry
    return found


def required_price_entities(rules: Sequence[CostRule]) -> List[str]:
    """Entity ids whose price history is needed to evaluate ``rules``."""
    seen: Dict[str, None] = {}
    for rule in rules:
        if rule.is_entity_based:
            seen.setdefault(rule.entity_id, None)
    return list(seen)


def compute_costs(
    energy: Sequence[DataPoint],
    rules: Sequence[CostRule],
    price_history: Optional[PriceHistory] = None,
) -> List[DataPoint]:
    """Compute the cost of every energy point matched by a rule.

    Energy values are Wh and prices currency per kWh, so the cost of a point
    is ``round(price * Wh) / 1000``. Points without a matching rule, or whose
    entity price is unknown at that time, are left out.
    """
    history = price_history or {}
    result: List[DataPoint] = []
    skipped = 0

    for point in energy:
        rule = find_matching_rule(rules, point.date)
        if rule is None:
            continue

        if rule.is_static:
            price = rule.price
        else:
            entry = price_at(history.get(rule.entity_id or "", ()), point.date)
            if entry is None:
                skipped += 1
                continue
            price = convert_price(entry.value, entry.unit)

        result.append(
            DataPoint(date=point.date, value=_round_half_up(price * point.value) / 1000)
        )

    if skipped:
        logger.debug("costs.points_without_price", skipped=skipped)

    if result:
        logger.info(
            "costs.computed",
            count=len(result),
            date_from=result[0].date.isoformat(),
            date_to=result[-1].date.isoformat(),
        )

    return result
