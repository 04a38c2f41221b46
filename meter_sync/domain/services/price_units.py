"""Normalization of price units to currency per kWh."""

from typing import Optional

_CENTS_PER_MWH = ("cent/mwh", "c€/mwh", "¢/mwh")
_CURRENCY_PER_MWH = ("eur/mwh", "€/mwh")
_CENTS = ("c€", "cent", "¢")


def convert_price(value: float, unit: Optional[str] = None) -> float:
    """Convert a price expressed in ``unit`` to currency per kWh.

    Unknown or missing units are assumed to already be currency per kWh.
    """
    if not unit:
        return value

    normalized = unit.lower()
    # "c€/mwh" contains "€/mwh", so the cents forms must be checked first.
    if any(token in normalized for token in _CENTS_PER_MWH):
        return value / 100000
    if any(token in normalized for token in _CURRENCY_PER_MWH):
        return value / 1000
    if any(token in normalized for token in _CENTS):
        return value / 100
    return value
