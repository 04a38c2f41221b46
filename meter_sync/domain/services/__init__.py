"""
Domain Services Package

Pure functions implementing the reconciliation rules: normalization,
cumulative statistics, price units and cost computation.
"""

from .cost_engine import compute_costs, find_matching_rule, required_price_entities
from .normalizer import kwh_to_wh, normalize_daily, normalize_load_curve
from .price_units import convert_price
from .statistics_builder import points_after, shift_sums, to_cumulative

__all__ = [
    "normalize_daily",
    "normalize_load_curve",
    "kwh_to_wh",
    "to_cumulative",
    "shift_sums",
    "points_after",
    "convert_price",
    "compute_costs",
    "find_matching_rule",
    "required_price_entities",
]
