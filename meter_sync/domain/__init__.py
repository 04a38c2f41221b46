"""
Meters, time series and pricing rules, with the pure services turning
provider readings into cumulative statistics and costs. Nothing here performs
I/O.
"""

from meter_sync.domain import entities, gateways, repositories, services

__all__ = ["entities", "gateways", "repositories", "services"]
