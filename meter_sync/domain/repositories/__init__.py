"""
Repositories Package - Domain Layer

This package contains repository interfaces. Implementations live in the
infrastructure layer.
"""

from .statistics_store import IStatisticsStore

__all__ = ["IStatisticsStore"]
