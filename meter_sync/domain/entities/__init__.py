"""
Domain Entities Package

This package contains the core domain entities and business logic.
"""

from .errors import (
    ConfigurationError,
    DomainError,
    NoDataAvailableError,
    PriceFeedError,
    ProviderError,
    ProviderTransportError,
    StatisticsStoreError,
)
from .fetch import ChunkAlignment, ChunkRequest, FetchTier, Granularity
from .meter import MeterAction, MeterConfig, ProviderKind
from .pricing import WEEKDAYS, CostRule, PriceHistoryEntry, PriceState
from .time_series import (
    DataPoint,
    DateRange,
    RawSample,
    StatisticMetadata,
    StatisticPoint,
)

__all__ = [
    "RawSample",
    "DataPoint",
    "StatisticPoint",
    "StatisticMetadata",
    "DateRange",
    "CostRule",
    "PriceHistoryEntry",
    "PriceState",
    "WEEKDAYS",
    "MeterConfig",
    "MeterAction",
    "ProviderKind",
    "FetchTier",
    "ChunkAlignment",
    "ChunkRequest",
    "Granularity",
    "DomainError",
    "ConfigurationError",
    "ProviderError",
    "NoDataAvailableError",
    "ProviderTransportError",
    "StatisticsStoreError",
    "PriceFeedError",
]
