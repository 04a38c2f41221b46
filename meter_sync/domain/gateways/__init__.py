"""
Contracts of the data sources read during a sync: energy providers, price
sensors and archived meter exports.
"""

from .energy_provider_gateway import IEnergyProviderGateway
from .history_archive_gateway import IHistoryArchiveGateway
from .price_feed_gateway import IPriceFeedGateway

__all__ = ["IEnergyProviderGateway", "IPriceFeedGateway", "IHistoryArchiveGateway"]
