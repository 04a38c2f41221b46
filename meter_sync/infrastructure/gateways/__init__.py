"""
Gateways Package - Infrastructure Layer

This package contains concrete implementations of the gateway
interfaces defined in the domain layer. These implementations
handle the details of external service communications.
"""

from .apsystems_gateway import ApsystemsGateway
from .csv_history_gateway import CsvHistoryGateway
from .home_assistant_client import HomeAssistantClient
from .linky_gateway import LinkyGateway

__all__ = [
    "ApsystemsGateway",
    "CsvHistoryGateway",
    "HomeAssistantClient",
    "LinkyGateway",
]
