"""
Adapters for the provider HTTP APIs, the Home Assistant WebSocket, Enedis CSV
exports and the options file.
"""

from meter_sync.infrastructure import gateways, repositories

__all__ = ["gateways", "repositories"]
