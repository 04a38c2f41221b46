"""
Domain Gateway - History Archive

Interface for locally stored history exports that predate what the provider
API can still serve.
"""

from abc import ABC, abstractmethod
from typing import List

from meter_sync.domain.entities.meter import MeterConfig
from meter_sync.domain.entities.time_series import DataPoint


class IHistoryArchiveGateway(ABC):
    """Interface for history archives."""

    @abstractmethod
    async def find_history(self, meter: MeterConfig) -> List[DataPoint]:
        """
        Return the archived hourly history of a meter in Wh.

        Returns:
            Points ordered by ascending date, or an empty list when no
            archive matches the meter
        """
        pass
