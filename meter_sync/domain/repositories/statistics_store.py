"""
Statistics Store Interface

This module defines the interface for the long-term statistics store
following the repository pattern. It abstracts how cumulative series are
persisted, decoupling the sync pipeline from the store's wire protocol.
"""

from abc import ABC, abstractmethod
from typing import List, Optional

from meter_sync.domain.entities.time_series import StatisticMetadata, StatisticPoint


class IStatisticsStore(ABC):
    """Interface for statistics store implementations."""

    @abstractmethod
    async def find_last_point(self, statistic_id: str) -> Optional[StatisticPoint]:
        """
        Find the most recent persisted point of a series.

        Args:
            statistic_id: Identifier of the series

        Returns:
            The last point if any, None otherwise

        Raises:
            StatisticsStoreError: When the store cannot be queried
        """
        pass

    @abstractmethod
    async def append_points(
        self, metadata: StatisticMetadata, points: List[StatisticPoint]
    ) -> None:
        """
        Append points to a series, creating it when needed.

        Raises:
            StatisticsStoreError: When the store rejects the import
        """
        pass

    @abstractmethod
    async def purge(self, statistic_id: str) -> None:
        """
        Remove every point of a series.

        Raises:
            StatisticsStoreError: When the store rejects the call
        """
        pass

    @abstractmethod
    async def is_new_series(self, statistic_id: str) -> bool:
        """
        Tell whether the store knows nothing about a series.

        Raises:
            StatisticsStoreError: When the store cannot be queried
        """
        pass
