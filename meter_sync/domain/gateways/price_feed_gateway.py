"""
Domain Gateway - Price Feed

Interface for reading the history of price sensors used by entity-based
cost rules.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from meter_sync.domain.entities.pricing import PriceHistoryEntry, PriceState


class IPriceFeedGateway(ABC):
    """Interface for price feed gateways."""

    @abstractmethod
    async def fetch_history(
        self, entity_id: str, start: datetime, end: datetime
    ) -> List[PriceHistoryEntry]:
        """
        Fetch the states of a price entity between two instants.

        The state in effect at ``start`` is included when known.

        Returns:
            Entries sorted by ascending timestamp

        Raises:
            PriceFeedError: When the history cannot be retrieved
        """
        pass

    @abstractmethod
    async def fetch_current_state(self, entity_id: str) -> PriceState:
        """
        Fetch the current state of a price entity.

        Raises:
            PriceFeedError: When the entity does not exist or the call fails
        """
        pass
