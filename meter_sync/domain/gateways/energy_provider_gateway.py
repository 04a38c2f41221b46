"""
Domain Gateway - Energy Provider

This module defines the gateway interface for reading meter readings from a
remote energy provider.
"""

from abc import ABC, abstractmethod
from datetime import date
from typing import List, Sequence

from meter_sync.domain.entities.fetch import FetchTier
from meter_sync.domain.entities.meter import MeterConfig
from meter_sync.domain.entities.time_series import DataPoint, DateRange, RawSample


class IEnergyProviderGateway(ABC):
    """Interface for energy provider gateways."""

    @property
    @abstractmethod
    def fetch_tiers(self) -> Sequence[FetchTier]:
        """Granularity tiers supported by the provider, finest first."""
        pass

    @abstractmethod
    def history_end(self, today: date) -> date:
        """Exclusive end date of the history the provider can serve today."""
        pass

    @abstractmethod
    def normalize(self, tier: FetchTier, samples: List[RawSample]) -> List[DataPoint]:
        """
        Turn raw samples of a tier into hourly or daily points in Wh.

        Args:
            tier: Tier the samples were fetched with
            samples: Samples as returned by the fetch methods

        Returns:
            Points ordered by ascending date
        """
        pass

    @abstractmethod
    async def fetch_fine_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        """
        Fetch hourly or sub-hourly readings.

        Args:
            meter: Meter to read
            date_range: Calendar range to cover, end exclusive

        Returns:
            Raw samples as returned by the provider

        Raises:
            NoDataAvailableError: When the provider has no history for the range
            ProviderTransportError: When the request fails
        """
        pass

    @abstractmethod
    async def fetch_coarse_grained_energy(
        self, meter: MeterConfig, date_range: DateRange
    ) -> List[RawSample]:
        """
        Fetch daily readings.

        Args:
            meter: Meter to read
            date_range: Calendar range to cover, end exclusive

        Returns:
            Raw samples as returned by the provider

        Raises:
            NoDataAvailableError: When the provider has no history for the range
            ProviderTransportError: When the request fails
        """
        pass
