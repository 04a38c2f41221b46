"""
Application Use Cases - Sync Job

One scheduled run over every configured meter.
"""

from typing import Sequence

from meter_sync.application.use_cases.meter_sync_use_case import MeterSyncUseCase
from meter_sync.domain.entities.meter import MeterAction, MeterConfig
from meter_sync.shared import get_logger

logger = get_logger(__name__)


class SyncJobUseCase:
    """Applies the resets, then syncs the meters one after the other."""

    def __init__(self, meter_sync: MeterSyncUseCase):
        self.meter_sync = meter_sync

    async def execute(self, meters: Sequence[MeterConfig]) -> int:
        """
        Run the job.

        Store errors are not caught and abort the run.

        Args:
            meters: Configured meters, in configuration order

        Returns:
            Number of meters synced
        """
        for meter in meters:
            if meter.action == MeterAction.RESET:
                await self.meter_sync.reset(meter)

        to_sync = [meter for meter in meters if meter.action == MeterAction.SYNC]
        if not to_sync:
            logger.info("job.nothing_to_sync")
            return 0

        for meter in to_sync:
            await self.meter_sync.execute(meter)

        logger.info("job.completed", meters=len(to_sync))
        return len(to_sync)
