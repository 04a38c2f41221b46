"""
Use Cases Package - Application Layer

This package contains the use cases orchestrating the sync pipeline.
"""

from .history_fetch_planner import HistoryFetchPlanner
from .meter_sync_use_case import MeterSyncUseCase
from .sync_job_use_case import SyncJobUseCase

__all__ = ["HistoryFetchPlanner", "MeterSyncUseCase", "SyncJobUseCase"]
