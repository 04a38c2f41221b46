#!/usr/bin/env python3
"""
Worker Entry Point - Main Layer

This module serves as the entry point of the sync worker. It runs the sync
job once at startup, then schedules it every day at fixed hours with a
random minute and second, so that installations do not all hit the
provider APIs at the same time.
"""

import asyncio
import random
import sys
from typing import List, Optional, Sequence

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from meter_sync.domain.entities.errors import ConfigurationError, StatisticsStoreError
from meter_sync.domain.entities.meter import MeterAction, MeterConfig
from meter_sync.main.config import AppSettings, get_settings
from meter_sync.main.container import AppContainer, configure_apsystems, init_container
from meter_sync.shared import (
    APP_NAME,
    configure_logging,
    get_logger,
    update_logging_from_settings,
)

logger = get_logger(__name__)

SYNC_JOB_ID = "meter_sync"


def build_trigger(hours: Sequence[int], rng: random.Random) -> CronTrigger:
    """Daily trigger at ``hours``, on a minute and second drawn from ``rng``."""
    minute = rng.randint(0, 58)
    second = rng.randint(0, 58)
    logger.info(
        "worker.schedule",
        times=[f"{hour:02d}:{minute:02d}:{second:02d}" for hour in hours],
    )
    return CronTrigger(
        hour=",".join(str(hour) for hour in hours), minute=minute, second=second
    )


async def run_job(container: AppContainer, meters: Sequence[MeterConfig]) -> int:
    """Run the sync job over one Home Assistant connection."""
    client = container.home_assistant_client()
    async with client:
        return await container.sync_job_use_case().execute(meters)


async def scheduled_sync(container: AppContainer, meters: List[MeterConfig]) -> None:
    """Recurring run. Failures are logged and the next run is kept."""
    try:
        await run_job(container, meters)
    except StatisticsStoreError as e:
        logger.error("worker.scheduled_run_failed", error=e.message, details=e.details)


def create_scheduler(
    container: AppContainer,
    meters: Sequence[MeterConfig],
    hours: Sequence[int],
    rng: Optional[random.Random] = None,
) -> AsyncIOScheduler:
    """Create the scheduler of the recurring syncs. Resets only run at startup."""
    to_sync = [meter for meter in meters if meter.action == MeterAction.SYNC]
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        scheduled_sync,
        build_trigger(hours, rng or random.Random()),
        args=[container, to_sync],
        id=SYNC_JOB_ID,
        max_instances=1,
        coalesce=True,
    )
    return scheduler


async def run(
    settings: AppSettings,
    container: Optional[AppContainer] = None,
    rng: Optional[random.Random] = None,
) -> Optional[AsyncIOScheduler]:
    """
    Load the options, run the job once and start the recurring runs.

    Returns:
        The started scheduler, or None when there is nothing to schedule

    Raises:
        ConfigurationError: When the user options are invalid
        StatisticsStoreError: When Home Assistant cannot be reached
    """
    container = container or init_container(settings)

    options = container.options_repository().load()
    if not options.meters:
        logger.warning("worker.not_configured")
        return None

    configure_apsystems(container, options.apsystems)
    meters = options.to_meters()

    synced = await run_job(container, meters)
    if synced == 0:
        return None

    scheduler = create_scheduler(container, meters, settings.sync.schedule_hours, rng)
    scheduler.start()
    return scheduler


async def serve(settings: AppSettings) -> None:
    scheduler = await run(settings)
    if scheduler is None:
        logger.info("worker.stopped")
        return

    try:
        await asyncio.Event().wait()
    finally:
        scheduler.shutdown(wait=False)


def main() -> None:
    """Main entry point of the sync worker."""

    configure_logging()
    settings = get_settings()
    update_logging_from_settings(settings)

    logger.info("worker.starting", app=APP_NAME)

    try:
        asyncio.run(serve(settings))
    except (ConfigurationError, StatisticsStoreError) as e:
        logger.error("worker.fatal_error", error=e.message, details=e.details)
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("worker.interrupted")


if __name__ == "__main__":
    main()
