"""
Dependency container injection module - Main Layer

This module implements the dependency injection container
to simplify the management and lifecycle of dependencies
in the application.
"""

from datetime import timedelta
from typing import Optional
from zoneinfo import ZoneInfo

from dependency_injector import containers, providers

from meter_sync.application.dtos.options_dto import ApsystemsCredentialsDTO
from meter_sync.application.use_cases.meter_sync_use_case import MeterSyncUseCase
from meter_sync.application.use_cases.sync_job_use_case import SyncJobUseCase
from meter_sync.infrastructure.gateways.apsystems_gateway import ApsystemsGateway
from meter_sync.infrastructure.gateways.csv_history_gateway import CsvHistoryGateway
from meter_sync.infrastructure.gateways.home_assistant_client import HomeAssistantClient
from meter_sync.infrastructure.gateways.linky_gateway import LinkyGateway
from meter_sync.infrastructure.repositories.options_repository import OptionsRepository
from meter_sync.shared import get_logger

from .config import AppSettings

logger = get_logger(__name__)


class AppContainer(containers.DeclarativeContainer):
    """Composition Root using dependency-injector."""

    # Settings
    config = providers.Configuration()

    timezone = providers.Singleton(ZoneInfo, config.sync.timezone)

    # Infrastructure
    options_repository = providers.Singleton(
        OptionsRepository,
        path=config.sync.options_path,
    )

    home_assistant_client = providers.Singleton(
        HomeAssistantClient,
        ws_url=config.home_assistant.ws_url,
        token=config.home_assistant.token,
        timeout=config.home_assistant.timeout,
    )

    csv_history_gateway = providers.Singleton(
        CsvHistoryGateway,
        directory=config.sync.csv_directory,
        timezone=timezone,
    )

    # Gateways
    linky_gateway = providers.Singleton(
        LinkyGateway,
        base_url=config.providers.linky_url,
        timeout=config.providers.timeout,
        timezone=timezone,
    )

    apsystems_gateway = providers.Singleton(
        ApsystemsGateway,
        app_id=config.apsystems.app_id,
        app_secret=config.apsystems.app_secret,
        base_url=config.providers.apsystems_url,
        timeout=config.providers.timeout,
        timezone=timezone,
    )

    energy_providers = providers.Dict(
        linky=linky_gateway,
        apsystems=apsystems_gateway,
    )

    # Application (use cases)
    meter_sync_use_case = providers.Factory(
        MeterSyncUseCase,
        providers=energy_providers,
        statistics_store=home_assistant_client,
        timezone=timezone,
        price_feed=home_assistant_client,
        history_archive=csv_history_gateway,
        cost_unit=config.sync.cost_unit,
        sync_min_age=providers.Callable(
            lambda hours: timedelta(hours=hours), config.sync.min_age_hours
        ),
        sync_not_before_hour=config.sync.not_before_hour,
    )

    sync_job_use_case = providers.Factory(
        SyncJobUseCase,
        meter_sync=meter_sync_use_case,
    )


def configure_apsystems(
    container: "AppContainer", credentials: Optional[ApsystemsCredentialsDTO]
) -> None:
    """Feed the APsystems credentials of the user options to the container."""
    if credentials is None:
        return
    container.config.from_dict({"apsystems": credentials.model_dump()})
    container.apsystems_gateway.reset()
    logger.debug("container.apsystems.configured", app_id=credentials.app_id)


# -------------------------
# Global Container Instance
# -------------------------
_app_container: AppContainer | None = None


def init_container(settings: AppSettings) -> AppContainer:
    """Initialize global container with application settings."""

    global _app_container

    container = AppContainer()
    container.config.from_pydantic(settings)
    _app_container = container
    return container


def get_container() -> AppContainer:
    """Get the initialized global container."""

    if _app_container is None:
        raise RuntimeError("Container has not been initialized yet")

    return _app_container
