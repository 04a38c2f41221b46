"""
Application Settings - Main Layer

Use Pydantic Settings for configuration management.
This module handles the process settings provided using environment
variables, .env files and default values. The meters themselves are user
options, loaded from the options file by the options repository.
"""

from typing import List, Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from meter_sync.shared import (
    DEFAULT_COST_UNIT,
    DEFAULT_TIMEZONE,
    EnumEnvironment,
    EnumLogLevel,
)
from meter_sync.shared.env import load_secret_file_variables


class HomeAssistantSettings(BaseSettings):
    """Home Assistant connection settings."""

    ws_url: str = Field(
        default="ws://supervisor/core/websocket",
        description="Home Assistant WebSocket URL",
        validation_alias=AliasChoices("HA_WS_URL", "WS_URL"),
    )
    token: Optional[str] = Field(
        default=None,
        description="Access token, provided by the supervisor in add-ons",
        validation_alias=AliasChoices("HA_TOKEN", "SUPERVISOR_TOKEN"),
    )
    timeout: float = Field(default=30.0, description="Exchange timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="HA_", case_sensitive=False, extra="ignore"
    )


class ProviderSettings(BaseSettings):
    """Energy provider API settings."""

    linky_url: str = Field(
        default="https://conso.boris.sh/api", description="Linky proxy API URL"
    )
    apsystems_url: str = Field(
        default="https://api.apsystemsema.com:9282/user/api/v2",
        description="APsystems OpenAPI URL",
    )
    timeout: float = Field(default=30.0, description="Request timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="PROVIDER_", case_sensitive=False, extra="ignore"
    )


class SyncSettings(BaseSettings):
    """Sync job settings."""

    options_path: str = Field(
        default="/data/options.json", description="User options file"
    )
    csv_directory: str = Field(
        default="/config", description="Directory searched for Enedis CSV exports"
    )
    timezone: str = Field(
        default=DEFAULT_TIMEZONE,
        description="Timezone of the meters",
    )
    cost_unit: str = Field(default=DEFAULT_COST_UNIT, description="Unit of cost series")
    schedule_hours: List[int] = Field(
        default_factory=lambda: [6, 9], description="Hours of the daily runs"
    )
    min_age_hours: int = Field(
        default=48, description="Age of the last point before a sync fetches"
    )
    not_before_hour: int = Field(
        default=6, description="Local hour before which syncs are skipped"
    )

    model_config = SettingsConfigDict(
        env_prefix="SYNC_", case_sensitive=False, extra="ignore"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration settings."""

    level: EnumLogLevel = Field(default=EnumLogLevel.INFO, description="Logging level")
    file_path: Optional[str] = Field(
        default=None, description="Log file path (if None, logs to console)"
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_", case_sensitive=False, extra="ignore"
    )


class AppSettings(BaseSettings):
    """Main application settings, aggregating all sub-settings."""

    environment: EnumEnvironment = Field(
        default=EnumEnvironment.PRODUCTION, description="Application environment"
    )

    home_assistant: HomeAssistantSettings = Field(default_factory=HomeAssistantSettings)
    providers: ProviderSettings = Field(default_factory=ProviderSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )


def get_settings() -> AppSettings:
    """
    Get application settings instance Factory.

    Used to be mocked in tests, allowing different settings based on environment.
    Secrets mounted as `*_FILE` variables are resolved first.
    """
    load_secret_file_variables()
    return AppSettings()
