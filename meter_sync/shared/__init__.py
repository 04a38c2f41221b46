"""
Shared module - Cross-cutting concerns / Shared Layer

This module provides the constants and logging helpers used across every
layer of the application. It must not depend on Infrastructure or
Frameworks.
"""

from .consts import (
    APP_NAME,
    APP_VERSION,
    DEFAULT_COST_UNIT,
    DEFAULT_TIMEZONE,
    ENERGY_UNIT,
    EnumEnvironment,
    EnumLogLevel,
)
from .logging import (
    bind_meter_context,
    clear_meter_context,
    configure_logging,
    get_logger,
    update_logging_from_settings,
)

__all__ = [
    "APP_NAME",
    "APP_VERSION",
    "DEFAULT_COST_UNIT",
    "DEFAULT_TIMEZONE",
    "ENERGY_UNIT",
    "EnumEnvironment",
    "EnumLogLevel",
    "bind_meter_context",
    "clear_meter_context",
    "configure_logging",
    "get_logger",
    "update_logging_from_settings",
]
