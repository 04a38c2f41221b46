"""
Logging Configuration - Shared Layer

Structured logging for the sync job. Stdlib handlers carry the output and
structlog renders it, as a console layout during development and JSON lines
in production.
"""

import logging
import os
import sys
from typing import Any, List, Optional

import structlog
from structlog.types import Processor

from meter_sync.shared.consts import EnumEnvironment

# Libraries that log every request at INFO level.
NOISY_LOGGERS = ("httpx", "httpcore", "apscheduler.executors.default", "aiohttp.access")


def _shared_processors() -> List[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(
    level: Optional[str] = None,
    file_path: Optional[str] = None,
    environment: str = "development",
) -> None:
    """
    Configure stdlib logging and structlog.

    Called once at startup with environment defaults, then again once the
    settings are loaded.

    Args:
        level: Log level name, defaults to ``LOG_LEVEL`` or INFO.
        file_path: Optional log file, defaults to ``LOG_FILE_PATH``.
        environment: Application environment (development, production, ...)
    """
    log_level = level or os.environ.get("LOG_LEVEL") or "INFO"
    log_file = file_path or os.environ.get("LOG_FILE_PATH")
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    renderer: Processor
    if environment.lower() == EnumEnvironment.PRODUCTION:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer()

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=_shared_processors(),
    )
    for handler in handlers:
        handler.setFormatter(formatter)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *_shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    root_logger = logging.getLogger()
    root_logger.handlers = handlers
    root_logger.setLevel(numeric_level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def update_logging_from_settings(settings: Any) -> None:
    """
    Reconfigure logging from the application settings.

    Args:
        settings: The application settings object from Pydantic.
    """
    log_level = getattr(settings.logging.level, "value", settings.logging.level)
    environment = getattr(settings.environment, "value", settings.environment)

    configure_logging(
        level=log_level,
        file_path=settings.logging.file_path,
        environment=environment,
    )
    get_logger(__name__).debug(
        "logging.configured", level=log_level, environment=environment
    )


def bind_meter_context(statistic_id: str) -> None:
    """Attach the meter being processed to every following log line."""
    structlog.contextvars.bind_contextvars(meter=statistic_id)


def clear_meter_context() -> None:
    structlog.contextvars.unbind_contextvars("meter")


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger configured for the project."""
    return structlog.get_logger(name)
