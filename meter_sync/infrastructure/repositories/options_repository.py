"""
Options Repository - Infrastructure Layer

Loads the user options file written by the Home Assistant supervisor and
validates it into DTOs.
"""

import json
from pathlib import Path

import structlog
from pydantic import ValidationError

from meter_sync.application.dtos.options_dto import UserOptionsDTO
from meter_sync.domain.entities.errors import ConfigurationError

logger = structlog.get_logger(__name__)


def _format_validation_error(error: ValidationError) -> str:
    messages = []
    for item in error.errors():
        location = ".".join(str(part) for part in item["loc"])
        message = item["msg"].removeprefix("Value error, ")
        messages.append(f"{location}: {message}" if location else message)
    return "; ".join(messages)


class OptionsRepository:
    """Reads the user options from a JSON file."""

    def __init__(self, path: str):
        self.path = Path(path)

    def load(self) -> UserOptionsDTO:
        """
        Load and validate the options.

        Raises:
            ConfigurationError: When the file is missing, unreadable or invalid
        """
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except FileNotFoundError as e:
            raise ConfigurationError(
                f"Options file {self.path} not found", details={"path": str(self.path)}
            ) from e
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Cannot read options file {self.path}: {str(e)}",
                details={"path": str(self.path)},
            ) from e

        options = self.parse(raw)
        logger.debug("options.loaded", path=str(self.path), meters=len(options.meters))
        return options

    @staticmethod
    def parse(raw: object) -> UserOptionsDTO:
        """Validate already decoded options."""
        try:
            return UserOptionsDTO.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(
                _format_validation_error(e), details={"errors": e.error_count()}
            ) from e
