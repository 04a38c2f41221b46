"""Constants shared by every layer."""

from enum import Enum

APP_NAME = "meter-sync"
APP_VERSION = "1.0.0"

# Energy series are stored in Wh, prices are read per kWh.
ENERGY_UNIT = "Wh"
DEFAULT_COST_UNIT = "€"
DEFAULT_TIMEZONE = "Europe/Paris"


class EnumEnvironment(str, Enum):
    """Selects the log renderer: JSON lines in production, console otherwise."""

    DEVELOPMENT = "development"
    TESTING = "testing"
    PRODUCTION = "production"


class EnumLogLevel(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
