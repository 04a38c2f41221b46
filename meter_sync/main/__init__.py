"""
Composition root of the sync worker.

Settings are read from the environment, wired into gateways and use cases by
the container, and the worker runs the job at startup and on schedule.
"""

from .config import AppSettings, get_settings
from .container import AppContainer, get_container, init_container

__all__ = [
    "AppSettings",
    "get_settings",
    "AppContainer",
    "init_container",
    "get_container",
]
