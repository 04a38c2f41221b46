"""
Application Layer Package

This package contains the use cases orchestrating the sync pipeline and the
DTOs validating the user options.
"""

from meter_sync.application import dtos, use_cases

__all__ = ["dtos", "use_cases"]
