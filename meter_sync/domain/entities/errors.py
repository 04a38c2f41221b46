"""
Domain Errors

This module defines custom error classes for domain-specific exceptions.
"""

from typing import Any, Dict, Optional


class DomainError(Exception):
    """Base class for domain errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ConfigurationError(DomainError):
    """Raised when the user options are invalid. Always fatal."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ProviderError(DomainError):
    """Base class for failures reported by an energy provider gateway."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class NoDataAvailableError(ProviderError):
    """Raised when the provider has no history for the requested range.

    This is the expected end of a history walk, not a failure.
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class ProviderTransportError(ProviderError):
    """Raised on network, authentication or unexpected provider errors."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class StatisticsStoreError(DomainError):
    """Raised when the statistics store cannot be reached or rejects a call."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)


class PriceFeedError(DomainError):
    """Raised when price history for an entity cannot be retrieved."""

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, details)
