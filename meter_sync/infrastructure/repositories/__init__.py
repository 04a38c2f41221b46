"""
Repositories Package - Infrastructure Layer

This package contains the loaders of locally stored configuration.
"""

from .options_repository import OptionsRepository

__all__ = ["OptionsRepository"]
