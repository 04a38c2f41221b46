"""
DTOs Package - Application Layer

Data Transfer Objects validating the data entering the application.
"""

from .options_dto import (
    ApsystemsCredentialsDTO,
    CostRuleDTO,
    MeterDTO,
    UserOptionsDTO,
)

__all__ = ["ApsystemsCredentialsDTO", "CostRuleDTO", "MeterDTO", "UserOptionsDTO"]
