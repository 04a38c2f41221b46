"""
Application DTOs - User Options

This module contains the DTOs validating the user options file. DTOs are
converted to domain entities once every rule has passed.
"""

import re
from collections import Counter
from datetime import date
from typing import List, Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from meter_sync.domain.entities.meter import MeterAction, MeterConfig, ProviderKind
from meter_sync.domain.entities.pricing import CostRule

Weekday = Literal["mon", "tue", "wed", "thu", "fri", "sat", "sun"]

_TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):[0-5]\d$")


class CostRuleDTO(BaseModel):
    """DTO for one pricing rule."""

    model_config = ConfigDict(extra="forbid")

    price: Optional[float] = Field(default=None, description="Price per kWh")
    entity_id: Optional[str] = Field(
        default=None, description="Sensor whose state history gives the price"
    )
    after: Optional[str] = Field(default=None, description="Start time, HH:MM")
    before: Optional[str] = Field(default=None, description="End time, HH:MM")
    weekday: List[Weekday] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None

    @field_validator("after", "before")
    @classmethod
    def _check_time(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _TIME_PATTERN.match(value):
            raise ValueError(f"'{value}' is not a valid time, expected HH:MM")
        return value

    @model_validator(mode="after")
    def _check_price_source(self) -> "CostRuleDTO":
        if (self.price is None) == (self.entity_id is None):
            raise ValueError("a cost rule needs exactly one of 'price' or 'entity_id'")
        if self.entity_id is not None and (self.after or self.before or self.weekday):
            raise ValueError(
                f"time filters cannot be used with entity price '{self.entity_id}'"
            )
        if self.start_date and self.end_date and self.start_date >= self.end_date:
            raise ValueError("'start_date' must be before 'end_date'")
        return self

    def to_entity(self) -> CostRule:
        return CostRule(
            price=self.price,
            entity_id=self.entity_id,
            after_time=self.after,
            before_time=self.before,
            weekdays=frozenset(self.weekday),
            start_date=self.start_date,
            end_date=self.end_date,
        )


class MeterDTO(BaseModel):
    """DTO for one meter."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "prm", "ecu_id"), min_length=1)
    name: Optional[str] = None
    action: MeterAction = MeterAction.SYNC
    production: bool = False
    provider: ProviderKind = ProviderKind.LINKY
    token: Optional[str] = None
    system_id: Optional[str] = None
    costs: List[CostRuleDTO] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_provider_fields(self) -> "MeterDTO":
        if self.provider == ProviderKind.LINKY and not self.token:
            raise ValueError(f"Linky meter {self.id} needs a 'token'")
        if self.provider == ProviderKind.APSYSTEMS and not self.system_id:
            raise ValueError(f"APsystems ECU {self.id} needs a 'system_id'")
        return self

    def default_name(self) -> str:
        kind = "production" if self.production else "consumption"
        brand = "Linky" if self.provider == ProviderKind.LINKY else "APsystems"
        return f"{brand} {kind}"

    def to_entity(self) -> MeterConfig:
        return MeterConfig(
            id=self.id,
            name=self.name or self.default_name(),
            action=self.action,
            production=self.production,
            provider=self.provider,
            token=self.token,
            system_id=self.system_id,
            costs=[rule.to_entity() for rule in self.costs],
        )


class ApsystemsCredentialsDTO(BaseModel):
    """DTO for the APsystems OpenAPI application credentials."""

    app_id: str = Field(min_length=1)
    app_secret: str = Field(min_length=1)


class UserOptionsDTO(BaseModel):
    """DTO for the whole user options file."""

    model_config = ConfigDict(extra="ignore")

    meters: List[MeterDTO] = Field(default_factory=list)
    apsystems: Optional[ApsystemsCredentialsDTO] = None

    @model_validator(mode="after")
    def _check_meters(self) -> "UserOptionsDTO":
        keys = Counter(
            (meter.provider, meter.system_id, meter.id, meter.production)
            for meter in self.meters
        )
        for (_, _, meter_id, production), count in keys.items():
            if count > 1:
                mode = "production" if production else "consumption"
                raise ValueError(
                    f"PRM {meter_id} is configured multiple times in {mode} mode"
                )

        needs_credentials = any(
            meter.provider == ProviderKind.APSYSTEMS for meter in self.meters
        )
        if needs_credentials and self.apsystems is None:
            raise ValueError("APsystems meters need 'apsystems' app credentials")
        return self

    def to_meters(self) -> List[MeterConfig]:
        return [meter.to_entity() for meter in self.meters]
