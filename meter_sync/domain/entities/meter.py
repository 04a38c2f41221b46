"""Domain entities describing configured meters."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from meter_sync.domain.entities.pricing import CostRule


class MeterAction(str, Enum):
    """What a run should do with a meter."""

    SYNC = "sync"
    RESET = "reset"


class ProviderKind(str, Enum):
    """Remote API the meter data is read from."""

    LINKY = "linky"
    APSYSTEMS = "apsystems"


@dataclass(slots=True)
class MeterConfig:
    """A meter as configured by the user."""

    id: str
    name: str
    action: MeterAction = MeterAction.SYNC
    production: bool = False
    provider: ProviderKind = ProviderKind.LINKY
    token: Optional[str] = None
    system_id: Optional[str] = None
    costs: List[CostRule] = field(default_factory=list)

    @property
    def source(self) -> str:
        return self.provider.value

    @property
    def statistic_id(self) -> str:
        if self.provider == ProviderKind.APSYSTEMS:
            key = f"{self.system_id}_{self.id}"
        else:
            key = self.id
        if self.production:
            key = f"{key}_production"
        return f"{self.source}:{key}"

    @property
    def cost_statistic_id(self) -> str:
        return f"{self.statistic_id}_cost"

    @property
    def label(self) -> str:
        """Human readable identifier used in log lines."""
        kind = "production" if self.production else "consumption"
        if self.provider == ProviderKind.APSYSTEMS:
            return f"{self.system_id}/{self.id} ({kind})"
        return f"{self.id} ({kind})"
