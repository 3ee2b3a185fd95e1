from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EnergyBucketState(str, Enum):
    FULL = "E_FULL"
    AVAILABLE = "E_AVAILABLE"
    LOW = "E_LOW"
    EMPTY = "E_EMPTY"


@dataclass(frozen=True, slots=True)
class EnergySnapshot:
    energy: int
    max_energy: int
    last_energy_update_at: datetime

    @property
    def is_full(self) -> bool:
        return self.energy >= self.max_energy


@dataclass(slots=True)
class EnergyConsumeResult:
    energy: int
    max_energy: int
    energy_cost: int
    regenerated: int
    state: EnergyBucketState


@dataclass(slots=True)
class EnergyPurchaseResult:
    energy: int
    max_energy: int
    energy_added: int
    coins_spent: int
    coins: int
    idempotent_replay: bool
