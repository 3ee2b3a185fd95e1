from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from app.economy.energy.types import EnergyBucketState
from app.economy.leveling.types import LevelProgress


@dataclass(slots=True)
class PlayerSnapshot:
    user_id: int
    energy: int
    max_energy: int
    energy_state: EnergyBucketState
    next_energy_at: datetime | None
    experience: int
    level: int
    level_title: str
    level_progress: LevelProgress
    coins: int
    points: int
    quests_completed: int
    total_distance_m: int
    affordable_difficulties: tuple[str, ...]


@dataclass(slots=True)
class ProvisionResult:
    snapshot: PlayerSnapshot
    created: bool


@dataclass(slots=True)
class LeaderboardEntry:
    rank: int
    user_id: int
    points: int
    level: int
    level_title: str
    quests_completed: int
