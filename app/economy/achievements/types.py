from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True, slots=True)
class AchievementStats:
    quests_completed: int
    total_points: int
    level: int
    distance_traveled_m: int


@dataclass(frozen=True, slots=True)
class AchievementDefinition:
    achievement_id: str
    title: str
    condition_type: str
    condition_target: int
    reward_points: int
    reward_coins: int
    is_secret: bool = False


@dataclass(frozen=True, slots=True)
class ProgressState:
    progress_percent: int
    is_completed: bool


@dataclass(frozen=True, slots=True)
class ProgressUpdate:
    achievement_id: str
    progress_percent: int
    newly_completed: bool
    reward_points: int
    reward_coins: int


@dataclass(frozen=True, slots=True)
class AchievementAward:
    achievement_id: str
    title: str
    reward_points: int
    reward_coins: int


@dataclass(slots=True)
class AchievementProgressView:
    achievement_id: str
    title: str
    category: str
    condition_type: str
    condition_target: int
    reward_points: int
    reward_coins: int
    is_secret: bool
    progress_percent: int
    is_completed: bool
    completed_at: datetime | None
