from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from app.economy.achievements.types import AchievementAward
from app.economy.leveling.types import LevelUpResult


@dataclass(slots=True)
class QuestSessionView:
    session_id: UUID
    quest_id: UUID
    user_id: int
    status: str
    current_point_index: int
    total_points: int
    accumulated_score: int
    energy_cost: int
    started_at: datetime
    completed_at: datetime | None = None
    current_point_id: UUID | None = None


@dataclass(slots=True)
class StartQuestResult:
    session: QuestSessionView
    energy: int
    max_energy: int
    idempotent_replay: bool


@dataclass(slots=True)
class CompletionResult:
    session_id: UUID
    experience_gained: int
    coins_gained: int
    level_up_coins: int
    points_gained: int
    distance_m: int
    level_up: LevelUpResult | None = None
    newly_completed_achievements: list[AchievementAward] = field(default_factory=list)
    idempotent_replay: bool = False


@dataclass(slots=True)
class CheckpointSubmitResult:
    session: QuestSessionView
    point_id: UUID
    is_correct: bool
    points_earned: int
    distance_m: float | None
    session_advanced: bool
    idempotent_replay: bool
    completion: CompletionResult | None = None
