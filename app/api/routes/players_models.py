from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class LevelProgressResponse(BaseModel):
    level: int = Field(ge=1)
    title: str
    current: int
    required: int = Field(ge=0)
    percentage: float = Field(ge=0.0, le=100.0)
    is_max_level: bool
    next_level_xp: int = Field(ge=0)


class PlayerSnapshotResponse(BaseModel):
    user_id: int = Field(gt=0)
    energy: int = Field(ge=0)
    max_energy: int = Field(gt=0)
    energy_state: str
    next_energy_at: datetime | None = None
    experience: int = Field(ge=0)
    level: int = Field(ge=1)
    level_title: str
    level_progress: LevelProgressResponse
    coins: int = Field(ge=0)
    points: int = Field(ge=0)
    quests_completed: int = Field(ge=0)
    total_distance_m: int = Field(ge=0)
    affordable_difficulties: list[str]


class ProvisionPlayerResponse(BaseModel):
    player: PlayerSnapshotResponse
    created: bool


class AchievementProgressResponse(BaseModel):
    achievement_id: str
    title: str
    category: str
    condition_type: str
    condition_target: int = Field(gt=0)
    reward_points: int = Field(ge=0)
    reward_coins: int = Field(ge=0)
    is_secret: bool
    progress_percent: int = Field(ge=0, le=100)
    is_completed: bool
    completed_at: datetime | None = None


class AchievementListResponse(BaseModel):
    user_id: int = Field(gt=0)
    completed_total: int = Field(ge=0)
    achievements: list[AchievementProgressResponse]


class PurchaseEnergyRequest(BaseModel):
    amount: int = Field(gt=0, le=1000)
    cost_coins: int = Field(ge=0)
    idempotency_key: str = Field(min_length=1, max_length=90)


class PurchaseEnergyResponse(BaseModel):
    energy: int = Field(ge=0)
    max_energy: int = Field(gt=0)
    energy_added: int = Field(ge=0)
    coins_spent: int = Field(ge=0)
    coins: int = Field(ge=0)
    idempotent_replay: bool


class LeaderboardEntryResponse(BaseModel):
    rank: int = Field(ge=1)
    user_id: int = Field(gt=0)
    points: int = Field(ge=0)
    level: int = Field(ge=1)
    level_title: str
    quests_completed: int = Field(ge=0)


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntryResponse]


class PlayerRankResponse(BaseModel):
    user_id: int = Field(gt=0)
    # 0 when the player has no account yet.
    rank: int = Field(ge=0)
