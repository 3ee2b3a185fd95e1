from __future__ import annotations

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class LocationPayload(BaseModel):
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)


class StartQuestRequest(BaseModel):
    user_id: int = Field(gt=0)
    idempotency_key: str = Field(min_length=1, max_length=96)


class SubmitAnswerRequest(BaseModel):
    user_id: int = Field(gt=0)
    point_id: UUID
    answer: str | list[str] | None = None
    location: LocationPayload | None = None
    photo_url: str | None = Field(default=None, max_length=2048)


class AbandonQuestRequest(BaseModel):
    user_id: int = Field(gt=0)


class QuestSessionResponse(BaseModel):
    session_id: UUID
    quest_id: UUID
    status: str
    current_point_index: int = Field(ge=0)
    total_points: int = Field(ge=0)
    accumulated_score: int = Field(ge=0)
    energy_cost: int = Field(ge=0)
    started_at: datetime
    completed_at: datetime | None = None
    current_point_id: UUID | None = None


class StartQuestResponse(BaseModel):
    session: QuestSessionResponse
    energy: int = Field(ge=0)
    max_energy: int = Field(gt=0)
    idempotent_replay: bool


class LevelUpResponse(BaseModel):
    previous_level: int
    new_level: int
    title: str
    bonus_coins: int = Field(ge=0)
    new_max_energy: int = Field(gt=0)


class AchievementAwardResponse(BaseModel):
    achievement_id: str
    title: str
    reward_points: int = Field(ge=0)
    reward_coins: int = Field(ge=0)


class CompletionResponse(BaseModel):
    experience_gained: int = Field(ge=0)
    coins_gained: int = Field(ge=0)
    level_up_coins: int = Field(ge=0)
    points_gained: int = Field(ge=0)
    distance_m: int = Field(ge=0)
    level_up: LevelUpResponse | None = None
    newly_completed_achievements: list[AchievementAwardResponse]
    idempotent_replay: bool


class SubmitAnswerResponse(BaseModel):
    is_correct: bool
    points_earned: int = Field(ge=0)
    session_advanced: bool
    status: str
    current_point_index: int = Field(ge=0)
    distance_m: float | None = None
    idempotent_replay: bool
    session: QuestSessionResponse
    completion: CompletionResponse | None = None


class QuestSessionListResponse(BaseModel):
    user_id: int
    sessions: list[QuestSessionResponse]
