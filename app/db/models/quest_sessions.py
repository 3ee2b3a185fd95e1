from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy import BigInteger, CheckConstraint, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class QuestSession(Base):
    __tablename__ = "quest_sessions"
    __table_args__ = (
        CheckConstraint(
            "status IN ('not_started','in_progress','completed','abandoned')",
            name="ck_quest_sessions_status",
        ),
        CheckConstraint(
            "current_point_index >= 0",
            name="ck_quest_sessions_point_index_non_negative",
        ),
        CheckConstraint(
            "accumulated_score >= 0",
            name="ck_quest_sessions_score_non_negative",
        ),
        CheckConstraint("energy_cost >= 0", name="ck_quest_sessions_energy_cost_non_negative"),
        CheckConstraint(
            "(status != 'completed') OR completed_at IS NOT NULL",
            name="ck_quest_sessions_completed_at",
        ),
        Index("idx_quest_sessions_user_started", "user_id", "started_at"),
        Index("idx_quest_sessions_quest", "quest_id"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("player_accounts.user_id"),
        nullable=False,
    )
    quest_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("quests.id"),
        nullable=False,
    )
    status: Mapped[str] = mapped_column(String(16), nullable=False)
    current_point_index: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    accumulated_score: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    energy_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(96), unique=True, nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
