from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class AchievementProgress(Base):
    __tablename__ = "achievement_progress"
    __table_args__ = (
        CheckConstraint(
            "progress_percent >= 0 AND progress_percent <= 100",
            name="ck_achievement_progress_percent_range",
        ),
        CheckConstraint(
            "(NOT is_completed) OR (progress_percent = 100 AND completed_at IS NOT NULL)",
            name="ck_achievement_progress_completed_consistency",
        ),
        Index("idx_achievement_progress_completed", "user_id", "completed_at"),
    )

    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("player_accounts.user_id"),
        primary_key=True,
    )
    achievement_id: Mapped[str] = mapped_column(
        String(64),
        ForeignKey("achievements.id"),
        primary_key=True,
    )
    progress_percent: Mapped[int] = mapped_column(SmallInteger, nullable=False, default=0)
    is_completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    completed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
