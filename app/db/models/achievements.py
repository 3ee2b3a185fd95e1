from __future__ import annotations

from sqlalchemy import Boolean, CheckConstraint, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class Achievement(Base):
    __tablename__ = "achievements"
    __table_args__ = (
        CheckConstraint(
            "condition_type IN ('quests_completed','total_points','level_reached','distance_traveled')",
            name="ck_achievements_condition_type",
        ),
        CheckConstraint("condition_target > 0", name="ck_achievements_target_positive"),
        CheckConstraint(
            "reward_points >= 0 AND reward_coins >= 0",
            name="ck_achievements_rewards_non_negative",
        ),
    )

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    category: Mapped[str] = mapped_column(String(32), nullable=False, server_default=text("'general'"))
    condition_type: Mapped[str] = mapped_column(String(32), nullable=False)
    condition_target: Mapped[int] = mapped_column(Integer, nullable=False)
    reward_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    reward_coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    is_secret: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default=text("false"))
