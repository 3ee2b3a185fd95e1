from __future__ import annotations

from datetime import datetime

from sqlalchemy import BigInteger, CheckConstraint, DateTime, Index, Integer, text
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class PlayerAccount(Base):
    __tablename__ = "player_accounts"
    __table_args__ = (
        CheckConstraint(
            "energy >= 0 AND energy <= max_energy",
            name="ck_player_accounts_energy_range",
        ),
        CheckConstraint("max_energy > 0", name="ck_player_accounts_max_energy_positive"),
        CheckConstraint("experience >= 0", name="ck_player_accounts_experience_non_negative"),
        CheckConstraint("level >= 1", name="ck_player_accounts_level_positive"),
        CheckConstraint("coins >= 0", name="ck_player_accounts_coins_non_negative"),
        CheckConstraint("points >= 0", name="ck_player_accounts_points_non_negative"),
        CheckConstraint(
            "quests_completed >= 0",
            name="ck_player_accounts_quests_completed_non_negative",
        ),
        CheckConstraint(
            "total_distance_m >= 0",
            name="ck_player_accounts_total_distance_non_negative",
        ),
        Index("idx_player_accounts_points", "points"),
        Index("idx_player_accounts_level", "level"),
    )

    user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    energy: Mapped[int] = mapped_column(Integer, nullable=False)
    max_energy: Mapped[int] = mapped_column(Integer, nullable=False)
    experience: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    coins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    quests_completed: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_distance_m: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_energy_update_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=text("now()"),
    )
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
