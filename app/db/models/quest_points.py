from __future__ import annotations

from uuid import UUID

from sqlalchemy import CheckConstraint, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.dialects.postgresql import UUID as PG_UUID
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class QuestPoint(Base):
    __tablename__ = "quest_points"
    __table_args__ = (
        CheckConstraint(
            "task_type IN ('quiz','text','text_input','multiple_choice','photo','selfie','location')",
            name="ck_quest_points_task_type",
        ),
        CheckConstraint("order_index >= 0", name="ck_quest_points_order_non_negative"),
        CheckConstraint("reward_points >= 0", name="ck_quest_points_reward_non_negative"),
        CheckConstraint(
            "latitude BETWEEN -90 AND 90 AND longitude BETWEEN -180 AND 180",
            name="ck_quest_points_coordinates",
        ),
        UniqueConstraint("quest_id", "order_index", name="uq_quest_points_quest_order"),
    )

    id: Mapped[UUID] = mapped_column(PG_UUID(as_uuid=True), primary_key=True)
    quest_id: Mapped[UUID] = mapped_column(
        PG_UUID(as_uuid=True),
        ForeignKey("quests.id"),
        nullable=False,
    )
    order_index: Mapped[int] = mapped_column(Integer, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    task_type: Mapped[str] = mapped_column(String(32), nullable=False)
    correct_answer: Mapped[str | list[str] | None] = mapped_column(JSONB, nullable=True)
    reward_points: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
