from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from app.db.models.base import Base


class LedgerEntry(Base):
    __tablename__ = "ledger_entries"
    __table_args__ = (
        CheckConstraint(
            "entry_type IN ('QUEST_START_ENERGY','QUEST_REWARD','ACHIEVEMENT_REWARD','ENERGY_PURCHASE')",
            name="ck_ledger_entries_entry_type",
        ),
        Index("idx_ledger_user_created", "user_id", "created_at"),
        Index("idx_ledger_type", "entry_type"),
    )

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger,
        ForeignKey("player_accounts.user_id"),
        nullable=False,
    )
    entry_type: Mapped[str] = mapped_column(String(32), nullable=False)
    energy_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    coins_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    points_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    experience_delta: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    source: Mapped[str] = mapped_column(String(32), nullable=False)
    idempotency_key: Mapped[str] = mapped_column(String(128), unique=True, nullable=False)
    metadata_: Mapped[dict[str, object]] = mapped_column(
        "metadata",
        JSONB,
        nullable=False,
        server_default=text("'{}'::jsonb"),
    )
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
