"""q1_quest_engine_core_schema

Revision ID: 5c2e9a7d1b40
Revises:
Create Date: 2026-10-19 09:00:00.000000
"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "5c2e9a7d1b40"
down_revision: str | None = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "player_accounts",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("energy", sa.Integer(), nullable=False),
        sa.Column("max_energy", sa.Integer(), nullable=False),
        sa.Column("experience", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("level", sa.Integer(), nullable=False, server_default=sa.text("1")),
        sa.Column("coins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("quests_completed", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("total_distance_m", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("last_energy_update_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("energy >= 0 AND energy <= max_energy", name="ck_player_accounts_energy_range"),
        sa.CheckConstraint("max_energy > 0", name="ck_player_accounts_max_energy_positive"),
        sa.CheckConstraint("experience >= 0", name="ck_player_accounts_experience_non_negative"),
        sa.CheckConstraint("level >= 1", name="ck_player_accounts_level_positive"),
        sa.CheckConstraint("coins >= 0", name="ck_player_accounts_coins_non_negative"),
        sa.CheckConstraint("points >= 0", name="ck_player_accounts_points_non_negative"),
        sa.CheckConstraint("quests_completed >= 0", name="ck_player_accounts_quests_completed_non_negative"),
        sa.CheckConstraint("total_distance_m >= 0", name="ck_player_accounts_total_distance_non_negative"),
        sa.PrimaryKeyConstraint("user_id"),
    )
    op.create_index("idx_player_accounts_points", "player_accounts", ["points"])
    op.create_index("idx_player_accounts_level", "player_accounts", ["level"])

    op.create_table(
        "quests",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("difficulty", sa.String(16), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("difficulty IN ('easy','medium','hard')", name="ck_quests_difficulty"),
    )
    op.create_index("idx_quests_active", "quests", ["is_active"])

    op.create_table(
        "quest_points",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("quest_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("order_index", sa.Integer(), nullable=False),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("task_type", sa.String(32), nullable=False),
        sa.Column("correct_answer", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("reward_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.CheckConstraint(
            "task_type IN ('quiz','text','text_input','multiple_choice','photo','selfie','location')",
            name="ck_quest_points_task_type",
        ),
        sa.CheckConstraint("order_index >= 0", name="ck_quest_points_order_non_negative"),
        sa.CheckConstraint("reward_points >= 0", name="ck_quest_points_reward_non_negative"),
        sa.CheckConstraint(
            "latitude BETWEEN -90 AND 90 AND longitude BETWEEN -180 AND 180",
            name="ck_quest_points_coordinates",
        ),
        sa.ForeignKeyConstraint(["quest_id"], ["quests.id"]),
        sa.UniqueConstraint("quest_id", "order_index", name="uq_quest_points_quest_order"),
    )

    op.create_table(
        "quest_sessions",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("quest_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("status", sa.String(16), nullable=False),
        sa.Column("current_point_index", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("accumulated_score", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("energy_cost", sa.Integer(), nullable=False),
        sa.Column("idempotency_key", sa.String(96), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "status IN ('not_started','in_progress','completed','abandoned')",
            name="ck_quest_sessions_status",
        ),
        sa.CheckConstraint("current_point_index >= 0", name="ck_quest_sessions_point_index_non_negative"),
        sa.CheckConstraint("accumulated_score >= 0", name="ck_quest_sessions_score_non_negative"),
        sa.CheckConstraint("energy_cost >= 0", name="ck_quest_sessions_energy_cost_non_negative"),
        sa.CheckConstraint(
            "(status != 'completed') OR completed_at IS NOT NULL",
            name="ck_quest_sessions_completed_at",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["player_accounts.user_id"]),
        sa.ForeignKeyConstraint(["quest_id"], ["quests.id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_quest_sessions_idempotency_key"),
    )
    op.create_index("idx_quest_sessions_user_started", "quest_sessions", ["user_id", "started_at"])
    op.create_index("idx_quest_sessions_quest", "quest_sessions", ["quest_id"])

    op.create_table(
        "quest_answers",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("session_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("point_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("answer", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("photo_url", sa.Text(), nullable=True),
        sa.Column("is_correct", sa.Boolean(), nullable=False),
        sa.Column("points_earned", sa.Integer(), nullable=False),
        sa.Column("distance_m", sa.Float(), nullable=True),
        sa.Column("answered_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint("points_earned >= 0", name="ck_quest_answers_points_non_negative"),
        sa.ForeignKeyConstraint(["session_id"], ["quest_sessions.id"]),
        sa.ForeignKeyConstraint(["point_id"], ["quest_points.id"]),
        sa.ForeignKeyConstraint(["user_id"], ["player_accounts.user_id"]),
        sa.UniqueConstraint("session_id", "point_id", name="uq_quest_answers_session_point"),
    )
    op.create_index("idx_quest_answers_user_answered", "quest_answers", ["user_id", "answered_at"])

    op.create_table(
        "achievements",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("title", sa.Text(), nullable=False),
        sa.Column("category", sa.String(32), nullable=False, server_default=sa.text("'general'")),
        sa.Column("condition_type", sa.String(32), nullable=False),
        sa.Column("condition_target", sa.Integer(), nullable=False),
        sa.Column("reward_points", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("reward_coins", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_secret", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.CheckConstraint(
            "condition_type IN ('quests_completed','total_points','level_reached','distance_traveled')",
            name="ck_achievements_condition_type",
        ),
        sa.CheckConstraint("condition_target > 0", name="ck_achievements_target_positive"),
        sa.CheckConstraint(
            "reward_points >= 0 AND reward_coins >= 0",
            name="ck_achievements_rewards_non_negative",
        ),
    )

    op.create_table(
        "achievement_progress",
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("achievement_id", sa.String(64), nullable=False),
        sa.Column("progress_percent", sa.SmallInteger(), nullable=False, server_default=sa.text("0")),
        sa.Column("is_completed", sa.Boolean(), nullable=False, server_default=sa.text("false")),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "progress_percent >= 0 AND progress_percent <= 100",
            name="ck_achievement_progress_percent_range",
        ),
        sa.CheckConstraint(
            "(NOT is_completed) OR (progress_percent = 100 AND completed_at IS NOT NULL)",
            name="ck_achievement_progress_completed_consistency",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["player_accounts.user_id"]),
        sa.ForeignKeyConstraint(["achievement_id"], ["achievements.id"]),
        sa.PrimaryKeyConstraint("user_id", "achievement_id"),
    )
    op.create_index(
        "idx_achievement_progress_completed",
        "achievement_progress",
        ["user_id", "completed_at"],
    )

    op.create_table(
        "ledger_entries",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("user_id", sa.BigInteger(), nullable=False),
        sa.Column("entry_type", sa.String(32), nullable=False),
        sa.Column("energy_delta", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("coins_delta", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("points_delta", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("experience_delta", sa.Integer(), nullable=False, server_default=sa.text("0")),
        sa.Column("source", sa.String(32), nullable=False),
        sa.Column("idempotency_key", sa.String(128), nullable=False),
        sa.Column(
            "metadata",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.CheckConstraint(
            "entry_type IN ('QUEST_START_ENERGY','QUEST_REWARD','ACHIEVEMENT_REWARD','ENERGY_PURCHASE')",
            name="ck_ledger_entries_entry_type",
        ),
        sa.ForeignKeyConstraint(["user_id"], ["player_accounts.user_id"]),
        sa.UniqueConstraint("idempotency_key", name="uq_ledger_entries_idempotency_key"),
    )
    op.create_index("idx_ledger_user_created", "ledger_entries", ["user_id", "created_at"])
    op.create_index("idx_ledger_type", "ledger_entries", ["entry_type"])

    op.create_table(
        "analytics_events",
        sa.Column("id", sa.BigInteger(), primary_key=True),
        sa.Column("event_type", sa.String(64), nullable=False),
        sa.Column("source", sa.String(16), nullable=False),
        sa.Column("user_id", sa.BigInteger(), nullable=True),
        sa.Column(
            "payload",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default=sa.text("'{}'::jsonb"),
        ),
        sa.Column("happened_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.CheckConstraint("source IN ('API','SYSTEM')", name="ck_analytics_events_source"),
    )
    op.create_index("idx_analytics_events_type_time", "analytics_events", ["event_type", "happened_at"])
    op.create_index("idx_analytics_events_user_time", "analytics_events", ["user_id", "happened_at"])


def downgrade() -> None:
    op.drop_index("idx_analytics_events_user_time", table_name="analytics_events")
    op.drop_index("idx_analytics_events_type_time", table_name="analytics_events")
    op.drop_table("analytics_events")
    op.drop_index("idx_ledger_type", table_name="ledger_entries")
    op.drop_index("idx_ledger_user_created", table_name="ledger_entries")
    op.drop_table("ledger_entries")
    op.drop_index("idx_achievement_progress_completed", table_name="achievement_progress")
    op.drop_table("achievement_progress")
    op.drop_table("achievements")
    op.drop_index("idx_quest_answers_user_answered", table_name="quest_answers")
    op.drop_table("quest_answers")
    op.drop_index("idx_quest_sessions_quest", table_name="quest_sessions")
    op.drop_index("idx_quest_sessions_user_started", table_name="quest_sessions")
    op.drop_table("quest_sessions")
    op.drop_table("quest_points")
    op.drop_index("idx_quests_active", table_name="quests")
    op.drop_table("quests")
    op.drop_index("idx_player_accounts_level", table_name="player_accounts")
    op.drop_index("idx_player_accounts_points", table_name="player_accounts")
    op.drop_table("player_accounts")
