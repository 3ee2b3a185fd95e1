from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_SYSTEM, emit_analytics_event
from app.core.errors import InvalidArgumentError, QuestEngineError
from app.db.models.ledger_entries import LedgerEntry
from app.db.repo.ledger_repo import LedgerRepo
from app.economy.accounts import load_account, write_account
from app.economy.achievements.service import AchievementService
from app.economy.achievements.types import AchievementAward
from app.economy.leveling.rules import apply_experience
from app.economy.leveling.types import LevelUpResult
from app.economy.rewards.tables import RewardTables, resolve_tables
from app.game.quests.types import CompletionResult

logger = structlog.get_logger(__name__)


def quest_reward_key(session_id: UUID) -> str:
    return f"quest_reward:{session_id}"


def _level_up_payload(level_up: LevelUpResult | None) -> dict[str, object] | None:
    if level_up is None:
        return None
    return {
        "previous_level": level_up.previous_level,
        "new_level": level_up.new_level,
        "title": level_up.title,
        "bonus_coins": level_up.bonus_coins,
        "new_max_energy": level_up.new_max_energy,
    }


def _award_payload(award: AchievementAward) -> dict[str, object]:
    return {
        "achievement_id": award.achievement_id,
        "title": award.title,
        "reward_points": award.reward_points,
        "reward_coins": award.reward_coins,
    }


def _awards_from_metadata(raw: object) -> list[AchievementAward]:
    if not isinstance(raw, list):
        return []
    return [
        AchievementAward(
            achievement_id=str(item["achievement_id"]),
            title=str(item["title"]),
            reward_points=int(item["reward_points"]),
            reward_coins=int(item["reward_coins"]),
        )
        for item in raw
        if isinstance(item, dict)
    ]


def _completion_from_entry(entry: LedgerEntry, *, session_id: UUID) -> CompletionResult:
    metadata = entry.metadata_ or {}
    level_up_raw = metadata.get("level_up")
    level_up = None
    if isinstance(level_up_raw, dict):
        level_up = LevelUpResult(
            previous_level=int(level_up_raw["previous_level"]),
            new_level=int(level_up_raw["new_level"]),
            title=str(level_up_raw["title"]),
            bonus_coins=int(level_up_raw["bonus_coins"]),
            new_max_energy=int(level_up_raw["new_max_energy"]),
        )
    level_up_coins = level_up.bonus_coins if level_up is not None else 0
    return CompletionResult(
        session_id=session_id,
        experience_gained=entry.experience_delta,
        coins_gained=entry.coins_delta - level_up_coins,
        level_up_coins=level_up_coins,
        points_gained=entry.points_delta,
        distance_m=int(metadata.get("distance_m", 0)),
        level_up=level_up,
        newly_completed_achievements=_awards_from_metadata(metadata.get("achievements")),
        idempotent_replay=True,
    )


async def get_recorded_completion(
    session: AsyncSession,
    *,
    session_id: UUID,
) -> CompletionResult | None:
    entry = await LedgerRepo.get_by_idempotency_key(session, quest_reward_key(session_id))
    if entry is None:
        return None
    return _completion_from_entry(entry, session_id=session_id)


async def _award_achievements(
    session: AsyncSession,
    *,
    user_id: int,
    now_utc: datetime,
) -> list[AchievementAward]:
    try:
        async with session.begin_nested():
            return await AchievementService.recompute_and_award(
                session,
                user_id=user_id,
                now_utc=now_utc,
            )
    except (SQLAlchemyError, QuestEngineError):
        logger.warning("achievement_recompute_failed", user_id=user_id, exc_info=True)
        return []


async def award_completion(
    session: AsyncSession,
    *,
    user_id: int,
    session_id: UUID,
    difficulty: str,
    points_earned: int,
    now_utc: datetime,
    distance_m: int = 0,
    tables: RewardTables | None = None,
) -> CompletionResult:
    """Pays out a finished quest exactly once per quest session.

    XP, coins, points, the completion counter, travelled distance and any
    level-up land in a single version-guarded account write. Achievements run
    next in a savepoint, and the QUEST_REWARD ledger entry closes the
    transaction with everything a replay needs, unlocked achievements included.
    """
    if points_earned < 0:
        raise InvalidArgumentError("points_earned must not be negative")
    if distance_m < 0:
        raise InvalidArgumentError("distance_m must not be negative")

    recorded = await get_recorded_completion(session, session_id=session_id)
    if recorded is not None:
        return recorded

    resolved = resolve_tables(tables)
    reward = resolved.quest_reward(difficulty)
    account = await load_account(session, user_id=user_id)

    level_up = apply_experience(
        current_level=account.level,
        experience=account.experience,
        delta=reward.experience,
        tables=resolved,
    )
    level_up_coins = level_up.bonus_coins if level_up is not None else 0

    values: dict[str, object] = {
        "experience": account.experience + reward.experience,
        "coins": account.coins + reward.coins + level_up_coins,
        "points": account.points + points_earned,
        "quests_completed": account.quests_completed + 1,
        "total_distance_m": account.total_distance_m + distance_m,
    }
    if level_up is not None:
        values.update(
            {
                "level": level_up.new_level,
                "max_energy": level_up.new_max_energy,
                "energy": level_up.new_max_energy,
                "last_energy_update_at": now_utc,
            }
        )

    await write_account(session, account=account, values=values, now_utc=now_utc)

    await emit_analytics_event(
        session,
        event_type="quest_completed",
        source=EVENT_SOURCE_SYSTEM,
        user_id=user_id,
        payload={
            "session_id": str(session_id),
            "difficulty": difficulty,
            "experience_gained": reward.experience,
            "coins_gained": reward.coins,
            "points_gained": points_earned,
        },
        happened_at=now_utc,
    )
    if level_up is not None:
        await emit_analytics_event(
            session,
            event_type="level_up",
            source=EVENT_SOURCE_SYSTEM,
            user_id=user_id,
            payload=_level_up_payload(level_up),
            happened_at=now_utc,
        )
        logger.info(
            "player_level_up",
            user_id=user_id,
            previous_level=level_up.previous_level,
            new_level=level_up.new_level,
        )

    achievements = await _award_achievements(session, user_id=user_id, now_utc=now_utc)

    # The reward entry is the replay record, so it goes in after achievements settle.
    await LedgerRepo.create(
        session,
        entry=LedgerEntry(
            user_id=user_id,
            entry_type="QUEST_REWARD",
            experience_delta=reward.experience,
            coins_delta=reward.coins + level_up_coins,
            points_delta=points_earned,
            source="QUEST",
            idempotency_key=quest_reward_key(session_id),
            metadata_={
                "session_id": str(session_id),
                "difficulty": difficulty,
                "distance_m": distance_m,
                "level_up": _level_up_payload(level_up),
                "achievements": [_award_payload(award) for award in achievements],
            },
            created_at=now_utc,
        ),
    )
    return CompletionResult(
        session_id=session_id,
        experience_gained=reward.experience,
        coins_gained=reward.coins,
        level_up_coins=level_up_coins,
        points_gained=points_earned,
        distance_m=distance_m,
        level_up=level_up,
        newly_completed_achievements=achievements,
        idempotent_replay=False,
    )
