from __future__ import annotations

from datetime import datetime

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_SYSTEM, emit_analytics_event
from app.db.models.achievement_progress import AchievementProgress
from app.db.models.achievements import Achievement
from app.db.models.ledger_entries import LedgerEntry
from app.db.models.player_accounts import PlayerAccount
from app.db.repo.achievements_repo import AchievementsRepo
from app.db.repo.ledger_repo import LedgerRepo
from app.economy.accounts import load_account, write_account
from app.economy.achievements.rules import recompute_progress
from app.economy.achievements.types import (
    AchievementAward,
    AchievementDefinition,
    AchievementProgressView,
    AchievementStats,
    ProgressState,
)

logger = structlog.get_logger(__name__)


def achievement_reward_key(*, user_id: int, achievement_id: str) -> str:
    return f"achievement_reward:{user_id}:{achievement_id}"


class AchievementService:
    @staticmethod
    def _definition_from_model(achievement: Achievement) -> AchievementDefinition:
        return AchievementDefinition(
            achievement_id=achievement.id,
            title=achievement.title,
            condition_type=achievement.condition_type,
            condition_target=achievement.condition_target,
            reward_points=achievement.reward_points,
            reward_coins=achievement.reward_coins,
            is_secret=achievement.is_secret,
        )

    @staticmethod
    def stats_from_account(account: PlayerAccount) -> AchievementStats:
        return AchievementStats(
            quests_completed=account.quests_completed,
            total_points=account.points,
            level=account.level,
            distance_traveled_m=account.total_distance_m,
        )

    @staticmethod
    async def recompute_and_award(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
    ) -> list[AchievementAward]:
        """Brings every achievement row up to date and pays newly completed ones.

        Progress rows, completion flags and the matching account credit are
        written in the caller's transaction, so they commit or roll back as one.
        """
        definitions = await AchievementsRepo.list_definitions(session)
        if not definitions:
            return []

        progress_rows = {
            row.achievement_id: row
            for row in await AchievementsRepo.list_progress_for_user(
                session, user_id=user_id, for_update=True
            )
        }
        account = await load_account(session, user_id=user_id)
        definitions_by_id = {definition.id: definition for definition in definitions}

        updates = recompute_progress(
            AchievementService.stats_from_account(account),
            [AchievementService._definition_from_model(definition) for definition in definitions],
            {
                achievement_id: ProgressState(
                    progress_percent=row.progress_percent,
                    is_completed=row.is_completed,
                )
                for achievement_id, row in progress_rows.items()
            },
        )

        awards: list[AchievementAward] = []
        for update in updates:
            row = progress_rows.get(update.achievement_id)
            if row is None:
                row = await AchievementsRepo.create_progress(
                    session,
                    progress=AchievementProgress(
                        user_id=user_id,
                        achievement_id=update.achievement_id,
                        progress_percent=update.progress_percent,
                        is_completed=update.newly_completed,
                        completed_at=now_utc if update.newly_completed else None,
                        updated_at=now_utc,
                    ),
                )
            else:
                row.progress_percent = update.progress_percent
                row.updated_at = now_utc
                if update.newly_completed:
                    row.is_completed = True
                    row.completed_at = now_utc

            if update.newly_completed:
                awards.append(
                    AchievementAward(
                        achievement_id=update.achievement_id,
                        title=definitions_by_id[update.achievement_id].title,
                        reward_points=update.reward_points,
                        reward_coins=update.reward_coins,
                    )
                )

        await session.flush()
        if not awards:
            return []

        reward_points = sum(award.reward_points for award in awards)
        reward_coins = sum(award.reward_coins for award in awards)
        if reward_points or reward_coins:
            await write_account(
                session,
                account=account,
                values={
                    "points": account.points + reward_points,
                    "coins": account.coins + reward_coins,
                },
                now_utc=now_utc,
            )

        for award in awards:
            if award.reward_points or award.reward_coins:
                await LedgerRepo.create(
                    session,
                    entry=LedgerEntry(
                        user_id=user_id,
                        entry_type="ACHIEVEMENT_REWARD",
                        coins_delta=award.reward_coins,
                        points_delta=award.reward_points,
                        source="ACHIEVEMENT",
                        idempotency_key=achievement_reward_key(
                            user_id=user_id, achievement_id=award.achievement_id
                        ),
                        metadata_={"achievement_id": award.achievement_id, "title": award.title},
                        created_at=now_utc,
                    ),
                )
            await emit_analytics_event(
                session,
                event_type="achievement_unlocked",
                source=EVENT_SOURCE_SYSTEM,
                user_id=user_id,
                payload={
                    "achievement_id": award.achievement_id,
                    "reward_points": award.reward_points,
                    "reward_coins": award.reward_coins,
                },
                happened_at=now_utc,
            )

        logger.info(
            "achievements_awarded",
            user_id=user_id,
            achievement_ids=[award.achievement_id for award in awards],
            reward_points=reward_points,
            reward_coins=reward_coins,
        )
        return awards

    @staticmethod
    async def list_progress(
        session: AsyncSession,
        *,
        user_id: int,
    ) -> list[AchievementProgressView]:
        await load_account(session, user_id=user_id)
        definitions = await AchievementsRepo.list_definitions(session)
        progress_rows = {
            row.achievement_id: row
            for row in await AchievementsRepo.list_progress_for_user(session, user_id=user_id)
        }

        views: list[AchievementProgressView] = []
        for definition in definitions:
            row = progress_rows.get(definition.id)
            views.append(
                AchievementProgressView(
                    achievement_id=definition.id,
                    title=definition.title,
                    category=definition.category,
                    condition_type=definition.condition_type,
                    condition_target=definition.condition_target,
                    reward_points=definition.reward_points,
                    reward_coins=definition.reward_coins,
                    is_secret=definition.is_secret,
                    progress_percent=row.progress_percent if row is not None else 0,
                    is_completed=row.is_completed if row is not None else False,
                    completed_at=row.completed_at if row is not None else None,
                )
            )
        views.sort(key=lambda view: not view.is_completed)
        return views
