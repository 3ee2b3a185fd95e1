from __future__ import annotations

from datetime import datetime, timedelta

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from app.core.errors import InvalidArgumentError
from app.db.models.player_accounts import PlayerAccount
from app.db.repo.player_accounts_repo import PlayerAccountsRepo
from app.economy.accounts import load_account
from app.economy.achievements.service import AchievementService
from app.economy.achievements.types import AchievementProgressView
from app.economy.energy.rules import can_afford, classify_energy_state
from app.economy.energy.service import EnergyService
from app.economy.energy.types import EnergySnapshot
from app.economy.leveling.rules import level_info, level_progress
from app.economy.rewards.tables import RewardTables, resolve_tables
from app.game.players.types import LeaderboardEntry, PlayerSnapshot, ProvisionResult

logger = structlog.get_logger(__name__)


def _build_snapshot(
    account: PlayerAccount,
    energy: EnergySnapshot,
    *,
    tables: RewardTables,
) -> PlayerSnapshot:
    next_energy_at = None
    if not energy.is_full:
        next_energy_at = energy.last_energy_update_at + timedelta(
            minutes=tables.energy_regen_minutes_per_point
        )

    return PlayerSnapshot(
        user_id=account.user_id,
        energy=energy.energy,
        max_energy=energy.max_energy,
        energy_state=classify_energy_state(energy, tables=tables),
        next_energy_at=next_energy_at,
        experience=account.experience,
        level=account.level,
        level_title=level_info(account.level, tables=tables).title,
        level_progress=level_progress(account.experience, account.level, tables=tables),
        coins=account.coins,
        points=account.points,
        quests_completed=account.quests_completed,
        total_distance_m=account.total_distance_m,
        affordable_difficulties=tuple(
            difficulty
            for difficulty in tables.quest_rewards
            if can_afford(energy, difficulty, tables=tables)
        ),
    )


class PlayerService:
    @staticmethod
    async def get_account_snapshot(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
        tables: RewardTables | None = None,
    ) -> PlayerSnapshot:
        resolved = resolve_tables(tables)
        energy = await EnergyService.sync_energy_clock(
            session,
            user_id=user_id,
            now_utc=now_utc,
            tables=resolved,
        )
        account = await load_account(session, user_id=user_id)
        return _build_snapshot(account, energy, tables=resolved)

    @staticmethod
    async def provision_account(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
        tables: RewardTables | None = None,
    ) -> ProvisionResult:
        if user_id <= 0:
            raise InvalidArgumentError("user_id must be positive")

        resolved = resolve_tables(tables)
        created = False
        if await PlayerAccountsRepo.get_by_user_id(session, user_id) is None:
            try:
                async with session.begin_nested():
                    await PlayerAccountsRepo.create_default(
                        session,
                        user_id=user_id,
                        max_energy=resolved.default_max_energy,
                        now_utc=now_utc,
                    )
                created = True
            except IntegrityError:
                logger.info("player_account_provision_race", user_id=user_id)

        if created:
            await emit_analytics_event(
                session,
                event_type="player_provisioned",
                source=EVENT_SOURCE_API,
                user_id=user_id,
                payload={"max_energy": resolved.default_max_energy},
                happened_at=now_utc,
            )

        snapshot = await PlayerService.get_account_snapshot(
            session,
            user_id=user_id,
            now_utc=now_utc,
            tables=resolved,
        )
        return ProvisionResult(snapshot=snapshot, created=created)

    @staticmethod
    async def get_achievement_progress(
        session: AsyncSession,
        *,
        user_id: int,
    ) -> list[AchievementProgressView]:
        return await AchievementService.list_progress(session, user_id=user_id)

    @staticmethod
    async def get_leaderboard(
        session: AsyncSession,
        *,
        limit: int = 100,
        tables: RewardTables | None = None,
    ) -> list[LeaderboardEntry]:
        """Top players by points; ties go to the lower user_id."""
        if limit <= 0:
            raise InvalidArgumentError("limit must be positive")

        resolved = resolve_tables(tables)
        accounts = await PlayerAccountsRepo.list_top_by_points(session, limit=limit)
        return [
            LeaderboardEntry(
                rank=rank,
                user_id=account.user_id,
                points=account.points,
                level=account.level,
                level_title=level_info(account.level, tables=resolved).title,
                quests_completed=account.quests_completed,
            )
            for rank, account in enumerate(accounts, start=1)
        ]

    @staticmethod
    async def get_player_rank(session: AsyncSession, *, user_id: int) -> int:
        """1-based leaderboard position, or 0 when the player has no account."""
        account = await PlayerAccountsRepo.get_by_user_id(session, user_id)
        if account is None:
            return 0
        above = await PlayerAccountsRepo.count_ranked_above(
            session, points=account.points, user_id=account.user_id
        )
        return above + 1
