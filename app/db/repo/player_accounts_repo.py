from __future__ import annotations

from datetime import datetime

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.player_accounts import PlayerAccount


class PlayerAccountsRepo:
    @staticmethod
    async def get_by_user_id(session: AsyncSession, user_id: int) -> PlayerAccount | None:
        # Always re-read: a compare-and-swap earlier in the transaction bypasses the identity map.
        stmt = (
            select(PlayerAccount)
            .where(PlayerAccount.user_id == user_id)
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create_default(
        session: AsyncSession,
        *,
        user_id: int,
        max_energy: int,
        now_utc: datetime,
    ) -> PlayerAccount:
        account = PlayerAccount(
            user_id=user_id,
            energy=max_energy,
            max_energy=max_energy,
            experience=0,
            level=1,
            coins=0,
            points=0,
            quests_completed=0,
            total_distance_m=0,
            last_energy_update_at=now_utc,
            version=0,
            created_at=now_utc,
            updated_at=now_utc,
        )
        session.add(account)
        await session.flush()
        return account

    @staticmethod
    async def compare_and_swap(
        session: AsyncSession,
        *,
        user_id: int,
        expected_version: int,
        values: dict[str, object],
    ) -> bool:
        stmt = (
            update(PlayerAccount)
            .where(
                PlayerAccount.user_id == user_id,
                PlayerAccount.version == expected_version,
            )
            .values(**values, version=expected_version + 1)
            .execution_options(synchronize_session=False)
        )
        result = await session.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    async def list_top_by_points(session: AsyncSession, *, limit: int) -> list[PlayerAccount]:
        stmt = (
            select(PlayerAccount)
            .order_by(PlayerAccount.points.desc(), PlayerAccount.user_id.asc())
            .limit(limit)
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def count_ranked_above(session: AsyncSession, *, points: int, user_id: int) -> int:
        # Same ordering as list_top_by_points: equal points fall back to the lower user_id.
        stmt = select(func.count(PlayerAccount.user_id)).where(
            or_(
                PlayerAccount.points > points,
                and_(PlayerAccount.points == points, PlayerAccount.user_id < user_id),
            )
        )
        result = await session.execute(stmt)
        return int(result.scalar_one() or 0)
