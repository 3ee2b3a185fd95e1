from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.achievement_progress import AchievementProgress
from app.db.models.achievements import Achievement


class AchievementsRepo:
    @staticmethod
    async def list_definitions(session: AsyncSession) -> list[Achievement]:
        stmt = select(Achievement).order_by(Achievement.category.asc(), Achievement.id.asc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def list_progress_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        for_update: bool = False,
    ) -> list[AchievementProgress]:
        stmt = select(AchievementProgress).where(AchievementProgress.user_id == user_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await session.execute(stmt)
        return list(result.scalars().all())

    @staticmethod
    async def create_progress(
        session: AsyncSession, *, progress: AchievementProgress
    ) -> AchievementProgress:
        session.add(progress)
        await session.flush()
        return progress
