from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quest_points import QuestPoint
from app.db.models.quests import Quest


class QuestsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, quest_id: UUID) -> Quest | None:
        return await session.get(Quest, quest_id)

    @staticmethod
    async def list_points(session: AsyncSession, *, quest_id: UUID) -> list[QuestPoint]:
        stmt = (
            select(QuestPoint)
            .where(QuestPoint.quest_id == quest_id)
            .order_by(QuestPoint.order_index.asc())
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())
