from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quest_answers import QuestAnswer


class QuestAnswersRepo:
    @staticmethod
    async def get_by_session_point(
        session: AsyncSession,
        *,
        session_id: UUID,
        point_id: UUID,
    ) -> QuestAnswer | None:
        stmt = select(QuestAnswer).where(
            QuestAnswer.session_id == session_id,
            QuestAnswer.point_id == point_id,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, answer: QuestAnswer) -> QuestAnswer:
        session.add(answer)
        await session.flush()
        return answer
