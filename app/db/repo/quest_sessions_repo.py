from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.db.models.quest_sessions import QuestSession


class QuestSessionsRepo:
    @staticmethod
    async def get_by_id(session: AsyncSession, session_id: UUID) -> QuestSession | None:
        return await session.get(QuestSession, session_id)

    @staticmethod
    async def get_by_id_for_update(session: AsyncSession, session_id: UUID) -> QuestSession | None:
        stmt = select(QuestSession).where(QuestSession.id == session_id).with_for_update()
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def get_by_idempotency_key(
        session: AsyncSession, idempotency_key: str
    ) -> QuestSession | None:
        stmt = select(QuestSession).where(QuestSession.idempotency_key == idempotency_key)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    @staticmethod
    async def create(session: AsyncSession, *, quest_session: QuestSession) -> QuestSession:
        session.add(quest_session)
        await session.flush()
        return quest_session

    @staticmethod
    async def list_for_user(
        session: AsyncSession,
        *,
        user_id: int,
        status: str | None = None,
        limit: int = 50,
    ) -> list[QuestSession]:
        stmt = select(QuestSession).where(QuestSession.user_id == user_id)
        if status is not None:
            stmt = stmt.where(QuestSession.status == status)
        stmt = stmt.order_by(QuestSession.started_at.desc(), QuestSession.id.desc()).limit(limit)
        result = await session.execute(stmt)
        return list(result.scalars().all())
