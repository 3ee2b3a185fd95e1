from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from app.core.errors import InvalidArgumentError, SessionNotFoundError
from app.db.models.quest_points import QuestPoint
from app.db.models.quest_sessions import QuestSession
from app.db.repo.quest_sessions_repo import QuestSessionsRepo
from app.db.repo.quests_repo import QuestsRepo
from app.game.quests.rules import SESSION_STATUSES, abandon
from app.game.quests.types import QuestSessionView

from .internal import _build_session_view, _progress_snapshot

logger = structlog.get_logger(__name__)


async def _load_owned_session(
    session: AsyncSession,
    *,
    user_id: int,
    session_id: UUID,
    for_update: bool = False,
) -> QuestSession:
    if for_update:
        quest_session = await QuestSessionsRepo.get_by_id_for_update(session, session_id)
    else:
        quest_session = await QuestSessionsRepo.get_by_id(session, session_id)
    if quest_session is None or quest_session.user_id != user_id:
        raise SessionNotFoundError(f"quest session {session_id} not found")
    return quest_session


async def abandon_quest(
    session: AsyncSession,
    *,
    user_id: int,
    session_id: UUID,
    now_utc: datetime,
) -> QuestSessionView:
    quest_session = await _load_owned_session(
        session, user_id=user_id, session_id=session_id, for_update=True
    )
    points = await QuestsRepo.list_points(session, quest_id=quest_session.quest_id)
    abandoned = abandon(_progress_snapshot(quest_session, total_points=len(points)))

    quest_session.status = abandoned.status
    quest_session.updated_at = now_utc
    await session.flush()

    await emit_analytics_event(
        session,
        event_type="quest_abandoned",
        source=EVENT_SOURCE_API,
        user_id=user_id,
        payload={
            "session_id": str(quest_session.id),
            "current_point_index": quest_session.current_point_index,
        },
        happened_at=now_utc,
    )
    logger.info("quest_session_abandoned", user_id=user_id, session_id=str(quest_session.id))
    return _build_session_view(quest_session, points=points)


async def get_session_view(
    session: AsyncSession,
    *,
    user_id: int,
    session_id: UUID,
) -> QuestSessionView:
    quest_session = await _load_owned_session(session, user_id=user_id, session_id=session_id)
    points = await QuestsRepo.list_points(session, quest_id=quest_session.quest_id)
    return _build_session_view(quest_session, points=points)


async def list_sessions(
    session: AsyncSession,
    *,
    user_id: int,
    status: str | None = None,
    limit: int = 50,
) -> list[QuestSessionView]:
    """Returns the player's quest sessions, most recently started first."""
    if status is not None and status not in SESSION_STATUSES:
        raise InvalidArgumentError(f"unknown quest session status: {status!r}")
    if limit <= 0:
        raise InvalidArgumentError("limit must be positive")

    quest_sessions = await QuestSessionsRepo.list_for_user(
        session, user_id=user_id, status=status, limit=limit
    )
    points_by_quest: dict[UUID, list[QuestPoint]] = {}
    views: list[QuestSessionView] = []
    for quest_session in quest_sessions:
        points = points_by_quest.get(quest_session.quest_id)
        if points is None:
            points = await QuestsRepo.list_points(session, quest_id=quest_session.quest_id)
            points_by_quest[quest_session.quest_id] = points
        views.append(_build_session_view(quest_session, points=points))
    return views
