from __future__ import annotations

from datetime import datetime
from uuid import UUID, uuid4

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from app.core.errors import ConcurrencyConflictError, InvalidArgumentError, QuestNotFoundError
from app.db.models.quest_sessions import QuestSession
from app.db.repo.quest_sessions_repo import QuestSessionsRepo
from app.db.repo.quests_repo import QuestsRepo
from app.economy.accounts import load_account
from app.economy.energy.service import EnergyService
from app.economy.rewards.tables import RewardTables
from app.game.quests.rules import start_progress
from app.game.quests.types import StartQuestResult

from .internal import _build_session_view

logger = structlog.get_logger(__name__)


def quest_start_energy_key(idempotency_key: str) -> str:
    return f"quest_start:{idempotency_key}"


async def start_quest(
    session: AsyncSession,
    *,
    user_id: int,
    quest_id: UUID,
    idempotency_key: str,
    now_utc: datetime,
    tables: RewardTables | None = None,
) -> StartQuestResult:
    if not idempotency_key.strip():
        raise InvalidArgumentError("idempotency_key must not be empty")

    existing = await QuestSessionsRepo.get_by_idempotency_key(session, idempotency_key)
    if existing is not None:
        if existing.user_id != user_id or existing.quest_id != quest_id:
            raise InvalidArgumentError("idempotency_key already used for another quest start")
        points = await QuestsRepo.list_points(session, quest_id=existing.quest_id)
        account = await load_account(session, user_id=user_id)
        return StartQuestResult(
            session=_build_session_view(existing, points=points),
            energy=account.energy,
            max_energy=account.max_energy,
            idempotent_replay=True,
        )

    quest = await QuestsRepo.get_by_id(session, quest_id)
    if quest is None or not quest.is_active:
        raise QuestNotFoundError(f"quest {quest_id} not found")

    points = await QuestsRepo.list_points(session, quest_id=quest.id)
    if not points:
        raise InvalidArgumentError(f"quest {quest_id} has no checkpoints")

    consumed = await EnergyService.consume_for_quest(
        session,
        user_id=user_id,
        difficulty=quest.difficulty,
        idempotency_key=quest_start_energy_key(idempotency_key),
        now_utc=now_utc,
        tables=tables,
    )

    progress = start_progress(total_points=len(points))
    quest_session = QuestSession(
        id=uuid4(),
        user_id=user_id,
        quest_id=quest.id,
        status=progress.status,
        current_point_index=progress.current_point_index,
        accumulated_score=progress.accumulated_score,
        energy_cost=consumed.energy_cost,
        idempotency_key=idempotency_key,
        started_at=now_utc,
        completed_at=None,
        updated_at=now_utc,
    )
    try:
        await QuestSessionsRepo.create(session, quest_session=quest_session)
    except IntegrityError as exc:
        raise ConcurrencyConflictError(
            f"quest start {idempotency_key!r} was recorded concurrently"
        ) from exc

    await emit_analytics_event(
        session,
        event_type="quest_started",
        source=EVENT_SOURCE_API,
        user_id=user_id,
        payload={
            "quest_id": str(quest.id),
            "session_id": str(quest_session.id),
            "difficulty": quest.difficulty,
            "energy_cost": consumed.energy_cost,
        },
        happened_at=now_utc,
    )
    logger.info(
        "quest_started",
        user_id=user_id,
        quest_id=str(quest.id),
        session_id=str(quest_session.id),
        energy_after=consumed.energy,
    )
    return StartQuestResult(
        session=_build_session_view(quest_session, points=points),
        energy=consumed.energy,
        max_energy=consumed.max_energy,
        idempotent_replay=False,
    )
