from __future__ import annotations

from datetime import datetime
from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_API, emit_analytics_event
from app.core.errors import (
    CheckpointNotFoundError,
    CheckpointOrderError,
    CheckpointOutOfRangeError,
    QuestNotFoundError,
    SessionNotFoundError,
)
from app.db.models.quest_answers import QuestAnswer
from app.db.repo.quest_answers_repo import QuestAnswersRepo
from app.db.repo.quest_sessions_repo import QuestSessionsRepo
from app.db.repo.quests_repo import QuestsRepo
from app.economy.rewards.tables import RewardTables, resolve_tables
from app.game.quests.answers import evaluate_answer
from app.game.quests.geo import Coordinates, haversine_m, route_distance_m
from app.game.quests.rules import STATUS_COMPLETED, advance, ensure_open
from app.game.quests.types import CheckpointSubmitResult

from .completion import award_completion, get_recorded_completion
from .internal import _build_session_view, _point_coordinates, _progress_snapshot

logger = structlog.get_logger(__name__)


async def submit_checkpoint_answer(
    session: AsyncSession,
    *,
    user_id: int,
    session_id: UUID,
    point_id: UUID,
    answer: object,
    now_utc: datetime,
    location: Coordinates | None = None,
    photo_url: str | None = None,
    tables: RewardTables | None = None,
) -> CheckpointSubmitResult:
    resolved = resolve_tables(tables)
    quest_session = await QuestSessionsRepo.get_by_id_for_update(session, session_id)
    if quest_session is None or quest_session.user_id != user_id:
        raise SessionNotFoundError(f"quest session {session_id} not found")

    points = await QuestsRepo.list_points(session, quest_id=quest_session.quest_id)
    point_index = next((index for index, point in enumerate(points) if point.id == point_id), None)
    if point_index is None:
        raise CheckpointNotFoundError(f"checkpoint {point_id} is not part of this quest")
    point = points[point_index]

    stored_answer = await QuestAnswersRepo.get_by_session_point(
        session,
        session_id=quest_session.id,
        point_id=point.id,
    )
    if stored_answer is not None:
        completion = None
        if quest_session.status == STATUS_COMPLETED:
            completion = await get_recorded_completion(session, session_id=quest_session.id)
        return CheckpointSubmitResult(
            session=_build_session_view(quest_session, points=points),
            point_id=point.id,
            is_correct=stored_answer.is_correct,
            points_earned=stored_answer.points_earned,
            distance_m=stored_answer.distance_m,
            session_advanced=False,
            idempotent_replay=True,
            completion=completion,
        )

    progress = _progress_snapshot(quest_session, total_points=len(points))
    ensure_open(progress)
    if point_index != progress.current_point_index:
        raise CheckpointOrderError(
            f"checkpoint {point_index} submitted while checkpoint "
            f"{progress.current_point_index} is current"
        )

    distance_m = None
    if location is not None:
        distance_m = haversine_m(location, _point_coordinates(point))
        if distance_m > resolved.geofence_radius_m:
            raise CheckpointOutOfRangeError(
                distance_m=distance_m,
                radius_m=resolved.geofence_radius_m,
            )

    evaluation = evaluate_answer(
        task_type=point.task_type,
        correct_answer=point.correct_answer,
        reward_points=point.reward_points,
        answer=answer,
        photo_url=photo_url,
    )
    await QuestAnswersRepo.create(
        session,
        answer=QuestAnswer(
            session_id=quest_session.id,
            point_id=point.id,
            user_id=user_id,
            answer=answer,
            photo_url=photo_url,
            is_correct=evaluation.is_correct,
            points_earned=evaluation.points_earned,
            distance_m=distance_m,
            answered_at=now_utc,
        ),
    )

    advanced = advance(progress, points_earned=evaluation.points_earned)
    quest_session.current_point_index = advanced.current_point_index
    quest_session.accumulated_score = advanced.accumulated_score
    quest_session.status = advanced.status
    quest_session.updated_at = now_utc
    if advanced.status == STATUS_COMPLETED:
        quest_session.completed_at = now_utc
    await session.flush()

    await emit_analytics_event(
        session,
        event_type="checkpoint_answered",
        source=EVENT_SOURCE_API,
        user_id=user_id,
        payload={
            "session_id": str(quest_session.id),
            "point_id": str(point.id),
            "task_type": point.task_type,
            "is_correct": evaluation.is_correct,
            "points_earned": evaluation.points_earned,
        },
        happened_at=now_utc,
    )

    completion = None
    if advanced.status == STATUS_COMPLETED:
        quest = await QuestsRepo.get_by_id(session, quest_session.quest_id)
        if quest is None:
            raise QuestNotFoundError(f"quest {quest_session.quest_id} not found")
        completion = await award_completion(
            session,
            user_id=user_id,
            session_id=quest_session.id,
            difficulty=quest.difficulty,
            points_earned=advanced.accumulated_score,
            distance_m=route_distance_m([_point_coordinates(item) for item in points]),
            now_utc=now_utc,
            tables=resolved,
        )
        logger.info(
            "quest_session_completed",
            user_id=user_id,
            session_id=str(quest_session.id),
            score=advanced.accumulated_score,
        )

    return CheckpointSubmitResult(
        session=_build_session_view(quest_session, points=points),
        point_id=point.id,
        is_correct=evaluation.is_correct,
        points_earned=evaluation.points_earned,
        distance_m=distance_m,
        session_advanced=True,
        idempotent_replay=False,
        completion=completion,
    )
