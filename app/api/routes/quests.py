from __future__ import annotations

from uuid import UUID

from fastapi import APIRouter, Path, Query, Request

from app.core.clock import utc_now
from app.db.session import SessionLocal
from app.economy.leveling.types import LevelUpResult
from app.game.quests.geo import Coordinates
from app.game.quests.service import QuestService
from app.game.quests.types import CompletionResult, QuestSessionView

from .internal_helpers import ROUTE_ERRORS, _as_http_error, _assert_internal_access
from .quests_models import (
    AbandonQuestRequest,
    AchievementAwardResponse,
    CompletionResponse,
    LevelUpResponse,
    QuestSessionListResponse,
    QuestSessionResponse,
    StartQuestRequest,
    StartQuestResponse,
    SubmitAnswerRequest,
    SubmitAnswerResponse,
)

router = APIRouter(tags=["quests"])


def _session_response(view: QuestSessionView) -> QuestSessionResponse:
    return QuestSessionResponse(
        session_id=view.session_id,
        quest_id=view.quest_id,
        status=view.status,
        current_point_index=view.current_point_index,
        total_points=view.total_points,
        accumulated_score=view.accumulated_score,
        energy_cost=view.energy_cost,
        started_at=view.started_at,
        completed_at=view.completed_at,
        current_point_id=view.current_point_id,
    )


def _level_up_response(level_up: LevelUpResult | None) -> LevelUpResponse | None:
    if level_up is None:
        return None
    return LevelUpResponse(
        previous_level=level_up.previous_level,
        new_level=level_up.new_level,
        title=level_up.title,
        bonus_coins=level_up.bonus_coins,
        new_max_energy=level_up.new_max_energy,
    )


def _completion_response(completion: CompletionResult | None) -> CompletionResponse | None:
    if completion is None:
        return None
    return CompletionResponse(
        experience_gained=completion.experience_gained,
        coins_gained=completion.coins_gained,
        level_up_coins=completion.level_up_coins,
        points_gained=completion.points_gained,
        distance_m=completion.distance_m,
        level_up=_level_up_response(completion.level_up),
        newly_completed_achievements=[
            AchievementAwardResponse(
                achievement_id=award.achievement_id,
                title=award.title,
                reward_points=award.reward_points,
                reward_coins=award.reward_coins,
            )
            for award in completion.newly_completed_achievements
        ],
        idempotent_replay=completion.idempotent_replay,
    )


@router.post("/v1/quests/{quest_id}/start", response_model=StartQuestResponse)
async def start_quest(
    quest_id: UUID,
    payload: StartQuestRequest,
    request: Request,
) -> StartQuestResponse:
    _assert_internal_access(request)
    now_utc = utc_now()
    try:
        async with SessionLocal.begin() as session:
            result = await QuestService.start_quest(
                session,
                user_id=payload.user_id,
                quest_id=quest_id,
                idempotency_key=payload.idempotency_key,
                now_utc=now_utc,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc

    return StartQuestResponse(
        session=_session_response(result.session),
        energy=result.energy,
        max_energy=result.max_energy,
        idempotent_replay=result.idempotent_replay,
    )


@router.post("/v1/quest-sessions/{session_id}/answers", response_model=SubmitAnswerResponse)
async def submit_checkpoint_answer(
    session_id: UUID,
    payload: SubmitAnswerRequest,
    request: Request,
) -> SubmitAnswerResponse:
    _assert_internal_access(request)
    now_utc = utc_now()
    location = None
    if payload.location is not None:
        location = Coordinates(
            latitude=payload.location.latitude,
            longitude=payload.location.longitude,
        )
    try:
        async with SessionLocal.begin() as session:
            result = await QuestService.submit_checkpoint_answer(
                session,
                user_id=payload.user_id,
                session_id=session_id,
                point_id=payload.point_id,
                answer=payload.answer,
                location=location,
                photo_url=payload.photo_url,
                now_utc=now_utc,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc

    return SubmitAnswerResponse(
        is_correct=result.is_correct,
        points_earned=result.points_earned,
        session_advanced=result.session_advanced,
        status=result.session.status,
        current_point_index=result.session.current_point_index,
        distance_m=result.distance_m,
        idempotent_replay=result.idempotent_replay,
        session=_session_response(result.session),
        completion=_completion_response(result.completion),
    )


@router.post("/v1/quest-sessions/{session_id}/abandon", response_model=QuestSessionResponse)
async def abandon_quest(
    session_id: UUID,
    payload: AbandonQuestRequest,
    request: Request,
) -> QuestSessionResponse:
    _assert_internal_access(request)
    now_utc = utc_now()
    try:
        async with SessionLocal.begin() as session:
            view = await QuestService.abandon_quest(
                session,
                user_id=payload.user_id,
                session_id=session_id,
                now_utc=now_utc,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc
    return _session_response(view)


@router.get("/v1/quest-sessions/{session_id}", response_model=QuestSessionResponse)
async def get_quest_session(
    session_id: UUID,
    request: Request,
    user_id: int = Query(gt=0),
) -> QuestSessionResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            view = await QuestService.get_session_view(
                session,
                user_id=user_id,
                session_id=session_id,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc
    return _session_response(view)


@router.get("/v1/players/{user_id}/quest-sessions", response_model=QuestSessionListResponse)
async def list_quest_sessions(
    request: Request,
    user_id: int = Path(gt=0),
    status: str | None = Query(default=None),
    limit: int = Query(default=50, ge=1, le=100),
) -> QuestSessionListResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            views = await QuestService.list_sessions(
                session,
                user_id=user_id,
                status=status,
                limit=limit,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc
    return QuestSessionListResponse(
        user_id=user_id,
        sessions=[_session_response(view) for view in views],
    )
