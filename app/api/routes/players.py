from __future__ import annotations

from fastapi import APIRouter, Path, Query, Request

from app.core.clock import utc_now
from app.db.session import SessionLocal
from app.economy.energy.service import EnergyService
from app.game.players.service import PlayerService
from app.game.players.types import PlayerSnapshot

from .internal_helpers import ROUTE_ERRORS, _as_http_error, _assert_internal_access
from .players_models import (
    AchievementListResponse,
    AchievementProgressResponse,
    LeaderboardEntryResponse,
    LeaderboardResponse,
    LevelProgressResponse,
    PlayerRankResponse,
    PlayerSnapshotResponse,
    ProvisionPlayerResponse,
    PurchaseEnergyRequest,
    PurchaseEnergyResponse,
)

router = APIRouter(tags=["players"])


def energy_purchase_key(*, user_id: int, idempotency_key: str) -> str:
    return f"energy_purchase:{user_id}:{idempotency_key}"


def _snapshot_response(snapshot: PlayerSnapshot) -> PlayerSnapshotResponse:
    progress = snapshot.level_progress
    return PlayerSnapshotResponse(
        user_id=snapshot.user_id,
        energy=snapshot.energy,
        max_energy=snapshot.max_energy,
        energy_state=snapshot.energy_state.value,
        next_energy_at=snapshot.next_energy_at,
        experience=snapshot.experience,
        level=snapshot.level,
        level_title=snapshot.level_title,
        level_progress=LevelProgressResponse(
            level=progress.level,
            title=progress.title,
            current=progress.current,
            required=progress.required,
            percentage=round(progress.percentage, 2),
            is_max_level=progress.is_max_level,
            next_level_xp=progress.next_level_xp,
        ),
        coins=snapshot.coins,
        points=snapshot.points,
        quests_completed=snapshot.quests_completed,
        total_distance_m=snapshot.total_distance_m,
        affordable_difficulties=list(snapshot.affordable_difficulties),
    )


@router.post("/v1/players/{user_id}", response_model=ProvisionPlayerResponse)
async def provision_player(
    request: Request,
    user_id: int = Path(gt=0),
) -> ProvisionPlayerResponse:
    _assert_internal_access(request)
    now_utc = utc_now()
    try:
        async with SessionLocal.begin() as session:
            result = await PlayerService.provision_account(
                session,
                user_id=user_id,
                now_utc=now_utc,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc
    return ProvisionPlayerResponse(
        player=_snapshot_response(result.snapshot),
        created=result.created,
    )


@router.get("/v1/players/{user_id}", response_model=PlayerSnapshotResponse)
async def get_player(
    request: Request,
    user_id: int = Path(gt=0),
) -> PlayerSnapshotResponse:
    _assert_internal_access(request)
    now_utc = utc_now()
    try:
        async with SessionLocal.begin() as session:
            snapshot = await PlayerService.get_account_snapshot(
                session,
                user_id=user_id,
                now_utc=now_utc,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc
    return _snapshot_response(snapshot)


@router.get("/v1/players/{user_id}/achievements", response_model=AchievementListResponse)
async def get_player_achievements(
    request: Request,
    user_id: int = Path(gt=0),
) -> AchievementListResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            views = await PlayerService.get_achievement_progress(session, user_id=user_id)
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc

    return AchievementListResponse(
        user_id=user_id,
        completed_total=sum(1 for view in views if view.is_completed),
        achievements=[
            AchievementProgressResponse(
                achievement_id=view.achievement_id,
                title=view.title,
                category=view.category,
                condition_type=view.condition_type,
                condition_target=view.condition_target,
                reward_points=view.reward_points,
                reward_coins=view.reward_coins,
                is_secret=view.is_secret,
                progress_percent=view.progress_percent,
                is_completed=view.is_completed,
                completed_at=view.completed_at,
            )
            for view in views
        ],
    )


@router.post("/v1/players/{user_id}/energy/purchase", response_model=PurchaseEnergyResponse)
async def purchase_energy(
    payload: PurchaseEnergyRequest,
    request: Request,
    user_id: int = Path(gt=0),
) -> PurchaseEnergyResponse:
    _assert_internal_access(request)
    now_utc = utc_now()
    try:
        async with SessionLocal.begin() as session:
            result = await EnergyService.purchase_energy(
                session,
                user_id=user_id,
                amount=payload.amount,
                cost_coins=payload.cost_coins,
                idempotency_key=energy_purchase_key(
                    user_id=user_id, idempotency_key=payload.idempotency_key
                ),
                now_utc=now_utc,
            )
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc

    return PurchaseEnergyResponse(
        energy=result.energy,
        max_energy=result.max_energy,
        energy_added=result.energy_added,
        coins_spent=result.coins_spent,
        coins=result.coins,
        idempotent_replay=result.idempotent_replay,
    )


@router.get("/v1/leaderboard", response_model=LeaderboardResponse)
async def get_leaderboard(
    request: Request,
    limit: int = Query(default=100, ge=1, le=100),
) -> LeaderboardResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            entries = await PlayerService.get_leaderboard(session, limit=limit)
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc

    return LeaderboardResponse(
        entries=[
            LeaderboardEntryResponse(
                rank=entry.rank,
                user_id=entry.user_id,
                points=entry.points,
                level=entry.level,
                level_title=entry.level_title,
                quests_completed=entry.quests_completed,
            )
            for entry in entries
        ]
    )


@router.get("/v1/players/{user_id}/rank", response_model=PlayerRankResponse)
async def get_player_rank(
    request: Request,
    user_id: int = Path(gt=0),
) -> PlayerRankResponse:
    _assert_internal_access(request)
    try:
        async with SessionLocal.begin() as session:
            rank = await PlayerService.get_player_rank(session, user_id=user_id)
    except ROUTE_ERRORS as exc:
        raise _as_http_error(exc) from exc
    return PlayerRankResponse(user_id=user_id, rank=rank)
