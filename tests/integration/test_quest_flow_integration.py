from __future__ import annotations

from datetime import datetime, timedelta

import pytest
from sqlalchemy import select

from app.core.errors import CheckpointOrderError, InsufficientEnergyError, SessionClosedError
from app.db.models.analytics_events import AnalyticsEvent
from app.db.models.ledger_entries import LedgerEntry
from app.db.repo.player_accounts_repo import PlayerAccountsRepo
from app.db.session import SessionLocal
from app.game.players.service import PlayerService
from app.game.quests.service import QuestService
from tests.integration.quest_flow_fixtures import (
    TABLES,
    UTC,
    _create_achievement,
    _create_player,
    _create_quest,
)


async def _start(user_id: int, quest_id, *, key: str, now_utc: datetime):  # noqa: ANN001
    async with SessionLocal.begin() as session:
        return await QuestService.start_quest(
            session,
            user_id=user_id,
            quest_id=quest_id,
            idempotency_key=key,
            now_utc=now_utc,
            tables=TABLES,
        )


async def _submit(user_id: int, session_id, point_id, answer: str, *, now_utc: datetime):  # noqa: ANN001
    async with SessionLocal.begin() as session:
        return await QuestService.submit_checkpoint_answer(
            session,
            user_id=user_id,
            session_id=session_id,
            point_id=point_id,
            answer=answer,
            now_utc=now_utc,
            tables=TABLES,
        )


@pytest.mark.asyncio
async def test_full_quest_flow_credits_rewards_once() -> None:
    now_utc = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
    await _create_player(601, now_utc=now_utc)
    await _create_achievement("first_quest")
    quest_id, point_ids = await _create_quest()

    started = await _start(601, quest_id, key="flow-601", now_utc=now_utc)
    assert started.energy == 70
    session_id = started.session.session_id

    first = await _submit(601, session_id, point_ids[0], " НЕВА ", now_utc=now_utc)
    assert first.is_correct is True
    assert first.completion is None

    second = await _submit(601, session_id, point_ids[1], "не знаю", now_utc=now_utc)
    assert second.is_correct is False
    assert second.session.status == "completed"
    assert second.completion is not None
    assert second.completion.experience_gained == 50
    assert second.completion.coins_gained == 30
    assert second.completion.points_gained == 25
    assert second.completion.distance_m > 0
    assert [award.achievement_id for award in second.completion.newly_completed_achievements] == [
        "first_quest"
    ]

    replay = await _submit(601, session_id, point_ids[1], "не знаю", now_utc=now_utc)
    assert replay.idempotent_replay is True
    assert replay.completion is not None
    assert replay.completion.idempotent_replay is True
    assert replay.completion.coins_gained == 30
    assert [award.achievement_id for award in replay.completion.newly_completed_achievements] == [
        "first_quest"
    ]

    async with SessionLocal.begin() as session:
        account = await PlayerAccountsRepo.get_by_user_id(session, 601)
        entry_types = (
            await session.scalars(
                select(LedgerEntry.entry_type)
                .where(LedgerEntry.user_id == 601)
                .order_by(LedgerEntry.id)
            )
        ).all()
        event_types = set(
            (
                await session.scalars(
                    select(AnalyticsEvent.event_type).where(AnalyticsEvent.user_id == 601)
                )
            ).all()
        )

    assert account is not None
    assert account.experience == 50
    assert account.coins == 35
    assert account.points == 35
    assert account.quests_completed == 1
    assert account.total_distance_m == second.completion.distance_m
    assert entry_types == ["QUEST_START_ENERGY", "ACHIEVEMENT_REWARD", "QUEST_REWARD"]
    assert {"quest_started", "checkpoint_answered", "quest_completed", "achievement_unlocked"} <= event_types


@pytest.mark.asyncio
async def test_level_up_refills_energy_to_new_capacity() -> None:
    now_utc = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
    await _create_player(602, now_utc=now_utc, experience=80)
    quest_id, point_ids = await _create_quest()

    started = await _start(602, quest_id, key="flow-602", now_utc=now_utc)
    await _submit(602, started.session.session_id, point_ids[0], "нева", now_utc=now_utc)
    result = await _submit(602, started.session.session_id, point_ids[1], "шпиль", now_utc=now_utc)

    assert result.completion is not None
    assert result.completion.level_up is not None
    assert result.completion.level_up.new_level == 2
    assert result.completion.level_up_coins == 50

    async with SessionLocal.begin() as session:
        account = await PlayerAccountsRepo.get_by_user_id(session, 602)

    assert account is not None
    assert account.level == 2
    assert account.max_energy == 110
    assert account.energy == 110
    assert account.coins == 80


@pytest.mark.asyncio
async def test_checkpoints_must_be_answered_in_order() -> None:
    now_utc = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
    await _create_player(603, now_utc=now_utc)
    quest_id, point_ids = await _create_quest()
    started = await _start(603, quest_id, key="flow-603", now_utc=now_utc)

    with pytest.raises(CheckpointOrderError):
        await _submit(603, started.session.session_id, point_ids[1], "шпиль", now_utc=now_utc)


@pytest.mark.asyncio
async def test_abandoned_session_rejects_answers_and_keeps_energy_spent() -> None:
    now_utc = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
    await _create_player(604, now_utc=now_utc)
    quest_id, point_ids = await _create_quest()
    started = await _start(604, quest_id, key="flow-604", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        view = await QuestService.abandon_quest(
            session,
            user_id=604,
            session_id=started.session.session_id,
            now_utc=now_utc,
        )
    assert view.status == "abandoned"

    with pytest.raises(SessionClosedError):
        await _submit(604, started.session.session_id, point_ids[0], "нева", now_utc=now_utc)

    async with SessionLocal.begin() as session:
        account = await PlayerAccountsRepo.get_by_user_id(session, 604)
    assert account is not None
    assert account.energy == 70


@pytest.mark.asyncio
async def test_energy_regenerates_before_quest_start() -> None:
    now_utc = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
    await _create_player(605, now_utc=now_utc, energy=25)
    quest_id, _ = await _create_quest()

    with pytest.raises(InsufficientEnergyError):
        await _start(605, quest_id, key="flow-605-a", now_utc=now_utc)

    later = now_utc + timedelta(minutes=TABLES.energy_regen_minutes_per_point * 5)
    started = await _start(605, quest_id, key="flow-605-b", now_utc=later)
    assert started.energy == 0

    async with SessionLocal.begin() as session:
        snapshot = await PlayerService.get_account_snapshot(
            session, user_id=605, now_utc=later, tables=TABLES
        )
    assert snapshot.energy == 0
    assert snapshot.energy_state.value == "E_EMPTY"
    assert snapshot.affordable_difficulties == ()
