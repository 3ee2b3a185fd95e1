from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from app.core.errors import SessionClosedError, SessionNotFoundError
from app.game.quests.service import QuestService

UTC = timezone.utc
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
MODULE = "app.game.quests.service.quests_manage"


class _FakeSession:
    async def flush(self) -> None:
        return None


@pytest.fixture
def quest_session(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    current = SimpleNamespace(
        id=uuid4(),
        user_id=8,
        quest_id=uuid4(),
        status="in_progress",
        current_point_index=1,
        accumulated_score=10,
        energy_cost=50,
        started_at=NOW - timedelta(minutes=20),
        completed_at=None,
        updated_at=NOW - timedelta(minutes=5),
    )
    events: list[dict[str, object]] = []

    async def fake_get_by_id(session, session_id):  # noqa: ANN001
        del session
        return current if session_id == current.id else None

    async def fake_list_points(session, *, quest_id):  # noqa: ANN001
        del session, quest_id
        return [SimpleNamespace(id=uuid4()) for _ in range(3)]

    async def fake_emit_analytics_event(session, **kwargs):  # noqa: ANN001
        del session
        events.append(kwargs)

    monkeypatch.setattr(f"{MODULE}.QuestSessionsRepo.get_by_id", fake_get_by_id)
    monkeypatch.setattr(f"{MODULE}.QuestSessionsRepo.get_by_id_for_update", fake_get_by_id)
    monkeypatch.setattr(f"{MODULE}.QuestsRepo.list_points", fake_list_points)
    monkeypatch.setattr(f"{MODULE}.emit_analytics_event", fake_emit_analytics_event)
    current.events = events
    return current


@pytest.mark.asyncio
async def test_abandon_marks_session_terminal(quest_session) -> None:
    view = await QuestService.abandon_quest(
        _FakeSession(), user_id=8, session_id=quest_session.id, now_utc=NOW
    )

    assert view.status == "abandoned"
    assert view.current_point_id is None
    assert quest_session.updated_at == NOW
    assert [event["event_type"] for event in quest_session.events] == ["quest_abandoned"]


@pytest.mark.asyncio
async def test_abandon_twice_raises_session_closed(quest_session) -> None:
    await QuestService.abandon_quest(_FakeSession(), user_id=8, session_id=quest_session.id, now_utc=NOW)

    with pytest.raises(SessionClosedError):
        await QuestService.abandon_quest(
            _FakeSession(), user_id=8, session_id=quest_session.id, now_utc=NOW
        )


@pytest.mark.asyncio
async def test_abandon_foreign_session_is_not_found(quest_session) -> None:
    with pytest.raises(SessionNotFoundError):
        await QuestService.abandon_quest(
            _FakeSession(), user_id=9, session_id=quest_session.id, now_utc=NOW
        )


@pytest.mark.asyncio
async def test_get_session_view_reports_current_checkpoint(quest_session) -> None:
    view = await QuestService.get_session_view(
        _FakeSession(), user_id=8, session_id=quest_session.id
    )

    assert view.status == "in_progress"
    assert view.total_points == 3
    assert view.current_point_id is not None
