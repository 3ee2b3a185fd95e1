from __future__ import annotations

from datetime import datetime, timezone
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from app.api.routes import internal_helpers, quests
from app.core.errors import (
    CheckpointOrderError,
    CheckpointOutOfRangeError,
    ConcurrencyConflictError,
    InsufficientEnergyError,
    InvalidArgumentError,
    QuestNotFoundError,
    SessionClosedError,
)
from app.game.quests.types import (
    CheckpointSubmitResult,
    CompletionResult,
    QuestSessionView,
    StartQuestResult,
)
from app.main import app

from tests.api.route_fixtures import AUTH_HEADERS, FakeSessionLocal, internal_settings

UTC = timezone.utc
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)


@pytest.fixture(autouse=True)
def _patch_infrastructure(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(internal_helpers, "get_settings", lambda: internal_settings())
    monkeypatch.setattr(quests, "SessionLocal", FakeSessionLocal)


def _view(*, status: str = "in_progress", index: int = 0) -> QuestSessionView:
    return QuestSessionView(
        session_id=uuid4(),
        quest_id=uuid4(),
        user_id=5,
        status=status,
        current_point_index=index,
        total_points=3,
        accumulated_score=0,
        energy_cost=30,
        started_at=NOW,
    )


def _raise(error: Exception):
    async def _handler(session, **kwargs):  # noqa: ANN001
        del session, kwargs
        raise error

    return _handler


def test_start_quest_rejects_missing_token() -> None:
    client = TestClient(app)
    response = client.post(
        f"/v1/quests/{uuid4()}/start",
        json={"user_id": 5, "idempotency_key": "k1"},
    )

    assert response.status_code == 403
    assert response.json() == {"detail": {"code": "E_FORBIDDEN"}}


def test_start_quest_rejects_disallowed_ip(monkeypatch) -> None:
    monkeypatch.setattr(
        internal_helpers,
        "get_settings",
        lambda: internal_settings(allowlist="192.168.0.0/16"),
    )

    client = TestClient(app)
    response = client.post(
        f"/v1/quests/{uuid4()}/start",
        json={"user_id": 5, "idempotency_key": "k1"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 403


def test_start_quest_returns_session(monkeypatch) -> None:
    view = _view()

    async def fake_start_quest(session, **kwargs):  # noqa: ANN001
        del session
        assert kwargs["user_id"] == 5
        assert kwargs["idempotency_key"] == "k1"
        return StartQuestResult(session=view, energy=10, max_energy=100, idempotent_replay=False)

    monkeypatch.setattr(quests.QuestService, "start_quest", fake_start_quest)

    client = TestClient(app)
    response = client.post(
        f"/v1/quests/{view.quest_id}/start",
        json={"user_id": 5, "idempotency_key": "k1"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["session"]["session_id"] == str(view.session_id)
    assert payload["energy"] == 10
    assert payload["idempotent_replay"] is False


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (InsufficientEnergyError(required=30, available=10), 402, "E_INSUFFICIENT_ENERGY"),
        (QuestNotFoundError("missing"), 404, "E_NOT_FOUND"),
        (InvalidArgumentError("no checkpoints"), 422, "E_INVALID_ARGUMENT"),
        (ConcurrencyConflictError("stale"), 409, "E_CONFLICT"),
        (OperationalError("SELECT 1", {}, ConnectionError("down")), 503, "E_STORAGE_UNAVAILABLE"),
    ],
)
def test_start_quest_maps_engine_errors(monkeypatch, error: Exception, status_code: int, code: str) -> None:
    monkeypatch.setattr(quests.QuestService, "start_quest", _raise(error))

    client = TestClient(app)
    response = client.post(
        f"/v1/quests/{uuid4()}/start",
        json={"user_id": 5, "idempotency_key": "k1"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == status_code
    assert response.json()["detail"]["code"] == code


def test_insufficient_energy_reports_amounts(monkeypatch) -> None:
    monkeypatch.setattr(
        quests.QuestService,
        "start_quest",
        _raise(InsufficientEnergyError(required=30, available=10)),
    )

    client = TestClient(app)
    response = client.post(
        f"/v1/quests/{uuid4()}/start",
        json={"user_id": 5, "idempotency_key": "k1"},
        headers=AUTH_HEADERS,
    )

    assert response.json()["detail"] == {
        "code": "E_INSUFFICIENT_ENERGY",
        "required": 30,
        "available": 10,
    }


def test_submit_answer_returns_completion(monkeypatch) -> None:
    view = _view(status="completed", index=3)
    captured: dict[str, object] = {}

    async def fake_submit(session, **kwargs):  # noqa: ANN001
        del session
        captured.update(kwargs)
        return CheckpointSubmitResult(
            session=view,
            point_id=kwargs["point_id"],
            is_correct=True,
            points_earned=10,
            distance_m=12.5,
            session_advanced=True,
            idempotent_replay=False,
            completion=CompletionResult(
                session_id=view.session_id,
                experience_gained=50,
                coins_gained=30,
                level_up_coins=0,
                points_gained=30,
                distance_m=420,
            ),
        )

    monkeypatch.setattr(quests.QuestService, "submit_checkpoint_answer", fake_submit)

    client = TestClient(app)
    response = client.post(
        f"/v1/quest-sessions/{view.session_id}/answers",
        json={
            "user_id": 5,
            "point_id": str(uuid4()),
            "answer": ["C", "A"],
            "location": {"latitude": 55.75, "longitude": 37.62},
        },
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "completed"
    assert payload["session_advanced"] is True
    assert payload["completion"]["experience_gained"] == 50
    assert payload["completion"]["newly_completed_achievements"] == []
    assert captured["location"].latitude == 55.75
    assert captured["answer"] == ["C", "A"]


def test_submit_answer_rejects_invalid_location() -> None:
    client = TestClient(app)
    response = client.post(
        f"/v1/quest-sessions/{uuid4()}/answers",
        json={
            "user_id": 5,
            "point_id": str(uuid4()),
            "answer": "x",
            "location": {"latitude": 120.0, "longitude": 37.62},
        },
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 422


@pytest.mark.parametrize(
    ("error", "status_code", "code"),
    [
        (SessionClosedError("closed"), 409, "E_SESSION_CLOSED"),
        (CheckpointOrderError("not current"), 409, "E_CHECKPOINT_ORDER"),
        (CheckpointOutOfRangeError(distance_m=250.0, radius_m=100.0), 403, "E_OUT_OF_RANGE"),
    ],
)
def test_submit_answer_maps_progression_errors(
    monkeypatch, error: Exception, status_code: int, code: str
) -> None:
    monkeypatch.setattr(quests.QuestService, "submit_checkpoint_answer", _raise(error))

    client = TestClient(app)
    response = client.post(
        f"/v1/quest-sessions/{uuid4()}/answers",
        json={"user_id": 5, "point_id": str(uuid4()), "answer": "x"},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == status_code
    assert response.json()["detail"]["code"] == code


def test_abandon_returns_session(monkeypatch) -> None:
    view = _view(status="abandoned", index=1)

    async def fake_abandon(session, **kwargs):  # noqa: ANN001
        del session, kwargs
        return view

    monkeypatch.setattr(quests.QuestService, "abandon_quest", fake_abandon)

    client = TestClient(app)
    response = client.post(
        f"/v1/quest-sessions/{view.session_id}/abandon",
        json={"user_id": 5},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["status"] == "abandoned"


def test_list_quest_sessions_passes_filter_and_limit(monkeypatch) -> None:
    views = [_view(status="completed", index=3), _view(status="completed", index=3)]
    captured: dict[str, object] = {}

    async def fake_list_sessions(session, **kwargs):  # noqa: ANN001
        del session
        captured.update(kwargs)
        return views

    monkeypatch.setattr(quests.QuestService, "list_sessions", fake_list_sessions)

    client = TestClient(app)
    response = client.get(
        "/v1/players/5/quest-sessions",
        params={"status": "completed", "limit": 10},
        headers=AUTH_HEADERS,
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["user_id"] == 5
    assert [item["session_id"] for item in payload["sessions"]] == [str(view.session_id) for view in views]
    assert captured == {"user_id": 5, "status": "completed", "limit": 10}


def test_list_quest_sessions_rejects_unknown_status(monkeypatch) -> None:
    monkeypatch.setattr(
        quests.QuestService,
        "list_sessions",
        _raise(InvalidArgumentError("unknown quest session status: 'paused'")),
    )

    client = TestClient(app)
    response = client.get("/v1/players/5/quest-sessions", params={"status": "paused"}, headers=AUTH_HEADERS)

    assert response.status_code == 422
    assert response.json()["detail"]["code"] == "E_INVALID_ARGUMENT"


def test_list_quest_sessions_caps_limit() -> None:
    client = TestClient(app)
    response = client.get("/v1/players/5/quest-sessions", params={"limit": 101}, headers=AUTH_HEADERS)

    assert response.status_code == 422
