from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.errors import InvalidArgumentError
from app.economy.energy.types import EnergyBucketState, EnergySnapshot
from app.economy.rewards.tables import DEFAULT_REWARD_TABLES
from app.game.players.service import PlayerService

UTC = timezone.utc
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
MODULE = "app.game.players.service"


def _account(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "user_id": 21,
        "energy": 35,
        "max_energy": 110,
        "experience": 200,
        "level": 2,
        "coins": 70,
        "points": 140,
        "quests_completed": 3,
        "total_distance_m": 1200,
        "last_energy_update_at": NOW - timedelta(minutes=4),
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def player(monkeypatch: pytest.MonkeyPatch) -> SimpleNamespace:
    account = _account()

    async def fake_sync_energy_clock(session, *, user_id, now_utc, tables=None):  # noqa: ANN001
        del session, user_id, now_utc, tables
        return EnergySnapshot(
            energy=account.energy,
            max_energy=account.max_energy,
            last_energy_update_at=account.last_energy_update_at,
        )

    async def fake_load_account(session, *, user_id):  # noqa: ANN001
        del session, user_id
        return account

    monkeypatch.setattr(f"{MODULE}.EnergyService.sync_energy_clock", fake_sync_energy_clock)
    monkeypatch.setattr(f"{MODULE}.load_account", fake_load_account)
    return account


@pytest.mark.asyncio
async def test_account_snapshot_includes_level_title_and_progress(player) -> None:
    snapshot = await PlayerService.get_account_snapshot(
        object(), user_id=21, now_utc=NOW, tables=DEFAULT_REWARD_TABLES
    )

    assert snapshot.level_title == "Путешественник"
    assert snapshot.level_progress.current == 100
    assert snapshot.level_progress.required == 200
    assert snapshot.energy_state == EnergyBucketState.LOW
    assert snapshot.affordable_difficulties == ("easy",)
    assert snapshot.next_energy_at == player.last_energy_update_at + timedelta(minutes=10)


@pytest.mark.asyncio
async def test_full_account_has_no_next_energy_time(player) -> None:
    player.energy = 110

    snapshot = await PlayerService.get_account_snapshot(
        object(), user_id=21, now_utc=NOW, tables=DEFAULT_REWARD_TABLES
    )

    assert snapshot.next_energy_at is None
    assert snapshot.energy_state == EnergyBucketState.FULL
    assert snapshot.affordable_difficulties == ("easy", "medium", "hard")


@pytest.mark.asyncio
async def test_provision_rejects_non_positive_user_id(player) -> None:
    with pytest.raises(InvalidArgumentError):
        await PlayerService.provision_account(object(), user_id=0, now_utc=NOW)


@pytest.mark.asyncio
async def test_leaderboard_ranks_accounts_in_repository_order(monkeypatch: pytest.MonkeyPatch) -> None:
    accounts = [
        _account(user_id=4, points=500, level=3, quests_completed=9),
        _account(user_id=7, points=500, level=1, quests_completed=6),
        _account(user_id=2, points=120),
    ]
    captured: dict[str, object] = {}

    async def fake_list_top_by_points(session, *, limit):  # noqa: ANN001
        del session
        captured["limit"] = limit
        return accounts

    monkeypatch.setattr(f"{MODULE}.PlayerAccountsRepo.list_top_by_points", fake_list_top_by_points)

    entries = await PlayerService.get_leaderboard(object(), limit=3, tables=DEFAULT_REWARD_TABLES)

    assert captured == {"limit": 3}
    assert [(entry.rank, entry.user_id) for entry in entries] == [(1, 4), (2, 7), (3, 2)]
    assert entries[0].level_title == "Исследователь"
    assert entries[1].level_title == "Новичок"
    assert entries[0].quests_completed == 9


@pytest.mark.asyncio
async def test_leaderboard_rejects_non_positive_limit() -> None:
    with pytest.raises(InvalidArgumentError):
        await PlayerService.get_leaderboard(object(), limit=0, tables=DEFAULT_REWARD_TABLES)


@pytest.mark.asyncio
async def test_player_rank_counts_accounts_ranked_above(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    async def fake_get_by_user_id(session, user_id):  # noqa: ANN001
        del session
        return _account(user_id=user_id, points=300)

    async def fake_count_ranked_above(session, *, points, user_id):  # noqa: ANN001
        del session
        captured.update({"points": points, "user_id": user_id})
        return 4

    monkeypatch.setattr(f"{MODULE}.PlayerAccountsRepo.get_by_user_id", fake_get_by_user_id)
    monkeypatch.setattr(f"{MODULE}.PlayerAccountsRepo.count_ranked_above", fake_count_ranked_above)

    assert await PlayerService.get_player_rank(object(), user_id=21) == 5
    assert captured == {"points": 300, "user_id": 21}


@pytest.mark.asyncio
async def test_player_rank_for_unknown_player_is_zero(monkeypatch: pytest.MonkeyPatch) -> None:
    async def fake_get_by_user_id(session, user_id):  # noqa: ANN001
        del session, user_id
        return None

    async def fake_count_ranked_above(session, **kwargs):  # noqa: ANN001
        del session, kwargs
        raise AssertionError("rank query must not run without an account")

    monkeypatch.setattr(f"{MODULE}.PlayerAccountsRepo.get_by_user_id", fake_get_by_user_id)
    monkeypatch.setattr(f"{MODULE}.PlayerAccountsRepo.count_ranked_above", fake_count_ranked_above)

    assert await PlayerService.get_player_rank(object(), user_id=404) == 0
