from __future__ import annotations

from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.core.errors import InsufficientCoinsError, InsufficientEnergyError, InvalidArgumentError
from app.economy.energy.service import EnergyService
from app.economy.energy.types import EnergyBucketState
from app.economy.rewards.tables import DEFAULT_REWARD_TABLES

UTC = timezone.utc
NOW = datetime(2026, 5, 1, 12, 0, tzinfo=UTC)
MODULE = "app.economy.energy.service"


def _account(**overrides: object) -> SimpleNamespace:
    values: dict[str, object] = {
        "user_id": 7,
        "energy": 40,
        "max_energy": 100,
        "coins": 0,
        "last_energy_update_at": NOW,
        "version": 3,
    }
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.fixture
def ledger(monkeypatch: pytest.MonkeyPatch) -> dict[str, object]:
    state: dict[str, object] = {"existing": None, "created": [], "writes": [], "events": []}

    async def fake_get_by_idempotency_key(session, idempotency_key):  # noqa: ANN001
        del session, idempotency_key
        return state["existing"]

    async def fake_create(session, *, entry):  # noqa: ANN001
        del session
        state["created"].append(entry)
        return entry

    async def fake_write_account(session, *, account, values, now_utc):  # noqa: ANN001
        del session, now_utc
        state["writes"].append((account.version, values))

    async def fake_emit_analytics_event(session, **kwargs):  # noqa: ANN001
        del session
        state["events"].append(kwargs)

    monkeypatch.setattr(f"{MODULE}.LedgerRepo.get_by_idempotency_key", fake_get_by_idempotency_key)
    monkeypatch.setattr(f"{MODULE}.LedgerRepo.create", fake_create)
    monkeypatch.setattr(f"{MODULE}.write_account", fake_write_account)
    monkeypatch.setattr(f"{MODULE}.emit_analytics_event", fake_emit_analytics_event)
    return state


def _use_account(monkeypatch: pytest.MonkeyPatch, account: SimpleNamespace) -> None:
    async def fake_load_account(session, *, user_id):  # noqa: ANN001
        del session, user_id
        return account

    monkeypatch.setattr(f"{MODULE}.load_account", fake_load_account)


@pytest.mark.asyncio
async def test_consume_for_easy_quest_spends_cost(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=40))

    result = await EnergyService.consume_for_quest(
        object(),
        user_id=7,
        difficulty="easy",
        idempotency_key="quest_start:k1",
        now_utc=NOW,
        tables=DEFAULT_REWARD_TABLES,
    )

    assert result.energy == 10
    assert result.energy_cost == 30
    assert result.state == EnergyBucketState.EMPTY
    assert ledger["writes"] == [(3, {"energy": 10, "last_energy_update_at": NOW})]
    [entry] = ledger["created"]
    assert entry.entry_type == "QUEST_START_ENERGY"
    assert entry.energy_delta == -30
    assert [event["event_type"] for event in ledger["events"]] == ["energy_zero"]


@pytest.mark.asyncio
async def test_consume_with_insufficient_energy_changes_nothing(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=10))

    with pytest.raises(InsufficientEnergyError) as exc_info:
        await EnergyService.consume_for_quest(
            object(),
            user_id=7,
            difficulty="easy",
            idempotency_key="quest_start:k2",
            now_utc=NOW,
            tables=DEFAULT_REWARD_TABLES,
        )

    assert exc_info.value.required == 30
    assert exc_info.value.available == 10
    assert ledger["writes"] == []
    assert ledger["created"] == []


@pytest.mark.asyncio
async def test_consume_counts_lazy_regen_before_checking(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=25, last_energy_update_at=NOW - timedelta(minutes=50)))

    result = await EnergyService.consume_for_quest(
        object(),
        user_id=7,
        difficulty="easy",
        idempotency_key="quest_start:k3",
        now_utc=NOW,
        tables=DEFAULT_REWARD_TABLES,
    )

    assert result.regenerated == 5
    assert result.energy == 0


@pytest.mark.asyncio
async def test_consume_replay_does_not_spend_twice(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=10))
    ledger["existing"] = SimpleNamespace(energy_delta=-30)

    result = await EnergyService.consume_for_quest(
        object(),
        user_id=7,
        difficulty="easy",
        idempotency_key="quest_start:k1",
        now_utc=NOW,
        tables=DEFAULT_REWARD_TABLES,
    )

    assert result.energy == 10
    assert result.energy_cost == 30
    assert ledger["writes"] == []


@pytest.mark.asyncio
async def test_consume_unknown_difficulty_raises_before_loading(monkeypatch, ledger) -> None:
    with pytest.raises(InvalidArgumentError):
        await EnergyService.consume_for_quest(
            object(),
            user_id=7,
            difficulty="epic",
            idempotency_key="quest_start:k4",
            now_utc=NOW,
            tables=DEFAULT_REWARD_TABLES,
        )


@pytest.mark.asyncio
async def test_purchase_energy_spends_coins_and_caps(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=90, coins=100))

    result = await EnergyService.purchase_energy(
        object(),
        user_id=7,
        amount=20,
        cost_coins=40,
        idempotency_key="energy_purchase:7:p1",
        now_utc=NOW,
        tables=DEFAULT_REWARD_TABLES,
    )

    assert result.energy == 100
    assert result.energy_added == 10
    assert result.coins == 60
    assert result.idempotent_replay is False
    [entry] = ledger["created"]
    assert entry.entry_type == "ENERGY_PURCHASE"
    assert entry.coins_delta == -40


@pytest.mark.asyncio
async def test_purchase_energy_requires_coins(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=10, coins=5))

    with pytest.raises(InsufficientCoinsError):
        await EnergyService.purchase_energy(
            object(),
            user_id=7,
            amount=20,
            cost_coins=40,
            idempotency_key="energy_purchase:7:p2",
            now_utc=NOW,
            tables=DEFAULT_REWARD_TABLES,
        )
    assert ledger["writes"] == []


@pytest.mark.asyncio
async def test_purchase_energy_rejects_full_account(monkeypatch, ledger) -> None:
    _use_account(monkeypatch, _account(energy=100, coins=500))

    with pytest.raises(InvalidArgumentError):
        await EnergyService.purchase_energy(
            object(),
            user_id=7,
            amount=20,
            cost_coins=40,
            idempotency_key="energy_purchase:7:p3",
            now_utc=NOW,
            tables=DEFAULT_REWARD_TABLES,
        )
