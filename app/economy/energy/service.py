from __future__ import annotations

from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.analytics_events import EVENT_SOURCE_SYSTEM, emit_analytics_event
from app.core.errors import InsufficientCoinsError, InsufficientEnergyError, InvalidArgumentError
from app.db.models.ledger_entries import LedgerEntry
from app.db.models.player_accounts import PlayerAccount
from app.db.repo.ledger_repo import LedgerRepo
from app.economy.accounts import load_account, write_account
from app.economy.energy.rules import apply_regen, classify_energy_state, consume_quest_energy, credit_energy
from app.economy.energy.types import (
    EnergyBucketState,
    EnergyConsumeResult,
    EnergyPurchaseResult,
    EnergySnapshot,
)
from app.economy.rewards.tables import RewardTables, resolve_tables


class EnergyService:
    @staticmethod
    def _snapshot_from_model(account: PlayerAccount) -> EnergySnapshot:
        return EnergySnapshot(
            energy=account.energy,
            max_energy=account.max_energy,
            last_energy_update_at=account.last_energy_update_at,
        )

    @staticmethod
    def _snapshot_values(snapshot: EnergySnapshot) -> dict[str, object]:
        return {
            "energy": snapshot.energy,
            "last_energy_update_at": snapshot.last_energy_update_at,
        }

    @staticmethod
    async def sync_energy_clock(
        session: AsyncSession,
        *,
        user_id: int,
        now_utc: datetime,
        tables: RewardTables | None = None,
    ) -> EnergySnapshot:
        resolved = resolve_tables(tables)
        account = await load_account(session, user_id=user_id)
        snapshot = EnergyService._snapshot_from_model(account)
        regenerated_snapshot, _ = apply_regen(snapshot, now_utc=now_utc, tables=resolved)
        if regenerated_snapshot != snapshot:
            await write_account(
                session,
                account=account,
                values=EnergyService._snapshot_values(regenerated_snapshot),
                now_utc=now_utc,
            )
        return regenerated_snapshot

    @staticmethod
    async def consume_for_quest(
        session: AsyncSession,
        *,
        user_id: int,
        difficulty: str,
        idempotency_key: str,
        now_utc: datetime,
        tables: RewardTables | None = None,
    ) -> EnergyConsumeResult:
        resolved = resolve_tables(tables)
        resolved.quest_reward(difficulty)
        account = await load_account(session, user_id=user_id)
        snapshot, regenerated = apply_regen(
            EnergyService._snapshot_from_model(account),
            now_utc=now_utc,
            tables=resolved,
        )

        existing_entry = await LedgerRepo.get_by_idempotency_key(session, idempotency_key)
        if existing_entry is not None:
            return EnergyConsumeResult(
                energy=account.energy,
                max_energy=account.max_energy,
                energy_cost=-existing_entry.energy_delta,
                regenerated=0,
                state=classify_energy_state(
                    EnergyService._snapshot_from_model(account), tables=resolved
                ),
            )

        before_state = classify_energy_state(snapshot, tables=resolved)
        snapshot_after, allowed, energy_cost = consume_quest_energy(
            snapshot, difficulty, tables=resolved
        )
        if not allowed:
            raise InsufficientEnergyError(required=energy_cost, available=snapshot.energy)

        await write_account(
            session,
            account=account,
            values=EnergyService._snapshot_values(snapshot_after),
            now_utc=now_utc,
        )
        await LedgerRepo.create(
            session,
            entry=LedgerEntry(
                user_id=user_id,
                entry_type="QUEST_START_ENERGY",
                energy_delta=-energy_cost,
                source="QUEST",
                idempotency_key=idempotency_key,
                metadata_={
                    "difficulty": difficulty,
                    "balance_after": snapshot_after.energy,
                    "regenerated": regenerated,
                },
                created_at=now_utc,
            ),
        )

        after_state = classify_energy_state(snapshot_after, tables=resolved)
        if before_state != after_state and after_state == EnergyBucketState.EMPTY:
            await emit_analytics_event(
                session,
                event_type="energy_zero",
                source=EVENT_SOURCE_SYSTEM,
                user_id=user_id,
                payload={
                    "before_state": before_state.value,
                    "after_state": after_state.value,
                    "energy": snapshot_after.energy,
                },
                happened_at=now_utc,
            )

        return EnergyConsumeResult(
            energy=snapshot_after.energy,
            max_energy=snapshot_after.max_energy,
            energy_cost=energy_cost,
            regenerated=regenerated,
            state=after_state,
        )

    @staticmethod
    async def purchase_energy(
        session: AsyncSession,
        *,
        user_id: int,
        amount: int,
        cost_coins: int,
        idempotency_key: str,
        now_utc: datetime,
        tables: RewardTables | None = None,
    ) -> EnergyPurchaseResult:
        if amount <= 0:
            raise InvalidArgumentError("amount must be positive")
        if cost_coins < 0:
            raise InvalidArgumentError("cost_coins must not be negative")

        resolved = resolve_tables(tables)
        account = await load_account(session, user_id=user_id)

        existing_entry = await LedgerRepo.get_by_idempotency_key(session, idempotency_key)
        if existing_entry is not None:
            return EnergyPurchaseResult(
                energy=account.energy,
                max_energy=account.max_energy,
                energy_added=existing_entry.energy_delta,
                coins_spent=-existing_entry.coins_delta,
                coins=account.coins,
                idempotent_replay=True,
            )

        if account.coins < cost_coins:
            raise InsufficientCoinsError(required=cost_coins, available=account.coins)

        snapshot, _ = apply_regen(
            EnergyService._snapshot_from_model(account),
            now_utc=now_utc,
            tables=resolved,
        )
        snapshot, energy_added = credit_energy(snapshot, amount=amount)
        if energy_added == 0:
            raise InvalidArgumentError("energy is already at capacity")

        coins_after = account.coins - cost_coins
        await write_account(
            session,
            account=account,
            values={**EnergyService._snapshot_values(snapshot), "coins": coins_after},
            now_utc=now_utc,
        )
        await LedgerRepo.create(
            session,
            entry=LedgerEntry(
                user_id=user_id,
                entry_type="ENERGY_PURCHASE",
                energy_delta=energy_added,
                coins_delta=-cost_coins,
                source="SHOP",
                idempotency_key=idempotency_key,
                metadata_={"requested_amount": amount},
                created_at=now_utc,
            ),
        )
        return EnergyPurchaseResult(
            energy=snapshot.energy,
            max_energy=snapshot.max_energy,
            energy_added=energy_added,
            coins_spent=cost_coins,
            coins=coins_after,
            idempotent_replay=False,
        )
