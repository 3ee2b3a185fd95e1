from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timedelta

from app.economy.energy.time import regen_ticks
from app.economy.energy.types import EnergyBucketState, EnergySnapshot
from app.economy.rewards.tables import RewardTables


def classify_energy_state(snapshot: EnergySnapshot, *, tables: RewardTables) -> EnergyBucketState:
    costs = [reward.energy_cost for reward in tables.quest_rewards.values()]
    if snapshot.is_full:
        return EnergyBucketState.FULL
    if not costs or snapshot.energy >= max(costs):
        return EnergyBucketState.AVAILABLE
    if snapshot.energy >= min(costs):
        return EnergyBucketState.LOW
    return EnergyBucketState.EMPTY


def apply_regen(
    snapshot: EnergySnapshot, *, now_utc: datetime, tables: RewardTables
) -> tuple[EnergySnapshot, int]:
    minutes_per_point = tables.energy_regen_minutes_per_point
    ticks = regen_ticks(snapshot.last_energy_update_at, now_utc, minutes_per_point)
    if ticks <= 0:
        # Leftover partial minutes stay on the clock for the next read.
        return snapshot, 0

    regenerated = min(snapshot.max_energy, snapshot.energy + ticks)
    updated = replace(
        snapshot,
        energy=max(snapshot.energy, regenerated),
        last_energy_update_at=(
            snapshot.last_energy_update_at + timedelta(minutes=ticks * minutes_per_point)
        ),
    )
    return updated, updated.energy - snapshot.energy


def can_afford(snapshot: EnergySnapshot, difficulty: str, *, tables: RewardTables) -> bool:
    return snapshot.energy >= tables.quest_reward(difficulty).energy_cost


def consume_quest_energy(
    snapshot: EnergySnapshot, difficulty: str, *, tables: RewardTables
) -> tuple[EnergySnapshot, bool, int]:
    energy_cost = tables.quest_reward(difficulty).energy_cost
    if snapshot.energy < energy_cost:
        return snapshot, False, energy_cost
    return replace(snapshot, energy=snapshot.energy - energy_cost), True, energy_cost


def credit_energy(snapshot: EnergySnapshot, *, amount: int) -> tuple[EnergySnapshot, int]:
    if amount <= 0:
        raise ValueError("amount must be positive")
    credited = min(snapshot.max_energy, snapshot.energy + amount)
    if credited <= snapshot.energy:
        return snapshot, 0
    return replace(snapshot, energy=credited), credited - snapshot.energy
