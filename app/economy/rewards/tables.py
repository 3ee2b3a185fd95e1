from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from functools import lru_cache
from types import MappingProxyType

from app.core.config import get_settings
from app.core.errors import InvalidArgumentError

QUEST_DIFFICULTIES: tuple[str, ...] = ("easy", "medium", "hard")


@dataclass(frozen=True, slots=True)
class LevelConfig:
    level: int
    required_xp: int
    title: str
    bonus_coins: int
    max_energy: int


@dataclass(frozen=True, slots=True)
class QuestReward:
    experience: int
    coins: int
    energy_cost: int


@dataclass(frozen=True, slots=True)
class RewardTables:
    """Static game balance: level curve, per-difficulty rewards and energy pacing.

    Instances are immutable and validated on construction so that every rule
    function can rely on a sorted, gap-free level curve.
    """

    levels: tuple[LevelConfig, ...]
    quest_rewards: Mapping[str, QuestReward]
    energy_regen_minutes_per_point: int = 10
    geofence_radius_m: float = 100.0
    _levels_by_number: Mapping[int, LevelConfig] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if not self.levels:
            raise ValueError("level curve must not be empty")
        if self.levels[0].required_xp != 0:
            raise ValueError("first level must require 0 XP")
        for previous, current in zip(self.levels, self.levels[1:]):
            if current.level <= previous.level:
                raise ValueError("levels must be strictly increasing")
            if current.required_xp <= previous.required_xp:
                raise ValueError("required XP must be strictly increasing")
        for difficulty, reward in self.quest_rewards.items():
            if reward.experience < 0 or reward.coins < 0 or reward.energy_cost < 0:
                raise ValueError(f"negative reward values for difficulty {difficulty!r}")
        if self.energy_regen_minutes_per_point <= 0:
            raise ValueError("energy_regen_minutes_per_point must be positive")
        if self.geofence_radius_m <= 0:
            raise ValueError("geofence_radius_m must be positive")

        object.__setattr__(self, "quest_rewards", MappingProxyType(dict(self.quest_rewards)))
        object.__setattr__(
            self,
            "_levels_by_number",
            MappingProxyType({level.level: level for level in self.levels}),
        )

    @property
    def first_level(self) -> LevelConfig:
        return self.levels[0]

    @property
    def max_level(self) -> LevelConfig:
        return self.levels[-1]

    @property
    def default_max_energy(self) -> int:
        return self.levels[0].max_energy

    def quest_reward(self, difficulty: str) -> QuestReward:
        reward = self.quest_rewards.get(difficulty)
        if reward is None:
            raise InvalidArgumentError(f"unknown quest difficulty: {difficulty!r}")
        return reward

    def level_config(self, level: int) -> LevelConfig | None:
        return self._levels_by_number.get(level)


DEFAULT_LEVELS: tuple[LevelConfig, ...] = (
    LevelConfig(level=1, required_xp=0, title="Новичок", bonus_coins=0, max_energy=100),
    LevelConfig(level=2, required_xp=100, title="Путешественник", bonus_coins=50, max_energy=110),
    LevelConfig(level=3, required_xp=300, title="Исследователь", bonus_coins=100, max_energy=120),
    LevelConfig(level=4, required_xp=600, title="Следопыт", bonus_coins=150, max_energy=130),
    LevelConfig(level=5, required_xp=1000, title="Искатель", bonus_coins=200, max_energy=150),
    LevelConfig(level=6, required_xp=1500, title="Мастер", bonus_coins=300, max_energy=170),
    LevelConfig(level=7, required_xp=2200, title="Эксперт", bonus_coins=400, max_energy=200),
    LevelConfig(level=8, required_xp=3200, title="Гуру", bonus_coins=500, max_energy=250),
    LevelConfig(level=9, required_xp=4500, title="Легенда", bonus_coins=750, max_energy=300),
    LevelConfig(level=10, required_xp=6500, title="Титан", bonus_coins=1000, max_energy=400),
    LevelConfig(level=11, required_xp=9000, title="Божество", bonus_coins=1500, max_energy=500),
)

DEFAULT_QUEST_REWARDS: dict[str, QuestReward] = {
    "easy": QuestReward(experience=50, coins=30, energy_cost=30),
    "medium": QuestReward(experience=100, coins=60, energy_cost=50),
    "hard": QuestReward(experience=200, coins=120, energy_cost=80),
}

DEFAULT_REWARD_TABLES = RewardTables(
    levels=DEFAULT_LEVELS,
    quest_rewards=DEFAULT_QUEST_REWARDS,
)


@lru_cache(maxsize=1)
def get_reward_tables() -> RewardTables:
    settings = get_settings()
    return replace(
        DEFAULT_REWARD_TABLES,
        energy_regen_minutes_per_point=settings.energy_regen_minutes_per_point,
        geofence_radius_m=settings.geofence_radius_m,
    )


def resolve_tables(tables: RewardTables | None) -> RewardTables:
    return tables if tables is not None else get_reward_tables()
