from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LevelUpResult:
    previous_level: int
    new_level: int
    title: str
    bonus_coins: int
    new_max_energy: int

    @property
    def levels_gained(self) -> int:
        return self.new_level - self.previous_level


@dataclass(frozen=True, slots=True)
class LevelProgress:
    level: int
    title: str
    current: int
    required: int
    percentage: float
    is_max_level: bool
    next_level_xp: int
