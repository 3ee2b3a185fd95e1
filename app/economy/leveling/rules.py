from __future__ import annotations

from app.core.errors import InvalidArgumentError
from app.economy.leveling.types import LevelProgress, LevelUpResult
from app.economy.rewards.tables import LevelConfig, RewardTables


def level_for_experience(experience: int, *, tables: RewardTables) -> LevelConfig:
    reached = tables.first_level
    for config in tables.levels:
        if config.required_xp > experience:
            break
        reached = config
    return reached


def level_info(level: int, *, tables: RewardTables) -> LevelConfig:
    return tables.level_config(level) or tables.first_level


def apply_experience(
    *,
    current_level: int,
    experience: int,
    delta: int,
    tables: RewardTables,
) -> LevelUpResult | None:
    """Resolves the level reached after gaining ``delta`` XP.

    A delta crossing several thresholds jumps straight to the highest
    qualifying level; only that level's bonus and capacity are returned.
    """
    if delta < 0:
        raise InvalidArgumentError("experience delta must not be negative")

    reached = level_for_experience(experience + delta, tables=tables)
    if reached.level <= current_level:
        return None

    return LevelUpResult(
        previous_level=current_level,
        new_level=reached.level,
        title=reached.title,
        bonus_coins=reached.bonus_coins,
        new_max_energy=reached.max_energy,
    )


def level_progress(experience: int, level: int, *, tables: RewardTables) -> LevelProgress:
    current_config = level_info(level, tables=tables)
    next_config = tables.level_config(current_config.level + 1)

    if next_config is None:
        return LevelProgress(
            level=current_config.level,
            title=current_config.title,
            current=experience,
            required=current_config.required_xp,
            percentage=100.0,
            is_max_level=True,
            next_level_xp=0,
        )

    progress_in_level = experience - current_config.required_xp
    required_for_next = next_config.required_xp - current_config.required_xp
    percentage = min(100.0, max(0.0, progress_in_level / required_for_next * 100))
    return LevelProgress(
        level=current_config.level,
        title=current_config.title,
        current=progress_in_level,
        required=required_for_next,
        percentage=percentage,
        is_max_level=False,
        next_level_xp=next_config.required_xp,
    )
