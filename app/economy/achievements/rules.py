from __future__ import annotations

from collections.abc import Iterable, Mapping

from app.core.errors import InvalidArgumentError
from app.economy.achievements.types import (
    AchievementDefinition,
    AchievementStats,
    ProgressState,
    ProgressUpdate,
)

CONDITION_TYPES: tuple[str, ...] = (
    "quests_completed",
    "total_points",
    "level_reached",
    "distance_traveled",
)


def stat_for_condition(stats: AchievementStats, condition_type: str) -> int:
    if condition_type == "quests_completed":
        return stats.quests_completed
    if condition_type == "total_points":
        return stats.total_points
    if condition_type == "level_reached":
        return stats.level
    if condition_type == "distance_traveled":
        return stats.distance_traveled_m
    raise InvalidArgumentError(f"unknown achievement condition type: {condition_type!r}")


def compute_progress_percent(definition: AchievementDefinition, stats: AchievementStats) -> int:
    if definition.condition_target <= 0:
        raise InvalidArgumentError(
            f"achievement {definition.achievement_id!r} has non-positive target"
        )

    current = stat_for_condition(stats, definition.condition_type)
    if definition.condition_type == "level_reached":
        return 100 if current >= definition.condition_target else 0

    # Floor keeps 99.x% from rounding into a completion.
    ratio_percent = (max(0, current) * 100) // definition.condition_target
    return max(0, min(100, ratio_percent))


def recompute_progress(
    stats: AchievementStats,
    definitions: Iterable[AchievementDefinition],
    existing: Mapping[str, ProgressState],
) -> list[ProgressUpdate]:
    """Returns progress rows that must be written for the given stats.

    Completed achievements are skipped entirely, so a reward can only be
    issued on the first crossing of 100%. Progress never moves backwards.
    """
    updates: list[ProgressUpdate] = []
    for definition in definitions:
        previous = existing.get(definition.achievement_id)
        if previous is not None and previous.is_completed:
            continue

        computed = compute_progress_percent(definition, stats)
        progress_percent = max(computed, previous.progress_percent if previous else 0)
        if (
            previous is not None
            and progress_percent == previous.progress_percent
            and progress_percent < 100
        ):
            continue

        newly_completed = progress_percent >= 100
        updates.append(
            ProgressUpdate(
                achievement_id=definition.achievement_id,
                progress_percent=progress_percent,
                newly_completed=newly_completed,
                reward_points=definition.reward_points if newly_completed else 0,
                reward_coins=definition.reward_coins if newly_completed else 0,
            )
        )
    return updates
