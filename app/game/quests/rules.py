from __future__ import annotations

from dataclasses import dataclass, replace

from app.core.errors import SessionClosedError

STATUS_NOT_STARTED = "not_started"
STATUS_IN_PROGRESS = "in_progress"
STATUS_COMPLETED = "completed"
STATUS_ABANDONED = "abandoned"
TERMINAL_STATUSES = frozenset({STATUS_COMPLETED, STATUS_ABANDONED})
SESSION_STATUSES = frozenset({STATUS_NOT_STARTED, STATUS_IN_PROGRESS}) | TERMINAL_STATUSES


@dataclass(frozen=True, slots=True)
class QuestProgressSnapshot:
    status: str
    current_point_index: int
    accumulated_score: int
    total_points: int

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES

    @property
    def all_cleared(self) -> bool:
        return self.current_point_index >= self.total_points


def start_progress(*, total_points: int) -> QuestProgressSnapshot:
    return QuestProgressSnapshot(
        status=STATUS_IN_PROGRESS,
        current_point_index=0,
        accumulated_score=0,
        total_points=total_points,
    )


def ensure_open(snapshot: QuestProgressSnapshot) -> None:
    if snapshot.is_terminal:
        raise SessionClosedError(f"quest session is {snapshot.status}; no further transitions")
    if snapshot.status != STATUS_IN_PROGRESS:
        raise SessionClosedError(f"quest session is {snapshot.status}; it was never started")


def advance(snapshot: QuestProgressSnapshot, *, points_earned: int) -> QuestProgressSnapshot:
    ensure_open(snapshot)
    if points_earned < 0:
        raise ValueError("points_earned must not be negative")

    next_index = snapshot.current_point_index + 1
    return replace(
        snapshot,
        current_point_index=next_index,
        accumulated_score=snapshot.accumulated_score + points_earned,
        status=STATUS_COMPLETED if next_index >= snapshot.total_points else STATUS_IN_PROGRESS,
    )


def abandon(snapshot: QuestProgressSnapshot) -> QuestProgressSnapshot:
    ensure_open(snapshot)
    return replace(snapshot, status=STATUS_ABANDONED)
