from __future__ import annotations

from datetime import datetime


def elapsed_whole_minutes(since: datetime, now_utc: datetime) -> int:
    """Returns full minutes between two instants; clock skew counts as zero."""
    elapsed_seconds = int((now_utc - since).total_seconds())
    if elapsed_seconds <= 0:
        return 0
    return elapsed_seconds // 60


def regen_ticks(last_update_at: datetime, now_utc: datetime, minutes_per_point: int) -> int:
    """Returns number of full regen intervals elapsed since the last credited tick."""
    return elapsed_whole_minutes(last_update_at, now_utc) // minutes_per_point
