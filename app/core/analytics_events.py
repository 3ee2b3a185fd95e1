"""Domain events recorded alongside quest and economy writes.

Each event is added to the caller's session, so it commits or rolls back
together with the change it describes.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from app.db.repo.analytics_repo import AnalyticsRepo

EVENT_SOURCE_API = "API"
EVENT_SOURCE_SYSTEM = "SYSTEM"
# Mirrors ck_analytics_events_source on the table.
EVENT_SOURCES = frozenset({EVENT_SOURCE_API, EVENT_SOURCE_SYSTEM})
MAX_EVENT_TYPE_LENGTH = 64


def _validated_event_type(event_type: str) -> str:
    cleaned = event_type.strip()
    if not cleaned or len(cleaned) > MAX_EVENT_TYPE_LENGTH:
        raise ValueError(f"invalid analytics event type: {event_type!r}")
    return cleaned


async def emit_analytics_event(
    session: AsyncSession,
    *,
    event_type: str,
    source: str,
    happened_at: datetime,
    user_id: int | None = None,
    payload: Mapping[str, object] | None = None,
) -> None:
    if source not in EVENT_SOURCES:
        raise ValueError(f"unknown analytics event source: {source!r}")

    await AnalyticsRepo.create_event(
        session,
        event_type=_validated_event_type(event_type),
        source=source,
        user_id=user_id,
        payload=dict(payload) if payload is not None else {},
        happened_at=happened_at,
    )
