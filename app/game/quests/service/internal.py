from __future__ import annotations

from collections.abc import Sequence

from app.db.models.quest_points import QuestPoint
from app.db.models.quest_sessions import QuestSession
from app.game.quests.geo import Coordinates
from app.game.quests.rules import QuestProgressSnapshot
from app.game.quests.types import QuestSessionView


def _progress_snapshot(quest_session: QuestSession, *, total_points: int) -> QuestProgressSnapshot:
    return QuestProgressSnapshot(
        status=quest_session.status,
        current_point_index=quest_session.current_point_index,
        accumulated_score=quest_session.accumulated_score,
        total_points=total_points,
    )


def _point_coordinates(point: QuestPoint) -> Coordinates:
    return Coordinates(latitude=point.latitude, longitude=point.longitude)


def _build_session_view(
    quest_session: QuestSession,
    *,
    points: Sequence[QuestPoint],
) -> QuestSessionView:
    current_point_id = None
    if quest_session.status == "in_progress" and quest_session.current_point_index < len(points):
        current_point_id = points[quest_session.current_point_index].id

    return QuestSessionView(
        session_id=quest_session.id,
        quest_id=quest_session.quest_id,
        user_id=quest_session.user_id,
        status=quest_session.status,
        current_point_index=quest_session.current_point_index,
        total_points=len(points),
        accumulated_score=quest_session.accumulated_score,
        energy_cost=quest_session.energy_cost,
        started_at=quest_session.started_at,
        completed_at=quest_session.completed_at,
        current_point_id=current_point_id,
    )
