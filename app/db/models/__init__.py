from app.db.models.achievement_progress import AchievementProgress
from app.db.models.achievements import Achievement
from app.db.models.analytics_events import AnalyticsEvent
from app.db.models.ledger_entries import LedgerEntry
from app.db.models.player_accounts import PlayerAccount
from app.db.models.quest_answers import QuestAnswer
from app.db.models.quest_points import QuestPoint
from app.db.models.quest_sessions import QuestSession
from app.db.models.quests import Quest

__all__ = [
    "Achievement",
    "AchievementProgress",
    "AnalyticsEvent",
    "LedgerEntry",
    "PlayerAccount",
    "Quest",
    "QuestAnswer",
    "QuestPoint",
    "QuestSession",
]
