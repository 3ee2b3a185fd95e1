from app.db.repo.achievements_repo import AchievementsRepo
from app.db.repo.analytics_repo import AnalyticsRepo
from app.db.repo.ledger_repo import LedgerRepo
from app.db.repo.player_accounts_repo import PlayerAccountsRepo
from app.db.repo.quest_answers_repo import QuestAnswersRepo
from app.db.repo.quest_sessions_repo import QuestSessionsRepo
from app.db.repo.quests_repo import QuestsRepo

__all__ = [
    "AchievementsRepo",
    "AnalyticsRepo",
    "LedgerRepo",
    "PlayerAccountsRepo",
    "QuestAnswersRepo",
    "QuestSessionsRepo",
    "QuestsRepo",
]
