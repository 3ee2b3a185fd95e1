from __future__ import annotations

from .completion import award_completion, get_recorded_completion, quest_reward_key
from .quests_manage import abandon_quest, get_session_view, list_sessions
from .quests_start import quest_start_energy_key, start_quest
from .quests_submit import submit_checkpoint_answer


class QuestService:
    start_quest = staticmethod(start_quest)
    submit_checkpoint_answer = staticmethod(submit_checkpoint_answer)
    abandon_quest = staticmethod(abandon_quest)
    get_session_view = staticmethod(get_session_view)
    list_sessions = staticmethod(list_sessions)
    award_completion = staticmethod(award_completion)
    get_recorded_completion = staticmethod(get_recorded_completion)


__all__ = [
    "QuestService",
    "quest_reward_key",
    "quest_start_energy_key",
]
