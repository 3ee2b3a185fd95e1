from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from app.core.errors import InvalidArgumentError

TEXT_TASK_TYPES = frozenset({"quiz", "text", "text_input"})
CHOICE_TASK_TYPES = frozenset({"multiple_choice"})
PRESENCE_TASK_TYPES = frozenset({"photo", "selfie", "location"})
TASK_TYPES = TEXT_TASK_TYPES | CHOICE_TASK_TYPES | PRESENCE_TASK_TYPES


@dataclass(frozen=True, slots=True)
class AnswerEvaluation:
    is_correct: bool
    points_earned: int


def normalize_text(value: object) -> str:
    return str(value).strip().casefold()


def _as_options(value: object) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str) or not isinstance(value, Iterable):
        value = [value]
    return frozenset(option for option in (str(item).strip() for item in value) if option)


def _has_submission(answer: object, photo_url: str | None) -> bool:
    if photo_url and photo_url.strip():
        return True
    if answer is None:
        return False
    if isinstance(answer, str):
        return bool(answer.strip())
    return True


def _text_matches(correct_answer: object, answer: object) -> bool:
    if answer is None or isinstance(answer, (list, tuple, set, dict)):
        return False
    submitted = normalize_text(answer)
    if isinstance(correct_answer, (list, tuple)):
        return any(submitted == normalize_text(option) for option in correct_answer)
    return submitted == normalize_text(correct_answer)


def evaluate_answer(
    *,
    task_type: str,
    correct_answer: object,
    reward_points: int,
    answer: object,
    photo_url: str | None = None,
) -> AnswerEvaluation:
    if task_type not in TASK_TYPES:
        raise InvalidArgumentError(f"unknown task type: {task_type!r}")

    if task_type in PRESENCE_TASK_TYPES:
        if not _has_submission(answer, photo_url):
            raise InvalidArgumentError(f"{task_type} task requires a submission")
        is_correct = True
    elif correct_answer is None:
        raise InvalidArgumentError(f"{task_type} checkpoint has no correct answer configured")
    elif task_type in CHOICE_TASK_TYPES:
        options = _as_options(correct_answer)
        if not options:
            raise InvalidArgumentError(f"{task_type} checkpoint has no correct options configured")
        is_correct = _as_options(answer) == options
    else:
        is_correct = _text_matches(correct_answer, answer)

    return AnswerEvaluation(
        is_correct=is_correct,
        points_earned=reward_points if is_correct else 0,
    )
