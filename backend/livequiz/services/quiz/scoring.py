from typing import Iterable

from .questions import Question, QuestionType


def is_correct(question: Question, submitted_ids: Iterable) -> bool:
    """Whether a submitted answer set earns the question's points.

    Single and judgement questions need exactly one id, and it must be
    correct. Multiple choice is all-or-nothing: the submitted set has to equal
    the correct set, so any missing or extra id scores zero.
    """
    submitted = [str(a) for a in submitted_ids or []]
    if not submitted:
        return False
    correct = set(question.correct_answers)

    if question.type in (QuestionType.SINGLE, QuestionType.JUDGEMENT):
        return len(submitted) == 1 and submitted[0] in correct
    if question.type is QuestionType.MULTIPLE:
        return set(submitted) == correct
    raise ValueError(f"Unhandled question type: {question.type!r}")


def score(question: Question, submitted_ids: Iterable) -> int:
    return question.points if is_correct(question, submitted_ids) else 0
