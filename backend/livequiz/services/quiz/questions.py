"""Typed view over the question dicts stored on games and sessions.

Games keep their questions as JSON exactly as the admin client sends them.
Scoring and the player-facing views parse that JSON into :class:`Question`
so the type branching happens over a closed enum instead of raw strings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

from flask import current_app

from livequiz.errors import InputError


PASSTHROUGH_FIELDS = ('media', 'image', 'video', 'thumbnail')


class QuestionType(str, Enum):
    SINGLE = 'single'
    MULTIPLE = 'multiple'
    JUDGEMENT = 'judgement'

    @classmethod
    def parse(cls, raw) -> 'QuestionType':
        try:
            return cls(str(raw).strip().lower())
        except ValueError:
            raise InputError(f"Unknown question type: {raw}") from None


@dataclass(frozen=True)
class Answer:
    id: str
    text: str
    is_correct: bool

    def to_player_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'text': self.text}


@dataclass(frozen=True)
class Question:
    id: str
    text: str
    type: QuestionType
    duration: int
    points: int
    answers: List[Answer]
    correct_answers: List[str]
    extras: Dict[str, Any] = field(default_factory=dict)

    @property
    def answer_ids(self) -> List[str]:
        return [a.id for a in self.answers]

    @classmethod
    def from_dict(cls, data: Dict[str, Any], default_duration: int = 30, default_points: int = 10) -> 'Question':
        if not isinstance(data, dict):
            raise InputError('Question must be an object')
        raw_answers = data.get('answers')
        if not isinstance(raw_answers, list) or not raw_answers:
            raise InputError('Question must have answers')

        answers = []
        for raw in raw_answers:
            if not isinstance(raw, dict) or raw.get('id') is None:
                raise InputError('Each answer needs an id')
            answers.append(Answer(
                id=str(raw['id']),
                text=str(raw.get('text', '')),
                is_correct=bool(raw.get('isCorrect', False)),
            ))

        correct = data.get('correctAnswers')
        if isinstance(correct, list):
            correct_answers = [str(a) for a in correct]
        else:
            # Older clients only flag answers individually
            correct_answers = [a.id for a in answers if a.is_correct]

        duration = _positive_int(data.get('duration'), default_duration, 'duration')
        points = _positive_int(data.get('points'), default_points, 'points')

        return cls(
            id=str(data.get('id', '')),
            text=str(data.get('text', '')),
            type=QuestionType.parse(data.get('type', QuestionType.SINGLE.value)),
            duration=duration,
            points=points,
            answers=answers,
            correct_answers=correct_answers,
            extras={k: data[k] for k in PASSTHROUGH_FIELDS if k in data},
        )

    def to_player_dict(self) -> Dict[str, Any]:
        """Question as shown to players: no correctness information."""
        payload = {
            'id': self.id,
            'text': self.text,
            'type': self.type.value,
            'duration': self.duration,
            'points': self.points,
            'answers': [a.to_player_dict() for a in self.answers],
        }
        payload.update(self.extras)
        return payload


def _positive_int(value, default: int, name: str) -> int:
    if value is None or value == '':
        return default
    try:
        number = int(float(value))
    except (TypeError, ValueError):
        raise InputError(f"Question {name} must be a number") from None
    if number <= 0:
        raise InputError(f"Question {name} must be positive")
    return number


def parse_questions(raw_questions: Optional[List[Dict[str, Any]]], default_duration: int = 30, default_points: int = 10) -> List[Question]:
    return [Question.from_dict(q, default_duration, default_points) for q in (raw_questions or [])]


def session_questions(session) -> List[Question]:
    """Parse a session's question snapshot using the app's configured defaults."""
    cfg = current_app.config
    return parse_questions(
        session.questions,
        default_duration=cfg.get('DEFAULT_QUESTION_DURATION_SEC', 30),
        default_points=cfg.get('DEFAULT_QUESTION_POINTS', 10),
    )
