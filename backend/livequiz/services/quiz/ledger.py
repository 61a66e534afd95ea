"""Answer ledger: one record per (player, question) and the rules for changing it.

A record stays writable while its question is the session's current question
and its window is open. The window closes when the player asks for the
correct answers, or when the session moves past the question, whichever comes
first. Closing scores the record exactly once.
"""

from typing import Iterable, List, Optional

from flask import current_app

from livequiz import db
from livequiz.errors import AccessError, InputError
from livequiz.models import AnswerRecord, GameSession, Player
from livequiz.services import store
from . import clock, locks
from .questions import Question, session_questions
from .scoring import is_correct, score

ANSWER_CLOSED_MESSAGE = "Can't answer question once answer is available"


def _find_record(player_id: int, question_index: int) -> Optional[AnswerRecord]:
    return AnswerRecord.query.filter_by(player_id=player_id, question_index=question_index).first()


def _ensure_record(player: Player, question_index: int, started_at) -> AnswerRecord:
    record = _find_record(player.id, question_index)
    if record is None:
        record = AnswerRecord(
            player_id=player.id,
            question_index=question_index,
            answers=[],
            question_started_at=started_at,
            correct=False,
            points=0,
            closed=False,
        )
        db.session.add(record)
    return record


def open_question(session: GameSession, question_index: int) -> None:
    """Create an open, empty record for every player of the session."""
    for player in session.players:
        _ensure_record(player, question_index, session.iso_time_last_question_started)


def _require_running(session: GameSession) -> None:
    if not session.active:
        raise AccessError('Session is not active')
    if session.position < 0:
        raise AccessError('Session has not started yet')


def _normalize_answer_ids(question: Question, answer_ids) -> List[str]:
    if not isinstance(answer_ids, list) or not answer_ids:
        raise InputError('Answers must be provided')
    normalized = []
    for answer_id in answer_ids:
        if answer_id is None or isinstance(answer_id, (dict, list, bool)):
            raise InputError('Answer ids must be strings or numbers')
        normalized.append(str(answer_id))
    unknown = set(normalized) - set(question.answer_ids)
    if unknown:
        raise InputError('Answer ids do not belong to this question')
    return normalized


def submit(player_id, answer_ids: Iterable, question_index: Optional[int] = None) -> AnswerRecord:
    """Store a player's answer set for ``question_index`` (default: the current question).

    Resubmitting overwrites the previous set; the last write wins. Runs under
    the game lock so it cannot interleave with a reveal or a window close, and
    the write itself only touches a record that is still open.
    """
    player = store.get_player(player_id)
    with locks.game_lock(player.session.game_id):
        session = player.session
        db.session.refresh(session)
        _require_running(session)
        if question_index is None:
            question_index = session.position
        if question_index != session.position:
            raise AccessError(ANSWER_CLOSED_MESSAGE)

        question = session_questions(session)[question_index]
        normalized = _normalize_answer_ids(question, answer_ids)

        record = _ensure_record(player, question_index, session.iso_time_last_question_started)
        if record.closed:
            raise AccessError(ANSWER_CLOSED_MESSAGE)
        db.session.flush()
        updated = AnswerRecord.query.filter_by(id=record.id, closed=False).update(
            {'answers': normalized, 'answered_at': clock.utcnow()},
            synchronize_session=False,
        )
        if not updated:
            db.session.rollback()
            raise AccessError(ANSWER_CLOSED_MESSAGE)
        db.session.commit()
    current_app.logger.info(
        f"[answer-submit] session={session.id} player={player.id} question={question_index} answers={normalized}"
    )
    return record


def record_for_scoring(player: Player, question_index: int, question: Question) -> AnswerRecord:
    """Close the player's window for the question and score the record.

    Players who never answered get an empty record stamped at close time.
    Calling this on an already closed record changes nothing.
    """
    record = _ensure_record(player, question_index, player.session.iso_time_last_question_started)
    if record.closed:
        return record
    if record.answered_at is None:
        record.answers = []
        record.answered_at = clock.utcnow()
    record.correct = is_correct(question, record.answers)
    record.points = score(question, record.answers)
    record.closed = True
    return record


def close_question(session: GameSession, question_index: int) -> None:
    """Close the window of ``question_index`` for every player of the session."""
    if question_index < 0:
        return
    question = session_questions(session)[question_index]
    for player in session.players:
        record_for_scoring(player, question_index, question)
    current_app.logger.info(
        f"[window-close] session={session.id} question={question_index} players={len(session.players)}"
    )


def answers_for(player_id, question_index: int) -> List[str]:
    record = _find_record(int(player_id), question_index)
    if record is None:
        return []
    return list(record.answers or [])


def reveal_answers(player_id) -> List[str]:
    """Correct answer ids for the player's current question; closes their window."""
    player = store.get_player(player_id)
    with locks.game_lock(player.session.game_id):
        session = player.session
        db.session.refresh(session)
        _require_running(session)
        question = session_questions(session)[session.position]
        record_for_scoring(player, session.position, question)
        db.session.commit()
    current_app.logger.info(
        f"[answer-reveal] session={session.id} player={player.id} question={session.position}"
    )
    return list(question.correct_answers)


def player_results(player_id) -> List[dict]:
    player = store.get_player(player_id)
    if player.session.active:
        raise AccessError('Session is ongoing, cannot get results')
    return [record.to_dict() for record in player.answers]
