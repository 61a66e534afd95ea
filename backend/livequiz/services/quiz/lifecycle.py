"""Session lifecycle: lobby -> question 0 .. n-1 -> ended.

The session row is the single source of truth. Remaining time is never
tracked by a timer; every read derives it from
``iso_time_last_question_started`` so polling clients stay in step with the
server clock. All transitions of one game run under that game's lock and
commit together with the ``Game.active_session_id`` pointer.
"""

import math
from enum import Enum
from typing import Any, Dict, Optional

from flask import current_app

from livequiz import db, socketio
from livequiz.errors import AccessError, ConflictError, InputError, NotFoundError
from livequiz.models import Game, GameSession
from livequiz.services import catalog, store
from . import clock, ledger, locks
from .questions import session_questions


class SessionState(Enum):
    LOBBY = 'lobby'
    QUESTION_ACTIVE = 'question_active'
    ENDED = 'ended'


def state_of(session: GameSession) -> SessionState:
    if not session.active:
        return SessionState.ENDED
    if session.position < 0:
        return SessionState.LOBBY
    return SessionState.QUESTION_ACTIVE


def _notify(session: GameSession) -> None:
    socketio.emit(
        'session_update',
        {'session_id': session.id, 'position': session.position, 'active': session.active},
        to=f"session:{session.id}",
        namespace='/ws',
    )


def _active_session(game: Game) -> GameSession:
    if game.active_session_id is None:
        raise NotFoundError('Game has no active session')
    return store.get_session(game.active_session_id)


def _finish(game: Game, session: GameSession) -> None:
    ledger.close_question(session, session.position)
    session.active = False
    session.ended_at = clock.utcnow()
    game.active_session_id = None
    db.session.add_all([game, session])


def start(game_id) -> GameSession:
    game = catalog.get_game(game_id)
    with locks.game_lock(game.id):
        db.session.refresh(game)
        if game.active_session_id is not None:
            raise ConflictError('Game already has an active session')
        if not game.questions:
            raise InputError('Game has no questions')
        session = store.create_session(game)
        db.session.flush()
        game.active_session_id = session.id
        db.session.add(game)
        db.session.commit()
        current_app.logger.info(f"[session-start] game={game.id} session={session.id}")
    _notify(session)
    return session


def advance(game_id) -> Optional[int]:
    """Move the game's session to its next question.

    Returns the new position, or ``None`` when the last question was left
    and the session ended.
    """
    game = catalog.get_game(game_id)
    with locks.game_lock(game.id):
        db.session.refresh(game)
        session = _active_session(game)
        questions = session_questions(session)
        previous = session.position
        ledger.close_question(session, previous)

        if previous + 1 >= len(questions):
            _finish(game, session)
            db.session.commit()
            current_app.logger.info(
                f"[session-end] game={game.id} session={session.id} position={previous} reason=last-question"
            )
            new_position = None
        else:
            session.position = previous + 1
            session.iso_time_last_question_started = clock.utcnow()
            db.session.add(session)
            ledger.open_question(session, session.position)
            db.session.commit()
            current_app.logger.info(
                f"[session-advance] game={game.id} session={session.id} position {previous} -> {session.position}"
            )
            new_position = session.position
    _notify(session)
    return new_position


def end(game_id) -> GameSession:
    game = catalog.get_game(game_id)
    with locks.game_lock(game.id):
        db.session.refresh(game)
        if game.active_session_id is None:
            raise AccessError('Game has no active session')
        session = store.get_session(game.active_session_id)
        _finish(game, session)
        db.session.commit()
        current_app.logger.info(
            f"[session-end] game={game.id} session={session.id} position={session.position} reason=admin"
        )
    _notify(session)
    return session


def time_remaining(session: GameSession, duration: int) -> int:
    started = session.iso_time_last_question_started
    if started is None:
        return duration
    elapsed = clock.seconds_between(started, clock.utcnow())
    return max(0, math.ceil(duration - elapsed))


def current_question_for(player_id) -> Dict[str, Any]:
    player = store.get_player(player_id)
    session = player.session
    state = state_of(session)
    if state is SessionState.ENDED:
        raise AccessError('Session is not active')
    if state is SessionState.LOBBY:
        raise AccessError('Session has not started yet')
    question = session_questions(session)[session.position]
    payload = question.to_player_dict()
    payload['isoTimeLastQuestionStarted'] = clock.isoformat(session.iso_time_last_question_started)
    payload['timeRemaining'] = time_remaining(session, question.duration)
    payload['position'] = session.position
    return payload


def join(session_id, name) -> int:
    if not isinstance(name, str) or not name.strip():
        raise InputError('Name must be provided')
    session = store.get_session(session_id)
    with locks.game_lock(session.game_id):
        db.session.refresh(session)
        if not session.active:
            raise AccessError('Session is not active')
        if session.position >= 0:
            raise AccessError('Session has already begun')
        player = store.add_player(session, name.strip())
        db.session.commit()
        current_app.logger.info(f"[player-join] session={session.id} player={player.id} name={player.name}")
    _notify(session)
    return player.id


def has_started(player_id) -> bool:
    player = store.get_player(player_id)
    if not player.session.active:
        raise AccessError('Session is not active')
    return player.session.position >= 0


def status(session_id) -> Dict[str, Any]:
    session = store.get_session(session_id)
    answer_available = False
    if state_of(session) is SessionState.QUESTION_ACTIVE:
        question = session_questions(session)[session.position]
        answer_available = time_remaining(session, question.duration) == 0
    return {
        'active': session.active,
        'answerAvailable': answer_available,
        'position': session.position,
        'isoTimeLastQuestionStarted': clock.isoformat(session.iso_time_last_question_started),
        'players': [p.name for p in session.players],
        'questions': list(session.questions or []),
    }
