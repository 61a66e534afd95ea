"""Session store: sessions, their players and answer records."""

from typing import List

from livequiz import db
from livequiz.errors import AccessError, NotFoundError
from livequiz.models import AnswerRecord, Game, GameSession, Player


def _as_int(value, message: str) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        raise NotFoundError(message) from None


def create_session(game: Game) -> GameSession:
    session = GameSession(
        game_id=game.id,
        position=-1,
        active=True,
        questions=list(game.questions or []),
    )
    db.session.add(session)
    return session


def get_session(session_id) -> GameSession:
    key = _as_int(session_id, 'Session ID is not a valid session id')
    session = db.session.get(GameSession, key)
    if session is None:
        raise NotFoundError('Session ID is not a valid session id')
    return session


def save_session(session: GameSession) -> None:
    db.session.add(session)
    db.session.commit()


def list_old_sessions(game_id) -> List[int]:
    ended = (
        GameSession.query.filter_by(game_id=int(game_id), active=False)
        .order_by(GameSession.ended_at, GameSession.id)
        .all()
    )
    return [s.id for s in ended]


def assert_owns_session(owner: str, session_id) -> GameSession:
    session = get_session(session_id)
    if session.game is None or session.game.owner != owner:
        raise AccessError('Admin does not own this session')
    return session


def get_player(player_id) -> Player:
    key = _as_int(player_id, 'Player ID does not refer to valid player id')
    player = db.session.get(Player, key)
    if player is None:
        raise NotFoundError('Player ID does not refer to valid player id')
    return player


def add_player(session: GameSession, name: str) -> Player:
    player = Player(name=name, session_id=session.id, seat=len(session.players))
    db.session.add(player)
    return player


def delete_sessions_for_game(game: Game) -> None:
    """Remove a deleted game's session history along with its players and answers."""
    for session in game.sessions.all():
        player_ids = [p.id for p in session.players]
        if player_ids:
            AnswerRecord.query.filter(AnswerRecord.player_id.in_(player_ids)).delete(synchronize_session=False)
            Player.query.filter(Player.id.in_(player_ids)).delete(synchronize_session=False)
        db.session.delete(session)
