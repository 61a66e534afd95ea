"""Game catalog: the admin-owned game definitions."""

from typing import Any, Dict, List

from flask import current_app

from livequiz import db
from livequiz.errors import AccessError, InputError, NotFoundError
from livequiz.models import Game
from livequiz.services import store
from livequiz.services.quiz import locks
from livequiz.services.quiz.questions import parse_questions

EDITABLE_FIELDS = ('name', 'description', 'thumbnail', 'questions')


def get_game(game_id) -> Game:
    try:
        key = int(game_id)
    except (TypeError, ValueError):
        raise NotFoundError('Invalid game id') from None
    game = db.session.get(Game, key)
    if game is None:
        raise NotFoundError('Invalid game id')
    return game


def save_game(game: Game) -> None:
    db.session.add(game)
    db.session.commit()


def list_games_by_owner(owner: str) -> List[Game]:
    return Game.query.filter_by(owner=owner).order_by(Game.created_at, Game.id).all()


def assert_owns_game(owner: str, game_id) -> Game:
    game = get_game(game_id)
    if game.owner != owner:
        raise AccessError('Admin does not own this game')
    return game


def _validate_payload(data: Dict[str, Any]) -> None:
    if not isinstance(data, dict):
        raise InputError('Each game must be an object')
    name = data.get('name')
    if not isinstance(name, str) or not name.strip():
        raise InputError('Each game must have a name')
    questions = data.get('questions', [])
    if not isinstance(questions, list):
        raise InputError('Game questions must be an array')
    cfg = current_app.config
    parse_questions(
        questions,
        default_duration=cfg.get('DEFAULT_QUESTION_DURATION_SEC', 30),
        default_points=cfg.get('DEFAULT_QUESTION_POINTS', 10),
    )


def replace_games_for_owner(owner: str, games_payload: List[Dict[str, Any]]) -> List[Game]:
    """Make the owner's catalog match ``games_payload``.

    Games are matched by id; unknown ids are created and the owner's games
    missing from the payload are deleted. ``active`` and ``oldSessions`` in
    the payload are ignored since only session transitions may change them.
    """
    for data in games_payload:
        _validate_payload(data)

    existing = {g.id: g for g in list_games_by_owner(owner)}
    kept_ids = set()
    result = []
    for data in games_payload:
        game = None
        if data.get('id') is not None:
            try:
                game_id = int(data['id'])
            except (TypeError, ValueError):
                raise InputError('Game id must be a number') from None
            game = existing.get(game_id)
            if game is None:
                other = db.session.get(Game, game_id)
                if other is not None:
                    raise AccessError('Admin does not own this game')
                game = Game(id=game_id, owner=owner, name=data['name'])
        else:
            game = Game(owner=owner, name=data['name'])
        for key in EDITABLE_FIELDS:
            if key in data:
                setattr(game, key, data[key])
        if game.questions is None:
            game.questions = []
        db.session.add(game)
        kept_ids.add(game.id)
        result.append(game)

    for game_id, game in existing.items():
        if game_id in kept_ids:
            continue
        if game.active_session_id is not None:
            raise AccessError('Cannot delete a game while a session is active')
        current_app.logger.info(f"[game-delete] game={game_id} owner={owner}")
        store.delete_sessions_for_game(game)
        db.session.delete(game)
        locks.forget(game_id)

    db.session.commit()
    return result
