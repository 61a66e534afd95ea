from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException

from livequiz import db


class QuizError(Exception):
    """Base class for errors the quiz core reports to clients."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InputError(QuizError):
    """The request itself is malformed or references something that does not exist."""

    status_code = 400


class NotFoundError(InputError):
    """A game, session or player id that does not exist."""


class AccessError(QuizError):
    """The request is well formed but not allowed in the current state."""

    status_code = 403


class ConflictError(AccessError):
    """The game already has a running session."""


def register_error_handlers(app) -> None:
    @app.errorhandler(QuizError)
    def handle_quiz_error(err: QuizError):
        db.session.rollback()
        return jsonify({'error': err.message}), err.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(err: HTTPException):
        return jsonify({'error': err.description}), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        db.session.rollback()
        current_app.logger.exception(f"[error] unhandled {type(err).__name__}")
        return jsonify({'error': 'A system error occurred'}), 500
