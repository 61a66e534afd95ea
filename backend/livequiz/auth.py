from functools import wraps

from flask import current_app
from flask_login import current_user

from livequiz import db, login_manager
from livequiz.errors import AccessError, InputError
from livequiz.models import User


@login_manager.user_loader
def load_user(user_id):
    return db.session.get(User, int(user_id))


def load_user_from_request(request):
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return User.query.filter_by(token=token.strip()).first()


@login_manager.unauthorized_handler
def unauthorized():
    raise AccessError('Invalid token')


def admin_required(fn):
    """Like flask_login.login_required, passing the admin's email to the view."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        if not current_user.is_authenticated:
            return login_manager.unauthorized()
        return fn(*args, email=current_user.email, **kwargs)
    return wrapper


def _credentials(data):
    email = (data or {}).get('email')
    password = (data or {}).get('password')
    if not isinstance(email, str) or not email.strip() or not isinstance(password, str) or not password:
        raise InputError('Email and password are required')
    return email.strip().lower(), password


def register(data) -> str:
    email, password = _credentials(data)
    if User.query.filter_by(email=email).first():
        raise InputError('Email address already registered')
    user = User(email=email, name=(data or {}).get('name'))
    user.set_password(password)
    token = user.issue_token()
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"[admin-register] user={user.id}")
    return token


def login(data) -> str:
    email, password = _credentials(data)
    user = User.query.filter_by(email=email).first()
    if user is None:
        raise InputError('Email address not registered')
    if not user.check_password(password):
        raise InputError('Invalid password')
    token = user.issue_token()
    db.session.commit()
    current_app.logger.info(f"[admin-login] user={user.id}")
    return token


def logout(email: str) -> None:
    user = User.query.filter_by(email=email).first()
    if user is not None:
        user.token = None
        db.session.commit()
        current_app.logger.info(f"[admin-logout] user={user.id}")
