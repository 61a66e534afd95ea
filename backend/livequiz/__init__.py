from flask import Flask
from flask_sqlalchemy import SQLAlchemy
from flask_bcrypt import Bcrypt
from flask_login import LoginManager
from flask_cors import CORS
from flask_migrate import Migrate
from flask_socketio import SocketIO
import click
from config import Config

db = SQLAlchemy()
bcrypt = Bcrypt()
login_manager = LoginManager()
migrate = Migrate()
socketio = SocketIO(async_mode=None)

def create_app(config_class=Config):
    flask_app = Flask(__name__)
    flask_app.config.from_object(config_class)
    allowed_origins = flask_app.config.get('CORS_ORIGINS') or []

    db.init_app(flask_app)
    bcrypt.init_app(flask_app)
    login_manager.init_app(flask_app)
    migrate.init_app(flask_app, db)
    CORS(flask_app, origins=allowed_origins)

    socketio.init_app(flask_app, cors_allowed_origins=allowed_origins)

    from livequiz.errors import register_error_handlers
    register_error_handlers(flask_app)

    from livequiz.main import main
    flask_app.register_blueprint(main)

    from livequiz.api.admin import admin
    flask_app.register_blueprint(admin, url_prefix='/admin')

    from livequiz.api.play import play
    flask_app.register_blueprint(play, url_prefix='/play')

    from livequiz.socketio_events import register_socketio_handlers
    register_socketio_handlers(testing=flask_app.config.get('TESTING', False))

    # Admin requests authenticate with "Authorization: Bearer <token>"
    from livequiz.auth import load_user_from_request
    login_manager.request_loader(load_user_from_request)

    @click.command('db-reset')
    def db_reset_command():
        """Drops, recreates, and seeds the database."""
        from livequiz.models import User, Game
        with flask_app.app_context():
            db.drop_all()
            db.create_all()

            admin_user = User(email='admin@example.com', name='Admin')
            admin_user.set_password('password')
            db.session.add(admin_user)
            db.session.add(Game(
                name='Sample quiz',
                owner='admin@example.com',
                questions=[
                    {
                        'id': '1',
                        'text': 'Is Python dynamically typed?',
                        'type': 'judgement',
                        'duration': 20,
                        'points': 10,
                        'answers': [
                            {'id': '1', 'text': 'Yes', 'isCorrect': True},
                            {'id': '2', 'text': 'No', 'isCorrect': False},
                        ],
                    },
                    {
                        'id': '2',
                        'text': 'Which of these are web frameworks?',
                        'type': 'multiple',
                        'duration': 30,
                        'points': 20,
                        'answers': [
                            {'id': '1', 'text': 'Flask', 'isCorrect': True},
                            {'id': '2', 'text': 'NumPy', 'isCorrect': False},
                            {'id': '3', 'text': 'Django', 'isCorrect': True},
                        ],
                    },
                ],
            ))

            db.session.commit()
            print('Database has been reset and seeded!')

    flask_app.cli.add_command(db_reset_command)

    return flask_app
