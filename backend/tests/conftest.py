import os
import sys
from datetime import datetime, timedelta
import pytest

# Ensure the backend root (containing the `livequiz` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from livequiz import create_app, db, socketio
from livequiz.services.quiz import clock


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    BCRYPT_LOG_ROUNDS = 4
    CORS_ORIGINS = ['http://localhost:3000']
    DEFAULT_QUESTION_DURATION_SEC = 30
    DEFAULT_QUESTION_POINTS = 10
    RESULTS_TOP_N = 5


def sample_questions():
    return [
        {
            'id': 'q1',
            'text': 'Which number is two?',
            'type': 'single',
            'duration': 20,
            'points': 10,
            'answers': [
                {'id': '1', 'text': 'One', 'isCorrect': False},
                {'id': '2', 'text': 'Two', 'isCorrect': True},
                {'id': '3', 'text': 'Three', 'isCorrect': False},
            ],
            'correctAnswers': ['2'],
        },
        {
            'id': 'q2',
            'text': 'Pick the odd numbers',
            'type': 'multiple',
            'duration': 30,
            'points': 5,
            'answers': [
                {'id': '1', 'text': 'One', 'isCorrect': True},
                {'id': '2', 'text': 'Two', 'isCorrect': False},
                {'id': '3', 'text': 'Three', 'isCorrect': True},
            ],
            'correctAnswers': ['1', '3'],
        },
        {
            'id': 'q3',
            'text': 'The sky is green',
            'type': 'judgement',
            'duration': 10,
            'points': 3,
            'answers': [
                {'id': '1', 'text': 'True', 'isCorrect': False},
                {'id': '2', 'text': 'False', 'isCorrect': True},
            ],
            'correctAnswers': ['2'],
        },
    ]


class FakeClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def tick(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import livequiz.models  # noqa: F401
        db.create_all()
    # Requests push their own app context so each one gets a fresh
    # SQLAlchemy session and flask.g, as in production.
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def app_ctx(flask_app):
    with flask_app.app_context():
        yield flask_app
        db.session.remove()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass


@pytest.fixture()
def fake_clock(monkeypatch):
    fake = FakeClock(datetime(2026, 1, 1, 12, 0, 0))
    monkeypatch.setattr(clock, 'utcnow', fake)
    return fake


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture()
def admin_token(client):
    res = client.post('/admin/auth/register', json={
        'email': 'host@example.com', 'password': 'secret', 'name': 'Host',
    })
    assert res.status_code == 200
    return res.get_json()['token']


@pytest.fixture()
def admin(client, admin_token):
    """Test client helper bound to the registered admin."""
    class Admin:
        token = admin_token
        headers = auth_header(admin_token)

        def put_games(self, games):
            return client.put('/admin/games', json={'games': games}, headers=self.headers)

        def games(self):
            return client.get('/admin/games', headers=self.headers).get_json()['games']

        def mutate(self, game_id, mutation_type):
            return client.post(
                f'/admin/game/{game_id}/mutate',
                json={'mutationType': mutation_type},
                headers=self.headers,
            )

        def status(self, session_id):
            return client.get(f'/admin/session/{session_id}/status', headers=self.headers)

        def results(self, session_id):
            return client.get(f'/admin/session/{session_id}/results', headers=self.headers)

        def summary(self, session_id):
            return client.get(f'/admin/session/{session_id}/summary', headers=self.headers)

    return Admin()


@pytest.fixture()
def game_id(admin):
    res = admin.put_games([{'id': 4242, 'name': 'Numbers', 'questions': sample_questions()}])
    assert res.status_code == 200
    return 4242


@pytest.fixture()
def session_id(admin, game_id):
    res = admin.mutate(game_id, 'START')
    assert res.status_code == 200
    return res.get_json()['data']['sessionId']


def join(client, session_id, name):
    res = client.post(f'/play/join/{session_id}', json={'name': name})
    assert res.status_code == 200, res.get_json()
    return res.get_json()['playerId']
