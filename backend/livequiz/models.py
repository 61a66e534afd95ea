from livequiz import db, bcrypt
from livequiz.services.quiz.clock import utcnow, isoformat
from flask_login import UserMixin
import random
import secrets

class User(UserMixin, db.Model):
    __tablename__ = 'user'
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    name = db.Column(db.String(64), nullable=True)
    password_hash = db.Column(db.String(256), nullable=False)
    token = db.Column(db.String(64), unique=True, nullable=True, index=True)

    def set_password(self, password):
        self.password_hash = bcrypt.generate_password_hash(password).decode('utf-8')

    def check_password(self, password):
        return bcrypt.check_password_hash(self.password_hash, password)

    def issue_token(self):
        self.token = secrets.token_hex(32)
        return self.token

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
        }

def generate_numeric_id(model, digits=6):
    """Generate an unused random id, short enough to type into a join screen."""
    low, high = 10 ** (digits - 1), 10 ** digits - 1
    while True:
        candidate = random.randint(low, high)
        if not db.session.get(model, candidate):
            return candidate

class Game(db.Model):
    __tablename__ = 'game'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    owner = db.Column(db.String(120), nullable=False, index=True)
    description = db.Column(db.Text, nullable=True)
    thumbnail = db.Column(db.Text, nullable=True)
    questions = db.Column(db.JSON, nullable=False, default=list)
    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    # Points at the running session, written together with its transitions
    active_session_id = db.Column(
        db.Integer,
        db.ForeignKey('game_session.id', name='fk_game_active_session_id', use_alter=True),
        nullable=True,
    )
    sessions = db.relationship(
        'GameSession',
        foreign_keys='GameSession.game_id',
        back_populates='game',
        lazy='dynamic',
    )

    def __init__(self, **kwargs):
        super(Game, self).__init__(**kwargs)
        if not self.id:
            self.id = generate_numeric_id(Game, digits=8)

    @property
    def old_sessions(self):
        ended = (
            self.sessions.filter_by(active=False)
            .order_by(GameSession.ended_at, GameSession.id)
            .all()
        )
        return [s.id for s in ended]

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'owner': self.owner,
            'description': self.description or '',
            'thumbnail': self.thumbnail or '',
            'questions': self.questions or [],
            'active': self.active_session_id,
            'oldSessions': self.old_sessions,
            'createdAt': isoformat(self.created_at),
        }

class GameSession(db.Model):
    __tablename__ = 'game_session'
    id = db.Column(db.Integer, primary_key=True)
    game_id = db.Column(db.Integer, db.ForeignKey('game.id'), nullable=False, index=True)
    position = db.Column(db.Integer, nullable=False, default=-1)
    active = db.Column(db.Boolean, nullable=False, default=True)
    # Snapshot of the game's questions at start time
    questions = db.Column(db.JSON, nullable=False, default=list)
    iso_time_last_question_started = db.Column(db.DateTime, nullable=True)
    started_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    ended_at = db.Column(db.DateTime, nullable=True)
    game = db.relationship('Game', foreign_keys=[game_id], back_populates='sessions')
    players = db.relationship('Player', back_populates='session', order_by='Player.seat')

    def __init__(self, **kwargs):
        super(GameSession, self).__init__(**kwargs)
        if not self.id:
            self.id = generate_numeric_id(GameSession)

class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), nullable=False)
    session_id = db.Column(db.Integer, db.ForeignKey('game_session.id'), nullable=False, index=True)
    joined_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    # Join order within the session, used as the stable tie-break in rankings
    seat = db.Column(db.Integer, nullable=False, default=0)
    session = db.relationship('GameSession', back_populates='players')
    answers = db.relationship('AnswerRecord', back_populates='player', order_by='AnswerRecord.question_index')

    def __init__(self, **kwargs):
        super(Player, self).__init__(**kwargs)
        if not self.id:
            self.id = generate_numeric_id(Player, digits=9)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'sessionId': self.session_id,
        }

class AnswerRecord(db.Model):
    __tablename__ = 'answer_record'
    __table_args__ = (
        db.UniqueConstraint('player_id', 'question_index', name='uq_answer_record_player_question'),
    )
    id = db.Column(db.Integer, primary_key=True)
    player_id = db.Column(db.Integer, db.ForeignKey('player.id'), nullable=False, index=True)
    question_index = db.Column(db.Integer, nullable=False)
    answers = db.Column(db.JSON, nullable=False, default=list)
    question_started_at = db.Column(db.DateTime, nullable=True)
    answered_at = db.Column(db.DateTime, nullable=True)
    correct = db.Column(db.Boolean, nullable=False, default=False)
    points = db.Column(db.Integer, nullable=False, default=0)
    # Set once the answer window for this player/question has closed
    closed = db.Column(db.Boolean, nullable=False, default=False)
    player = db.relationship('Player', back_populates='answers')

    def to_dict(self):
        return {
            'questionIndex': self.question_index,
            'answers': list(self.answers or []),
            'questionStartedAt': isoformat(self.question_started_at),
            'answeredAt': isoformat(self.answered_at),
            'correct': bool(self.correct),
            'points': self.points or 0,
        }
