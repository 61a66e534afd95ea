from flask import Blueprint, jsonify
from sqlalchemy import text
from livequiz import db
from livequiz.services.quiz.clock import utcnow, isoformat

main = Blueprint('main', __name__)

@main.route('/')
def index():
    return jsonify({'message': 'Welcome to the live quiz server!'})

@main.route('/health')
def health():
    db.session.execute(text('SELECT 1'))
    return jsonify({'status': 'ok', 'timestamp': isoformat(utcnow())})
