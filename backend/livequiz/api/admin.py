from flask import Blueprint, jsonify, request, current_app
from livequiz import auth
from livequiz.auth import admin_required
from livequiz.errors import InputError
from livequiz.services import catalog, store
from livequiz.services.quiz import lifecycle, results


admin = Blueprint('admin', __name__)


@admin.route('/auth/register', methods=['POST'])
def register():
    token = auth.register(request.get_json(silent=True))
    return jsonify({'token': token})


@admin.route('/auth/login', methods=['POST'])
def login():
    token = auth.login(request.get_json(silent=True))
    return jsonify({'token': token})


@admin.route('/auth/logout', methods=['POST'])
@admin_required
def logout(email):
    auth.logout(email)
    return jsonify({})


@admin.route('/games', methods=['GET'])
@admin_required
def list_games(email):
    games = catalog.list_games_by_owner(email)
    return jsonify({'games': [g.to_dict() for g in games]})


@admin.route('/games', methods=['PUT'])
@admin_required
def update_games(email):
    data = request.get_json(silent=True)
    if not data or 'games' not in data:
        raise InputError("Request body must contain a 'games' field")
    if not isinstance(data['games'], list):
        raise InputError('Games must be an array')
    catalog.replace_games_for_owner(email, data['games'])
    return jsonify({})


@admin.route('/game/<gameid>/mutate', methods=['POST'])
@admin_required
def mutate_game(gameid, email):
    catalog.assert_owns_game(email, gameid)
    mutation_type = str((request.get_json(silent=True) or {}).get('mutationType') or '').upper()

    if mutation_type == 'START':
        session = lifecycle.start(gameid)
        data = {'status': 'started', 'sessionId': session.id}
    elif mutation_type == 'ADVANCE':
        position = lifecycle.advance(gameid)
        if position is None:
            data = {'status': 'ended'}
        else:
            data = {'status': 'advanced', 'position': position}
    elif mutation_type == 'END':
        lifecycle.end(gameid)
        data = {'status': 'ended'}
    else:
        raise InputError('mutationType must be one of START, ADVANCE or END')
    return jsonify({'data': data})


@admin.route('/game/<gameid>/sessions', methods=['GET'])
@admin_required
def session_history(gameid, email):
    game = catalog.assert_owns_game(email, gameid)
    return jsonify({'sessions': store.list_old_sessions(game.id)})


@admin.route('/session/<sessionid>/status', methods=['GET'])
@admin_required
def session_status(sessionid, email):
    store.assert_owns_session(email, sessionid)
    return jsonify({'results': lifecycle.status(sessionid)})


@admin.route('/session/<sessionid>/results', methods=['GET'])
@admin_required
def session_results(sessionid, email):
    store.assert_owns_session(email, sessionid)
    return jsonify({'results': results.session_results(sessionid)})


@admin.route('/session/<sessionid>/summary', methods=['GET'])
@admin_required
def session_summary(sessionid, email):
    store.assert_owns_session(email, sessionid)
    top_n = int(current_app.config.get('RESULTS_TOP_N', 5))
    return jsonify({'summary': results.summarize(sessionid, top_n=top_n)})
