from flask import Blueprint, jsonify, request
from livequiz.services.quiz import ledger, lifecycle


play = Blueprint('play', __name__)


@play.route('/join/<sessionid>', methods=['POST'])
def join(sessionid):
    data = request.get_json(silent=True) or {}
    player_id = lifecycle.join(sessionid, data.get('name'))
    return jsonify({'playerId': player_id})


@play.route('/<playerid>/status', methods=['GET'])
def status(playerid):
    return jsonify({'started': lifecycle.has_started(playerid)})


@play.route('/<playerid>/question', methods=['GET'])
def question(playerid):
    return jsonify({'question': lifecycle.current_question_for(playerid)})


@play.route('/<playerid>/answer', methods=['GET'])
def reveal_answers(playerid):
    return jsonify({'answerIds': ledger.reveal_answers(playerid)})


@play.route('/<playerid>/answer', methods=['PUT'])
def submit_answers(playerid):
    data = request.get_json(silent=True) or {}
    ledger.submit(playerid, data.get('answers'))
    return jsonify({})


@play.route('/<playerid>/results', methods=['GET'])
def player_results(playerid):
    return jsonify(ledger.player_results(playerid))
