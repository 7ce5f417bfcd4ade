from flask import Blueprint, jsonify, request, current_app
from app.models import PLAYER_IDS
from app.services.games.colors import InvalidColorError, parse_hex
from app.services.games.registry import get_registry
from app.services.games.session import SHOW_DURATION_SEC
from app.socketio_events import end_session
import time


games = Blueprint('games', __name__)


def _controller_action(session, action: str, apply):
    """Run a debounced controller action.

    Only an applied action opens the debounce window, and a debounced request
    gets the unchanged snapshot back.
    """
    debounce_ms = int(current_app.config.get('CONTROLLER_DEBOUNCE_MS', 0))
    now = time.time() * 1000.0
    if debounce_ms > 0 and now - session.action_times.get(action, 0) < debounce_ms:
        current_app.logger.info(f"[debounced] game={session.game_code} action={action}")
        return _snapshot(session, False)
    applied = apply()
    if applied:
        session.action_times[action] = now
    return _snapshot(session, applied)


def _not_found():
    return jsonify({'error': 'Game not found'}), 404


def _snapshot(session, applied=None):
    payload = session.to_dict()
    if applied is not None:
        payload['applied'] = applied
    return jsonify(payload)


@games.route('/create', methods=['POST'])
def create_game():
    session = get_registry().create()
    current_app.logger.info(f"[create] game={session.game_code}")
    payload = session.to_dict()
    payload['message'] = 'New game created!'
    return jsonify(payload), 201


@games.route('/<string:game_code>/state', methods=['GET'])
def get_game_state(game_code):
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    payload = session.to_dict()
    # Include stage durations so clients can show countdowns
    payload['durations'] = {'showing': SHOW_DURATION_SEC}
    return jsonify(payload)


@games.route('/<string:game_code>/start', methods=['POST'])
def start_game(game_code):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'Player names are required'}), 400
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    name1 = data.get('player1_name')
    name2 = data.get('player2_name')
    if not all(n is None or isinstance(n, str) for n in (name1, name2)):
        return jsonify({'error': 'Player names must be strings'}), 400
    # Blank names leave the game in name entry
    return _snapshot(session, session.start_game(name1, name2))


@games.route('/<string:game_code>/rounds', methods=['POST'])
def start_round(game_code):
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    return _controller_action(session, 'round', session.start_round)


@games.route('/<string:game_code>/guess', methods=['POST'])
def set_guess(game_code):
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({'error': 'player_id and color are required'}), 400
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    player_id = data.get('player_id')
    if player_id not in PLAYER_IDS:
        return jsonify({'error': 'player_id must be 1 or 2'}), 400
    try:
        color = parse_hex(data.get('color'))
    except InvalidColorError as exc:
        return jsonify({'error': str(exc)}), 400
    return _snapshot(session, session.set_guess(player_id, color))


@games.route('/<string:game_code>/submit', methods=['POST'])
def submit_guesses(game_code):
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    return _controller_action(session, 'submit', session.submit_guesses)


@games.route('/<string:game_code>/next', methods=['POST'])
def start_next_round(game_code):
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    return _controller_action(session, 'next', session.start_next_round)


@games.route('/<string:game_code>/instructions', methods=['POST'])
def toggle_instructions(game_code):
    session = get_registry().get(game_code)
    if not session:
        return _not_found()
    return _snapshot(session, session.toggle_instructions())


@games.route('/<string:game_code>', methods=['DELETE'])
def delete_game(game_code):
    if not end_session(game_code.upper()):
        return _not_found()
    return jsonify({'message': 'Game ended', 'game_code': game_code.upper()})
