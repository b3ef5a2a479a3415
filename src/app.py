"""
Flask web application for Bracket Voting.

Exposes the bracket engine as a JSON API. Every game lives under a session
key; the engine state is restored from storage at the start of a request and
saved again after each change, with the store lock held for the whole request.
"""
import os
import random
import uuid
from datetime import timedelta
from functools import wraps

from filelock import Timeout
from flask import Flask, jsonify, request

from bracket.builder import ALLOWED_BRACKET_SIZES, get_available_bracket_sizes
from bracket.errors import BracketError, TournamentAlreadyCompleted
from bracket.game import GameStateMachine, build
from bracket.progress import get_bracket_overview, get_current_match, get_final_ranking, get_progress_summary
from bracket.storage import GameStore, autosave, validate_session_key

app = Flask(__name__)

BASE_DIR = os.path.dirname(os.path.dirname(__file__))
DATA_DIR = os.environ.get('BRACKET_DATA_DIR', os.path.join(BASE_DIR, 'data'))
LANGUAGE = os.environ.get('BRACKET_LANGUAGE', 'en')
MAX_ITEMS = int(os.environ.get('BRACKET_MAX_ITEMS', '1024'))
SESSION_MAX_AGE_DAYS = int(os.environ.get('BRACKET_SESSION_MAX_AGE_DAYS', '30'))
LOCK_TIMEOUT = float(os.environ.get('BRACKET_LOCK_TIMEOUT', '10'))


def get_store() -> GameStore:
    """Game storage rooted at the configured data directory."""
    return GameStore(DATA_DIR, lock_timeout=LOCK_TIMEOUT)


def _error(message: str, status: int):
    return jsonify({'success': False, 'error': message}), status


@app.errorhandler(TournamentAlreadyCompleted)
def handle_completed(e):
    return _error(str(e), 409)


@app.errorhandler(BracketError)
def handle_bracket_error(e):
    return _error(str(e), 400)


def with_game(f):
    """Load the game for ``session_key`` and pass a state machine that autosaves."""
    @wraps(f)
    def decorated_function(session_key, *args, **kwargs):
        try:
            validate_session_key(session_key)
        except ValueError:
            return _error('Invalid session key.', 400)
        store = get_store()
        try:
            with store.session(session_key) as state:
                if state is None:
                    return _error('Game not found.', 404)
                machine = GameStateMachine(state, listeners=[autosave(store, session_key)])
                return f(session_key, machine, *args, **kwargs)
        except Timeout:
            app.logger.warning(f'Timed out waiting for the lock on game {session_key}')
            return _error('The game is busy, try again.', 503)
    return decorated_function


def _item_payload(item):
    return item.to_dict() if item is not None else None


def _match_payload(match):
    if match is None:
        return None
    return {
        'id': match.id,
        'round': match.round,
        'match_number': match.match_number,
        'item_a': _item_payload(match.item_a),
        'item_b': _item_payload(match.item_b),
        'winner': _item_payload(match.winner),
        'is_completed': match.is_completed,
    }


def game_view(session_key: str, state) -> dict:
    """JSON view of a game for the play screen."""
    tournament = state.tournament
    return {
        'success': True,
        'session_key': session_key,
        'tournament': {
            'id': tournament.id,
            'title': tournament.title,
            'bracket_size': tournament.bracket_size,
            'total_rounds': tournament.total_rounds,
            'current_round': tournament.current_round,
            'current_match_index': tournament.current_match_index,
        },
        'current_match': _match_payload(get_current_match(tournament)),
        'progress': get_progress_summary(tournament, LANGUAGE),
        'can_undo': state.can_undo,
        'is_completed': tournament.is_completed,
        'winner': _item_payload(tournament.winner),
        'start_time': state.start_time.isoformat(),
        'end_time': state.end_time.isoformat() if state.end_time else None,
    }


@app.route('/api/bracket-sizes', methods=['GET'])
def api_bracket_sizes():
    """Bracket sizes that can be offered for a number of items."""
    item_count = request.args.get('items', type=int)
    if item_count is None or item_count < 0:
        return _error('Query parameter "items" must be a non-negative integer.', 400)
    return jsonify({'success': True, 'sizes': get_available_bracket_sizes(item_count)})


@app.route('/api/games', methods=['POST'])
def api_create_game():
    """Create a game from an item list and a bracket size."""
    data = request.get_json(silent=True) or {}
    items = data.get('items')
    if not isinstance(items, list):
        return _error('"items" must be a list.', 400)
    if len(items) > MAX_ITEMS:
        return _error(f'At most {MAX_ITEMS} items are allowed.', 400)
    bracket_size = data.get('bracket_size')
    if isinstance(bracket_size, bool) or bracket_size not in ALLOWED_BRACKET_SIZES:
        allowed = ', '.join(str(size) for size in ALLOWED_BRACKET_SIZES)
        return _error(f'"bracket_size" must be one of {allowed}.', 400)
    title = str(data.get('title') or 'Tournament').strip()[:200]

    if data.get('shuffle'):
        items = list(items)
        random.shuffle(items)
    try:
        state = build(items, bracket_size, title=title)
    except ValueError as e:
        return _error(str(e), 400)

    session_key = uuid.uuid4().hex
    if not get_store().save(session_key, state):
        app.logger.warning(f'Game {session_key} was created but could not be saved')
        return _error('Could not save the game.', 500)
    app.logger.info(f'Created game {session_key} with {len(state.source_items)} items, bracket size {bracket_size}')
    return jsonify(game_view(session_key, state)), 201


@app.route('/api/games/<session_key>', methods=['GET'])
@with_game
def api_get_game(session_key, machine):
    return jsonify(game_view(session_key, machine.state))


@app.route('/api/games/<session_key>/choice', methods=['POST'])
@with_game
def api_choice(session_key, machine):
    """Decide the current match."""
    data = request.get_json(silent=True) or {}
    match_id = data.get('match_id')
    winner_id = data.get('winner_id')
    if not match_id or winner_id in (None, ''):
        return _error('"match_id" and "winner_id" are required.', 400)
    machine.apply_choice(str(match_id), str(winner_id))
    return jsonify(game_view(session_key, machine.state))


@app.route('/api/games/<session_key>/undo', methods=['POST'])
@with_game
def api_undo(session_key, machine):
    undone = machine.undo()
    view = game_view(session_key, machine.state)
    view['undone'] = undone
    return jsonify(view)


@app.route('/api/games/<session_key>/restart', methods=['POST'])
@with_game
def api_restart(session_key, machine):
    machine.restart()
    return jsonify(game_view(session_key, machine.state))


@app.route('/api/games/<session_key>/bracket', methods=['GET'])
@with_game
def api_bracket(session_key, machine):
    """All rounds of the bracket, with undetermined rounds left empty."""
    rounds = []
    for entry in get_bracket_overview(machine.tournament, LANGUAGE):
        rounds.append({
            'round': entry['round'],
            'name': entry['name'],
            'slots': entry['slots'],
            'is_determined': entry['is_determined'],
            'matches': [_match_payload(m) for m in entry['matches']],
        })
    return jsonify({'success': True, 'rounds': rounds})


@app.route('/api/games/<session_key>/ranking', methods=['GET'])
@with_game
def api_ranking(session_key, machine):
    if not machine.is_completed:
        return _error('The tournament is not finished yet.', 409)
    ranking = [
        {'rank': entry['rank'], 'item': _item_payload(entry['item']), 'round_reached': entry['round_reached']}
        for entry in get_final_ranking(machine.tournament, LANGUAGE)
    ]
    return jsonify({'success': True, 'ranking': ranking})


@app.route('/api/games/<session_key>', methods=['DELETE'])
def api_delete_game(session_key):
    try:
        deleted = get_store().delete(session_key)
    except ValueError:
        return _error('Invalid session key.', 400)
    if not deleted:
        return _error('Game not found.', 404)
    return jsonify({'success': True})


@app.route('/api/games/cleanup', methods=['POST'])
def api_cleanup_games():
    """Remove saved games older than the configured maximum age."""
    removed = get_store().cleanup_expired(timedelta(days=SESSION_MAX_AGE_DAYS))
    return jsonify({'success': True, 'removed': removed})


if __name__ == '__main__':
    app.run(debug=os.environ.get('FLASK_DEBUG') == '1')
