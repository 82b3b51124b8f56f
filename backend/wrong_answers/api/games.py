from functools import wraps

from flask import Blueprint, current_app, jsonify, request
from flask_login import login_required
from werkzeug.exceptions import HTTPException

from wrong_answers.identity import current_user_id, current_username
from wrong_answers.posts import create_game_post
from wrong_answers.services.games.constants import LEADERBOARD_LIMIT
from wrong_answers.services.games.errors import AuthError, GameError

games = Blueprint('games', __name__)
internal = Blueprint('internal', __name__)


def _services():
    return current_app.extensions['wrong_answers']


def _error(message, status):
    return jsonify({'type': 'ERROR', 'error': message}), status


def handle_game_error(exc: GameError):
    return _error(exc.message, exc.status_code)


games.register_error_handler(GameError, handle_game_error)
internal.register_error_handler(GameError, handle_game_error)


def failure_message(message):
    """Render unexpected errors as a 500 with `message` instead of a stack trace."""
    def decorator(view):
        @wraps(view)
        def wrapper(*args, **kwargs):
            try:
                return view(*args, **kwargs)
            except (GameError, HTTPException):
                raise
            except Exception:
                current_app.logger.exception(f'[api-error] {request.method} {request.path}')
                return _error(message, 500)
        return wrapper
    return decorator


@games.route('/games/<string:game_id>/state', methods=['GET'])
@failure_message('Failed to get game state')
def get_game_state(game_id):
    data = _services().games.fetch_state(game_id, current_username())
    return jsonify({'type': 'GAME_STATE', 'data': data}), 200


@games.route('/games/<string:game_id>/submissions', methods=['POST'])
@failure_message('Failed to submit answer')
def submit_answer(game_id):
    data = request.get_json(silent=True) or {}
    submission = _services().games.submit_answer(
        game_id,
        current_user_id(),
        current_username(),
        data.get('answer'),
    )
    return jsonify({'type': 'SUBMIT_SUCCESS', 'data': submission.to_dict()}), 201


@games.route('/games/<string:game_id>/votes', methods=['POST'])
@failure_message('Failed to vote')
def vote(game_id):
    data = request.get_json(silent=True) or {}
    submission_id = data.get('submission_id')
    if not submission_id:
        return _error('submission_id is required', 400)
    result = _services().games.vote(game_id, current_user_id(), str(submission_id))
    return jsonify({'type': 'VOTE_SUCCESS', 'data': result}), 200


@games.route('/leaderboard', methods=['GET'])
@failure_message('Failed to get leaderboard')
def get_leaderboard():
    limit = request.args.get('limit', type=int)
    if limit is None:
        limit = current_app.config.get('LEADERBOARD_LIMIT', LEADERBOARD_LIMIT)
    entries = _services().stats.get_leaderboard(max(0, limit))
    return jsonify({'type': 'LEADERBOARD', 'data': [e.to_dict() for e in entries]}), 200


@games.route('/player-stats', methods=['GET'])
@failure_message('Failed to get player stats')
def get_player_stats():
    user_id = current_user_id()
    if not user_id:
        raise AuthError('User not authenticated')
    player_id = request.args.get('player_id') or user_id
    stats = _services().stats.get_player_stats(player_id)
    return jsonify({'type': 'PLAYER_STATS', 'data': stats.to_dict() if stats else None}), 200


@internal.route('/games/<string:game_id>/rotate-phase', methods=['POST'])
@login_required
@failure_message('Failed to rotate phase')
def rotate_phase(game_id):
    state = _services().games.rotate_phase(game_id)
    return jsonify({
        'status': 'success',
        'message': 'Phase rotated successfully',
        'game_state': state.to_dict(),
    }), 200


@internal.route('/menu/create-game', methods=['POST'])
@login_required
@failure_message('Failed to create game post')
def create_game():
    services = _services()
    post_id, state = create_game_post(services.posts, services.games, created_by=current_username())
    current_app.logger.info(f'[post-created] post={post_id} question={state.current_question.id}')
    return jsonify({
        'post_id': post_id,
        'navigate_to': f'/api/games/{post_id}/state',
        'game_state': state.to_dict(),
    }), 201
