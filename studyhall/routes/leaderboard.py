"""
Leaderboard Routes
Attempt submission and per-module leaderboards
"""
from flask import Blueprint, current_app, jsonify, request

from studyhall.errors import ValidationError
from studyhall.services import LeaderboardService

leaderboard_bp = Blueprint('leaderboard', __name__)


def _limit_arg(default):
    raw = request.args.get('limit')
    if raw is None:
        return default
    try:
        limit = int(raw)
    except ValueError:
        raise ValidationError('limit must be an integer')
    if limit < 1:
        raise ValidationError('limit must be positive')
    return min(limit, 50)


@leaderboard_bp.route('/leaderboard/<module_id>', methods=['GET'])
def module_leaderboard(module_id):
    limit = _limit_arg(current_app.config['LEADERBOARD_TOP_N'])
    return jsonify({
        'moduleId': module_id,
        'moduleName': current_app.config['MODULE_NAMES'].get(module_id, module_id),
        'entries': LeaderboardService.get_leaderboard(module_id, limit),
    })


@leaderboard_bp.route('/leaderboard', methods=['GET'])
def all_leaderboards():
    """Top entries for every configured module"""
    limit = _limit_arg(current_app.config['LEADERBOARD_TOP_N'])
    names = current_app.config['MODULE_NAMES']
    boards = [
        {
            'moduleId': module_id,
            'moduleName': names.get(module_id, module_id),
            'entries': LeaderboardService.get_leaderboard(module_id, limit),
        }
        for module_id in current_app.config['LEADERBOARD_MODULES']
    ]
    return jsonify({'leaderboards': boards})


@leaderboard_bp.route('/attempts', methods=['POST'])
def submit_attempt():
    attempt = LeaderboardService.submit_attempt(request.get_json(silent=True))
    return jsonify(attempt.to_dict()), 201


@leaderboard_bp.route('/attempts', methods=['GET'])
def user_attempts():
    username = (request.args.get('username') or '').strip()
    if not username:
        raise ValidationError('username is required')
    return jsonify({
        'username': username,
        'attempts': LeaderboardService.get_user_attempts(username, _limit_arg(50)),
    })
