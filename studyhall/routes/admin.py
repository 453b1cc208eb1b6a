"""
Admin Routes
Leaderboard maintenance, admin claims, audit log and user statistics
"""
from flask import Blueprint, current_app, jsonify, request

from studyhall.errors import ValidationError
from studyhall.services import AdminService, LeaderboardService
from studyhall.utils import client_ip, utc_to_local
from studyhall.utils.auth import current_admin, require_admin_session

admin_bp = Blueprint('admin', __name__)


def request_ip():
    return client_ip(request.headers, request.remote_addr)


@admin_bp.route('/leaderboards/regenerate', methods=['POST'])
@require_admin_session
def regenerate_leaderboards():
    """Rebuild materialized boards (all configured modules by default)"""
    data = request.get_json(silent=True) or {}
    module_ids = data.get('modules') or current_app.config['LEADERBOARD_MODULES']
    if not isinstance(module_ids, list) or not all(isinstance(m, str) for m in module_ids):
        raise ValidationError('modules must be a list of module ids')

    counts = LeaderboardService.regenerate(module_ids)
    AdminService.log_action(current_admin(), f"regenerateLeaderboards: {','.join(module_ids)}",
                            ip=request_ip())
    return jsonify({'success': True, 'modules': counts})


@admin_bp.route('/claims', methods=['POST'])
@require_admin_session
def set_claim():
    data = request.get_json(silent=True) or {}
    profile = AdminService.set_admin_claim(data.get('username'), data.get('isAdmin'),
                                           actor=current_admin())
    return jsonify({'success': True, 'profile': profile.to_dict()})


@admin_bp.route('/log', methods=['POST'])
@require_admin_session
def log_action():
    data = request.get_json(silent=True) or {}
    entry = AdminService.log_action(current_admin(), data.get('action'), ip=request_ip())
    return jsonify(entry.to_dict()), 201


@admin_bp.route('/logs', methods=['GET'])
@require_admin_session
def list_logs():
    """Recent audit entries with the timestamp also shown in the site timezone"""
    limit = request.args.get('limit', 100, type=int)
    tz_name = current_app.config['TIMEZONE']
    logs = []
    for entry in AdminService.recent_logs(limit):
        data = entry.to_dict()
        local = utc_to_local(entry.timestamp, tz_name)
        data['localTime'] = local.strftime('%Y-%m-%d %H:%M %Z') if local else None
        logs.append(data)
    return jsonify({'logs': logs})


@admin_bp.route('/stats', methods=['GET'])
@require_admin_session
def user_stats():
    """Per-user totals plus the paginated attempt history"""
    before_id = request.args.get('before', type=int)
    history = LeaderboardService.attempt_history(
        username=request.args.get('username'),
        module_id=request.args.get('module'),
        before_id=before_id,
    )
    return jsonify({
        'users': LeaderboardService.admin_user_stats(),
        'modules': LeaderboardService.module_totals(),
        'history': history,
    })
