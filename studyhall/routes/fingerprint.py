"""
Fingerprint Routes
Visit logging endpoint and the allow-list gate check
"""
from flask import Blueprint, current_app, jsonify, render_template, request

from studyhall.clients.access_gate import RESTRICTED_TEMPLATE
from studyhall.errors import ValidationError
from studyhall.utils import client_ip

fingerprint_bp = Blueprint('fingerprint', __name__)


@fingerprint_bp.route('/fingerprint/log', methods=['POST'])
def log_fingerprint():
    """File one visit record as a GitHub issue (201)"""
    payload = request.get_json(silent=True)
    if payload is None:
        raise ValidationError('Invalid JSON payload')
    service = current_app.extensions['fingerprint_service']
    result = service.log(payload, client_ip(request.headers, request.remote_addr))
    return jsonify(result), 201


@fingerprint_bp.route('/access/check', methods=['POST'])
def access_check():
    """JSON decision when allowed, the restricted page with 403 when blocked"""
    props = request.get_json(silent=True)
    if not isinstance(props, dict):
        raise ValidationError('Browser properties must be a JSON object')

    decision = current_app.extensions['access_gate'].check(props)
    if not decision.allowed:
        return render_template(RESTRICTED_TEMPLATE), 403
    return jsonify({
        'allowed': True,
        'fingerprint': decision.fingerprint,
        'reason': decision.reason,
    })
