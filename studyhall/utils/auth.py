"""
Admin Session Helpers
Base64 session tokens issued after GitHub OAuth, and the admin decorator
"""
from functools import wraps
import base64
import binascii
import json
import time

from flask import current_app, g, request

from studyhall.errors import AuthorizationError

SESSION_COOKIE = 'admin_session'
SESSION_HEADER = 'X-Admin-Session'


def now_ms():
    return int(time.time() * 1000)


def encode_session(user, ttl_seconds=24 * 60 * 60, issued_at_ms=None):
    """
    Session token for a GitHub user profile: base64 of the JSON payload
    {username, name, avatar, timestamp, expiresAt} (epoch milliseconds).
    """
    issued = issued_at_ms if issued_at_ms is not None else now_ms()
    payload = {
        'username': user['login'],
        'name': user.get('name') or user['login'],
        'avatar': user.get('avatar_url'),
        'timestamp': issued,
        'expiresAt': issued + ttl_seconds * 1000,
    }
    return base64.b64encode(json.dumps(payload).encode('utf-8')).decode('ascii')


def decode_session(token, at_ms=None):
    """Payload of a valid, unexpired token; None otherwise"""
    if not token:
        return None
    try:
        payload = json.loads(base64.b64decode(token.encode('ascii'), validate=True))
    except (binascii.Error, ValueError, UnicodeError):
        return None
    if not isinstance(payload, dict) or not payload.get('username'):
        return None
    expires = payload.get('expiresAt')
    if not isinstance(expires, (int, float)) or expires <= (at_ms if at_ms is not None else now_ms()):
        return None
    return payload


def current_admin():
    """
    Username of the admin making the request, or None.

    A valid session for ADMIN_GITHUB_USERNAME qualifies, as does any valid
    session whose username carries the admin claim in user_profiles.
    """
    if 'admin_actor' in g:
        return g.admin_actor

    token = request.cookies.get(SESSION_COOKIE) or request.headers.get(SESSION_HEADER)
    session = decode_session(token)
    actor = None
    if session:
        username = session['username']
        configured = current_app.config.get('ADMIN_GITHUB_USERNAME') or ''
        if configured and username.lower() == configured.lower():
            actor = username
        else:
            from studyhall.services.admin_service import AdminService
            if AdminService.has_admin_claim(username):
                actor = username

    g.admin_actor = actor
    return actor


def require_admin_session(f):
    """Decorator rejecting requests without an admin session (403 JSON)"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if not current_admin():
            raise AuthorizationError('Access denied: admin access required')
        return f(*args, **kwargs)
    return decorated_function
