"""
OAuth Routes
GitHub OAuth callback issuing the admin session
"""
import logging
from urllib.parse import urlencode

from flask import Blueprint, current_app, make_response, redirect, render_template, request

from studyhall.errors import BackendError
from studyhall.utils.auth import SESSION_COOKIE, encode_session

logger = logging.getLogger(__name__)

oauth_bp = Blueprint('oauth', __name__)

REQUIRED_SETTINGS = ('GITHUB_CLIENT_ID', 'GITHUB_CLIENT_SECRET', 'ADMIN_GITHUB_USERNAME')


@oauth_bp.route('/github/callback', methods=['GET'])
def github_callback():
    """
    Finish the GitHub OAuth flow.

    500 page when OAuth is not configured, 400 without a code, 403 for any
    account other than the configured admin, otherwise a 302 back to
    return_to carrying the session token (query string and cookie).
    """
    cfg = current_app.config
    return_path = cfg['ADMIN_RETURN_PATH']

    missing = [name for name in REQUIRED_SETTINGS if not cfg.get(name)]
    if missing:
        logger.error('OAuth not configured, missing: %s', ', '.join(missing))
        return render_template('oauth_config_error.html', missing=missing,
                               return_path=return_path), 500

    code = request.args.get('code')
    return_to = request.args.get('return_to') or return_path
    if not code:
        logger.info('OAuth callback without authorization code')
        return render_template(
            'oauth_error.html',
            heading='OAuth Error',
            error=request.args.get('error') or 'missing_code',
            description=request.args.get('error_description')
            or 'No authorization code was provided by GitHub.',
            error_uri=request.args.get('error_uri'),
            return_path=return_path,
        ), 400

    github = current_app.extensions['github_client']
    try:
        access_token = github.exchange_code(code, cfg['GITHUB_CLIENT_ID'], cfg['GITHUB_CLIENT_SECRET'])
        user = github.get_user(access_token)
    except BackendError as err:
        logger.error('GitHub OAuth error: %s', err.message)
        return render_template('oauth_error.html', heading='Authentication Error',
                               error='authentication_failed', description=err.message,
                               error_uri=None, return_path=return_path), 500

    admin_username = cfg['ADMIN_GITHUB_USERNAME']
    login = user.get('login') or ''
    if login.lower() != admin_username.lower():
        logger.warning('Access denied for user %s', login)
        return render_template('access_denied.html', login=login,
                               admin_username=admin_username), 403

    ttl = cfg['ADMIN_SESSION_TTL']
    token = encode_session(user, ttl)
    separator = '&' if '?' in return_to else '?'
    response = make_response(redirect(f"{return_to}{separator}{urlencode({'session': token})}", code=302))
    response.set_cookie(SESSION_COOKIE, token, max_age=ttl, path='/',
                        httponly=True, secure=True, samesite='Strict')
    logger.info('Admin session issued for %s', login)
    return response
