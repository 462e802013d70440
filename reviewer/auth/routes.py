# ==============================================================================
# reviewer/auth/routes.py
# ------------------------------------------------------------------------------
# Login, logout and session refresh endpoints.
# ==============================================================================

import secrets
from urllib.parse import urlencode

from flask import current_app, g, jsonify, redirect, request, session

from reviewer.auth import bp
from reviewer.auth.guard import authorize, current_user, end_session, login_required, start_session
from reviewer.auth.identity import get_identity_provider
from reviewer.errors import AccessDenied, NotAuthenticated

OAUTH_STATE_KEY = 'oauth_state'


def _client_redirect(**params):
    """Sends the browser back to the client application with a status flag."""
    return redirect(f"{current_app.config['CLIENT_URL']}?{urlencode(params)}")


@bp.route('/status')
def status():
    """Reports whether the caller has a live session; a live session is extended."""
    user = current_user()
    if user is None:
        return jsonify({'authenticated': False})
    return jsonify({'authenticated': True, 'user': user})


@bp.route('/login')
def login():
    """Drops any existing session and starts a fresh login with the identity provider."""
    end_session()
    state = secrets.token_urlsafe(16)
    session[OAUTH_STATE_KEY] = state
    return redirect(get_identity_provider().authorization_url(state))


@bp.route('/callback')
def callback():
    """Completes the login started by /auth/login."""
    expected_state = session.pop(OAUTH_STATE_KEY, None)
    if request.args.get('error'):
        current_app.logger.warning(f"Identity provider returned an error: {request.args.get('error')}")
        return _client_redirect(error='access_denied')
    if not expected_state or request.args.get('state') != expected_state:
        current_app.logger.warning('Login callback with a missing or mismatched state')
        return _client_redirect(error='invalid_state')

    code = request.args.get('code')
    if not code:
        return _client_redirect(error='user_data_missing')

    try:
        identity = get_identity_provider().fetch_identity(code)
        user = authorize(identity)
    except AccessDenied:
        return _client_redirect(error='access_denied')
    except NotAuthenticated:
        return _client_redirect(error='login_failed')

    start_session(user)
    return _client_redirect(auth='success')


@bp.route('/refresh', methods=['POST'])
@login_required
def refresh():
    """Extends a live session. An expired session must log in again."""
    return jsonify({
        'authenticated': True,
        'user': g.user,
        'message': 'Session refreshed successfully',
    })


@bp.route('/logout', methods=['GET', 'POST'])
def logout():
    end_session()
    return jsonify({'authenticated': False, 'message': 'Logged out successfully'})
