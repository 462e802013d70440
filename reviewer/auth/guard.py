# ==============================================================================
# reviewer/auth/guard.py
# ------------------------------------------------------------------------------
# The session guard: decides whether a request comes from the allow-listed
# identity and keeps its session alive while it is in use.
# ==============================================================================

from datetime import datetime, timezone
from functools import wraps

from flask import current_app, g, session

from reviewer.auth.session_store import get_session_store
from reviewer.errors import AccessDenied, NotAuthenticated

SESSION_ID_KEY = 'sid'

# Identity fields the client may see. Nothing else from the provider is kept.
PUBLIC_IDENTITY_FIELDS = ('email', 'name', 'picture')


def _ttl():
    return current_app.config['SESSION_LIFETIME_SECONDS']


def authorize(identity):
    """
    Admits only the configured identity, with an email the provider verified.

    Raises:
        AccessDenied: Any other identity.
    """
    allowed = (current_app.config.get('ALLOWED_EMAIL') or '').strip().casefold()
    email = (identity.get('email') or '').strip().casefold()
    if not allowed or not email or email != allowed or not identity.get('email_verified'):
        current_app.logger.warning(f"Access denied for identity '{identity.get('email')}'")
        raise AccessDenied()
    return {field: identity.get(field) for field in PUBLIC_IDENTITY_FIELDS}


def start_session(user):
    """Opens a server-side session for an authorized user and binds it to the cookie."""
    end_session()
    session_id = get_session_store().create({
        'user': user,
        'authenticatedAt': datetime.now(timezone.utc).isoformat(),
    }, _ttl())
    session[SESSION_ID_KEY] = session_id
    session.permanent = True
    current_app.logger.info(f"Session started for {user.get('email')}. Active sessions: {get_session_store().count()}")
    return session_id


def end_session():
    """Invalidates the server-side session immediately and clears the cookie."""
    session_id = session.get(SESSION_ID_KEY)
    if session_id:
        store = get_session_store()
        store.delete(session_id)
        current_app.logger.info(f"Session ended. Active sessions: {store.count()}")
    session.clear()


def current_user():
    """
    Returns the signed-in user and slides the session's expiry forward,
    or None when there is no live session. Never revives an expired one.
    """
    session_id = session.get(SESSION_ID_KEY)
    if not session_id:
        return None
    store = get_session_store()
    record = store.get(session_id)
    if record is None or not store.touch(session_id, _ttl()):
        session.pop(SESSION_ID_KEY, None)
        return None
    return record.get('user')


def login_required(f):
    """Decorator that rejects requests without a live session with NotAuthenticated."""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        user = current_user()
        if user is None:
            raise NotAuthenticated()
        g.user = user
        return f(*args, **kwargs)
    return decorated_function
