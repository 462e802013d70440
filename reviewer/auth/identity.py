# ==============================================================================
# reviewer/auth/identity.py
# ------------------------------------------------------------------------------
# Google OAuth 2.0 authorization-code flow. Only the verified identity claims
# leave this module; provider tokens are discarded after verification.
# ==============================================================================

import logging
from urllib.parse import urlencode

import requests
from flask import current_app
from google.auth.transport.requests import Request as GoogleRequest
from google.oauth2 import id_token as google_id_token

from reviewer.errors import NotAuthenticated

logger = logging.getLogger(__name__)

AUTHORIZE_URL = 'https://accounts.google.com/o/oauth2/v2/auth'
TOKEN_URL = 'https://oauth2.googleapis.com/token'


class GoogleIdentityProvider:
    """Talks to Google's OAuth endpoints on behalf of the login routes."""

    def __init__(self, client_id, client_secret, redirect_uri, timeout=10):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self.timeout = timeout

    def authorization_url(self, state):
        params = {
            'client_id': self.client_id,
            'redirect_uri': self.redirect_uri,
            'response_type': 'code',
            'scope': 'openid email profile',
            'state': state,
            # Always show the account chooser so a different account can be picked.
            'prompt': 'consent select_account',
        }
        return f'{AUTHORIZE_URL}?{urlencode(params)}'

    def fetch_identity(self, code):
        """
        Exchanges an authorization code for the caller's verified identity.

        Returns:
            dict: {'email', 'email_verified', 'name', 'picture'}

        Raises:
            NotAuthenticated: The exchange or the token verification failed.
        """
        try:
            response = requests.post(TOKEN_URL, data={
                'code': code,
                'client_id': self.client_id,
                'client_secret': self.client_secret,
                'redirect_uri': self.redirect_uri,
                'grant_type': 'authorization_code',
            }, timeout=self.timeout)
            response.raise_for_status()
            token = response.json()['id_token']
            claims = google_id_token.verify_oauth2_token(token, GoogleRequest(), self.client_id)
        except (requests.RequestException, KeyError, ValueError) as e:
            logger.warning(f"Identity provider login failed: {e}")
            raise NotAuthenticated('Login with Google failed. Please try again.') from e

        return {
            'email': claims.get('email'),
            'email_verified': bool(claims.get('email_verified')),
            'name': claims.get('name'),
            'picture': claims.get('picture'),
        }


def create_identity_provider(config):
    return GoogleIdentityProvider(
        client_id=config.get('GOOGLE_CLIENT_ID'),
        client_secret=config.get('GOOGLE_CLIENT_SECRET'),
        redirect_uri=config.get('GOOGLE_CALLBACK_URL'),
    )


def get_identity_provider():
    return current_app.extensions['identity_provider']
