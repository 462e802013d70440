# ==============================================================================
# config.py
# ------------------------------------------------------------------------------
# Configuration settings for the Flask application.
# Uses environment variables for sensitive data to keep them out of version control.
# ==============================================================================

import os
from dotenv import load_dotenv

# Determine the absolute path of the project directory
basedir = os.path.abspath(os.path.dirname(__file__))

# Load environment variables from a .env file located in the project root
load_dotenv(os.path.join(basedir, '.env'))


def _env_flag(name, default='false'):
    return os.environ.get(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    """
    Base configuration class. Contains default settings that can be overridden
    by environment-specific configurations.
    """
    # --- Security ---
    # Signs the session cookie, which only carries the server-side session id.
    SECRET_KEY = os.environ.get('SECRET_KEY') or os.environ.get('SESSION_SECRET') or \
        'you-should-really-set-a-secret-key-in-your-env-file'

    # The single identity allowed to use the application.
    ALLOWED_EMAIL = os.environ.get('ALLOWED_EMAIL')

    # --- Identity provider (Google OAuth 2.0) ---
    GOOGLE_CLIENT_ID = os.environ.get('GOOGLE_CLIENT_ID')
    GOOGLE_CLIENT_SECRET = os.environ.get('GOOGLE_CLIENT_SECRET')
    GOOGLE_CALLBACK_URL = os.environ.get('GOOGLE_CALLBACK_URL')
    CLIENT_URL = os.environ.get('CLIENT_URL') or '/'

    # --- Spreadsheet source (service account) ---
    GOOGLE_APPLICATION_CREDENTIALS = os.environ.get('GOOGLE_APPLICATION_CREDENTIALS')
    GOOGLE_SHEETS_CLIENT_EMAIL = os.environ.get('GOOGLE_SHEETS_CLIENT_EMAIL')
    GOOGLE_SHEETS_PRIVATE_KEY = os.environ.get('GOOGLE_SHEETS_PRIVATE_KEY')
    SHEET_RANGE = os.environ.get('SHEET_RANGE') or 'A:Z'

    # --- Database Configuration ---
    # SQLite in the instance folder by default; set DATABASE_URL for PostgreSQL.
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or \
        'sqlite:///' + os.path.join(basedir, 'instance/reviewer.db')

    # Disable an SQLAlchemy feature that is not needed and adds overhead.
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # --- Sessions ---
    # 'redis://host:port/db' for a shared store, 'memory://' for a single process.
    SESSION_STORE_URL = os.environ.get('SESSION_STORE_URL') or 'memory://'
    SESSION_LIFETIME_SECONDS = int(os.environ.get('SESSION_LIFETIME_SECONDS') or 7 * 24 * 60 * 60)
    SESSION_COOKIE_NAME = 'applicant-reviewer-session'
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    SESSION_COOKIE_SECURE = _env_flag('SESSION_COOKIE_SECURE')

    # The JSON API authenticates through the session, not form tokens.
    WTF_CSRF_ENABLED = False

    # Settings without which login or sheet access cannot work.
    REQUIRED_SETTINGS = (
        'ALLOWED_EMAIL',
        'GOOGLE_CLIENT_ID',
        'GOOGLE_CLIENT_SECRET',
        'GOOGLE_CALLBACK_URL',
    )


class TestingConfig(Config):
    """Configuration used by the test suite."""
    TESTING = True
    SECRET_KEY = 'testing-secret-key'
    SQLALCHEMY_DATABASE_URI = 'sqlite:///:memory:'
    SESSION_STORE_URL = 'memory://'
    SESSION_LIFETIME_SECONDS = 60 * 60
    ALLOWED_EMAIL = 'director@example.org'
    GOOGLE_CLIENT_ID = 'test-client-id'
    GOOGLE_CLIENT_SECRET = 'test-client-secret'
    GOOGLE_CALLBACK_URL = 'http://localhost/auth/callback'
    CLIENT_URL = 'http://localhost:3000'
