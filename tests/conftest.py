# tests/conftest.py

import pytest

from config import TestingConfig
from reviewer.errors import NotAuthenticated, SourceUnavailable

ALLOWED_EMAIL = TestingConfig.ALLOWED_EMAIL


class FakeClock:
    """Monotonic clock the tests can move forward."""

    def __init__(self, start=1000.0):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


class FakeSheetSource:
    """Stands in for Google Sheets: rows and titles per spreadsheet key."""

    def __init__(self):
        self.rows = {}
        self.titles = {}
        self.unavailable = False
        self.fetches = 0

    def fetch_title(self, spreadsheet_key):
        if self.unavailable:
            raise SourceUnavailable()
        return self.titles.get(spreadsheet_key, f'Applications {spreadsheet_key}')

    def fetch_rows(self, spreadsheet_key, cell_range='A:Z'):
        self.fetches += 1
        if self.unavailable:
            raise SourceUnavailable()
        return [list(row) for row in self.rows.get(spreadsheet_key, [])]


class FakeIdentityProvider:
    """Returns a fixed identity for any code except 'bad-code'."""

    def __init__(self):
        self.identity = {
            'email': ALLOWED_EMAIL,
            'email_verified': True,
            'name': 'Hiring Director',
            'picture': 'https://example.org/avatar.png',
            'access_token': 'must-never-reach-the-client',
        }

    def authorization_url(self, state):
        return f'https://accounts.example.org/auth?state={state}'

    def fetch_identity(self, code):
        if code == 'bad-code':
            raise NotAuthenticated('Login with Google failed. Please try again.')
        return dict(self.identity)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def sheet_source():
    return FakeSheetSource()


@pytest.fixture
def identity_provider():
    return FakeIdentityProvider()


@pytest.fixture
def app(clock, sheet_source, identity_provider):
    """
    Creates a new app instance for each test with an in-memory database and
    an in-process session store driven by the fake clock.
    """
    from reviewer import create_app, db
    from reviewer.auth.session_store import MemorySessionStore

    app = create_app(
        TestingConfig,
        sheet_source=sheet_source,
        identity_provider=identity_provider,
        session_store=MemorySessionStore(clock=clock),
    )

    with app.app_context():
        db.create_all()
        yield app  # The tests will run here
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def session_store(app):
    return app.extensions['session_store']


@pytest.fixture
def auth_client(client, session_store, app):
    """A test client holding a live session for the allow-listed identity."""
    session_id = session_store.create(
        {'user': {'email': ALLOWED_EMAIL, 'name': 'Hiring Director', 'picture': None}},
        app.config['SESSION_LIFETIME_SECONDS'],
    )
    with client.session_transaction() as sess:
        sess['sid'] = session_id
    return client


@pytest.fixture
def sheet_id(app):
    """Id of a registered sheet pointing at spreadsheet key "sheet-key"."""
    from reviewer import db
    from reviewer.models import Sheet

    record = Sheet(id='a1b2c3', year='2026', term='F',
                   sheet_url='https://docs.google.com/spreadsheets/d/sheet-key/edit',
                   external_sheet_id='sheet-key', title='Fall 2026 Applications')
    db.session.add(record)
    db.session.commit()
    return 'a1b2c3'
