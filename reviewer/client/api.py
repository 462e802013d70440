# ==============================================================================
# reviewer/client/api.py
# ------------------------------------------------------------------------------
# HTTP client for the reviewer API. A call rejected for authentication is
# retried exactly once, after one session refresh.
# ==============================================================================

import logging
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """An API call failed. status_code is None when the server was not reached."""

    def __init__(self, status_code, payload=None):
        payload = payload or {}
        self.status_code = status_code
        self.code = payload.get('code')
        self.retryable = bool(payload.get('retryable', status_code is None))
        self.message = payload.get('error') or f'Request failed with status {status_code}'
        super().__init__(self.message)

    @property
    def authentication_denied(self):
        return self.status_code == 401


class ReviewClient:
    """
    Thin wrapper around the JSON API. Pass a requests.Session to share
    cookies with another component; one is created otherwise.
    """

    def __init__(self, base_url, session=None, timeout=10):
        self.base_url = base_url.rstrip('/')
        self.http = session or requests.Session()
        self.timeout = timeout

    def _send(self, method, path, **kwargs):
        try:
            return self.http.request(method, f'{self.base_url}{path}', timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ApiError(None, {'error': str(e), 'code': 'network_error', 'retryable': True}) from e

    @staticmethod
    def _decode(response):
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if response.status_code >= 400:
            raise ApiError(response.status_code, payload if isinstance(payload, dict) else None)
        return payload

    def _call(self, method, path, **kwargs):
        response = self._send(method, path, **kwargs)
        if response.status_code != 401:
            return self._decode(response)

        logger.info(f"{method} {path} was rejected, refreshing the session once")
        try:
            self.refresh()
        except ApiError as e:
            logger.info(f"Session refresh failed: {e}")
            return self._decode(response)
        return self._decode(self._send(method, path, **kwargs))

    # --- Session ---

    def status(self):
        return self._decode(self._send('GET', '/auth/status'))

    def refresh(self):
        return self._decode(self._send('POST', '/auth/refresh'))

    def logout(self):
        return self._decode(self._send('POST', '/auth/logout'))

    # --- Sheets ---

    def list_sheets(self):
        return self._call('GET', '/api/sheets')

    def add_sheet(self, year, term, sheet_url):
        return self._call('POST', '/api/sheets', json={'year': year, 'term': term, 'sheetUrl': sheet_url})

    def delete_sheet(self, sheet_id):
        return self._call('DELETE', f'/api/sheets/{quote(sheet_id, safe="")}')

    def applicants(self, sheet_id):
        return self._call('GET', f'/api/sheets/{quote(sheet_id, safe="")}/applicants')

    # --- Votes ---

    def votes(self, sheet_id):
        return self._call('GET', f'/api/sheets/{quote(sheet_id, safe="")}/votes')

    def add_vote(self, sheet_id, applicant_row, voter_name):
        return self._call('POST', '/api/votes', json={
            'sheetId': sheet_id, 'applicantRow': applicant_row, 'voterName': voter_name,
        })

    def delete_vote(self, sheet_id, applicant_row, voter_name):
        path = f'/api/votes/{quote(sheet_id, safe="")}/{int(applicant_row)}/{quote(voter_name, safe="")}'
        return self._call('DELETE', path)

    # --- Selections and notes ---

    def selections(self, sheet_id):
        return self._call('GET', f'/api/sheets/{quote(sheet_id, safe="")}/selections')

    def set_selection(self, sheet_id, applicant_row, selected_for_interview, selected_for_hiring):
        return self._call('PUT', f'/api/sheets/{quote(sheet_id, safe="")}/selections/{int(applicant_row)}', json={
            'selectedForInterview': bool(selected_for_interview),
            'selectedForHiring': bool(selected_for_hiring),
        })

    def notes(self, sheet_id):
        return self._call('GET', f'/api/sheets/{quote(sheet_id, safe="")}/notes')

    def set_note(self, sheet_id, applicant_row, text):
        return self._call('PUT', f'/api/sheets/{quote(sheet_id, safe="")}/notes/{int(applicant_row)}',
                          json={'text': text})
