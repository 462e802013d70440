# tests/test_sheets.py

from sqlalchemy.exc import OperationalError

from reviewer import db
from reviewer.ledger import selections, votes
from reviewer.models import Note, Selection, Sheet, Vote
from reviewer.sources.google_sheets import extract_spreadsheet_key

SHEET_URL = 'https://docs.google.com/spreadsheets/d/1AbC-d_9xyz/edit#gid=0'


def test_extract_spreadsheet_key():
    assert extract_spreadsheet_key(SHEET_URL) == '1AbC-d_9xyz'


def test_create_sheet_reads_title(auth_client, sheet_source):
    sheet_source.titles['1AbC-d_9xyz'] = 'Fall Hiring Form (Responses)'

    response = auth_client.post('/api/sheets', json={'year': 2026, 'term': 'F', 'sheetUrl': SHEET_URL})

    assert response.status_code == 201
    data = response.get_json()
    assert data['title'] == 'Fall Hiring Form (Responses)'
    assert data['externalSheetId'] == '1AbC-d_9xyz'
    assert data['year'] == '2026'
    assert data['term'] == 'F'
    assert data['id']
    assert db.session.get(Sheet, data['id']) is not None


def test_create_sheet_with_invalid_url(auth_client):
    response = auth_client.post('/api/sheets', json={
        'year': '2026', 'term': 'F', 'sheetUrl': 'https://example.org/not-a-sheet'})

    assert response.status_code == 400
    assert response.get_json()['code'] == 'invalid_url'
    assert Sheet.query.count() == 0


def test_create_sheet_with_missing_fields(auth_client):
    response = auth_client.post('/api/sheets', json={'sheetUrl': SHEET_URL})

    assert response.status_code == 400
    body = response.get_json()
    assert body['code'] == 'invalid_input'
    assert set(body['fields']) == {'year', 'term'}


def test_create_sheet_when_source_is_unreachable(auth_client, sheet_source):
    sheet_source.unavailable = True

    response = auth_client.post('/api/sheets', json={'year': '2026', 'term': 'F', 'sheetUrl': SHEET_URL})

    assert response.status_code == 502
    assert response.get_json()['retryable'] is True
    assert Sheet.query.count() == 0


def test_list_sheets_newest_first(auth_client, sheet_source):
    for term in ('S', 'F'):
        auth_client.post('/api/sheets', json={'year': '2026', 'term': term, 'sheetUrl': SHEET_URL})

    data = auth_client.get('/api/sheets').get_json()

    assert [sheet['term'] for sheet in data] == ['F', 'S']


def test_get_unknown_sheet(auth_client):
    response = auth_client.get('/api/sheets/missing')

    assert response.status_code == 404
    assert response.get_json()['code'] == 'sheet_not_found'


def test_delete_sheet_removes_everything_recorded_against_it(auth_client, sheet_id):
    votes.add_vote(sheet_id, 1, 'Jo')
    votes.add_vote(sheet_id, 1, 'Kim')
    votes.add_vote(sheet_id, 2, 'Jo')
    selections.upsert_selection(sheet_id, 1, True, False)
    selections.upsert_note(sheet_id, 1, 'Call back')

    response = auth_client.delete(f'/api/sheets/{sheet_id}')

    assert response.status_code == 200
    body = response.get_json()
    assert body['deletedSheetId'] == sheet_id
    assert body['removedVotes'] == 3
    assert body['removedSelections'] == 1
    assert body['removedNotes'] == 1
    assert Sheet.query.count() == 0
    assert Vote.query.count() == 0
    assert Selection.query.count() == 0
    assert Note.query.count() == 0
    assert auth_client.get(f'/api/sheets/{sheet_id}/votes').status_code == 404


def test_delete_sheet_leaves_other_sheets_alone(auth_client, sheet_id):
    db.session.add(Sheet(id='other', year='2026', term='S', sheet_url='u',
                         external_sheet_id='k2', title='Other'))
    db.session.commit()
    votes.add_vote('other', 1, 'Jo')
    votes.add_vote(sheet_id, 1, 'Jo')

    auth_client.delete(f'/api/sheets/{sheet_id}')

    assert votes.tally('other') == {'other-1': ['Jo']}


def test_failed_delete_changes_nothing(auth_client, sheet_id, monkeypatch):
    votes.add_vote(sheet_id, 1, 'Jo')
    selections.upsert_selection(sheet_id, 1, True, True)

    def failing_commit():
        raise OperationalError('COMMIT', {}, Exception('disk I/O error'))

    monkeypatch.setattr(db.session, 'commit', failing_commit)
    response = auth_client.delete(f'/api/sheets/{sheet_id}')
    monkeypatch.undo()

    assert response.status_code == 500
    assert response.get_json()['code'] == 'storage_failure'
    assert Sheet.query.count() == 1
    assert votes.tally(sheet_id) == {f'{sheet_id}-1': ['Jo']}
    assert selections.get_selection(sheet_id, 1)['selectedForHiring'] is True


def test_delete_unknown_sheet(auth_client):
    assert auth_client.delete('/api/sheets/missing').status_code == 404
