# tests/test_aggregator.py

from types import SimpleNamespace

import pytest

from reviewer.applicants.aggregator import aggregate_applicants
from reviewer.errors import SourceUnavailable, StorageFailure

SHEET = SimpleNamespace(id='s1', external_sheet_id='key-1')

HEADER = ['Timestamp', 'Full Name', 'Email Address', 'First Choice Directorship', 'Position']


def _aggregate(source, rows, tally=None):
    source.rows['key-1'] = rows
    return aggregate_applicants(SHEET, source, lambda sheet_id: tally or {})


def test_fewer_than_two_rows_is_empty(sheet_source):
    empty = {'headers': [], 'applicants': {}, 'totalApplicants': 0}

    assert _aggregate(sheet_source, []) == empty
    assert _aggregate(sheet_source, [HEADER]) == empty


def test_blank_header_row_is_empty(sheet_source):
    result = _aggregate(sheet_source, [['', '  '], ['Ann', 'ann@x.org']])

    assert result == {'headers': [], 'applicants': {}, 'totalApplicants': 0}


def test_groups_by_role_in_first_seen_order(sheet_source):
    rows = [
        HEADER,
        ['t1', 'Ann', 'ann@x.org', 'Events', ''],
        ['t2', 'Bob', 'bob@x.org', 'Marketing', ''],
        ['t3', 'Cid', 'cid@x.org', 'Events', ''],
    ]

    result = _aggregate(sheet_source, rows)

    assert list(result['applicants']) == ['Events', 'Marketing']
    assert [c['Full Name'] for c in result['applicants']['Events']] == ['Ann', 'Cid']
    assert result['totalApplicants'] == 3
    assert result['headers'] == HEADER


def test_candidate_carries_every_display_header_plus_row_and_role(sheet_source):
    rows = [HEADER, ['t1', ' Ann ', 'ann@x.org', 'Events']]

    candidate = _aggregate(sheet_source, rows)['applicants']['Events'][0]

    assert candidate == {
        'Timestamp': 't1',
        'Full Name': 'Ann',
        'Email Address': 'ann@x.org',
        'First Choice Directorship': 'Events',
        'Position': '',
        'rowIndex': 1,
        'role': 'Events',
    }


def test_row_index_counts_skipped_rows(sheet_source):
    rows = [
        HEADER,
        ['t1', '', 'nobody@x.org', 'Events', ''],
        ['t2', 'Bob', '', 'Events', ''],
        ['t3', 'Cid', 'cid@x.org', 'Events', ''],
    ]

    result = _aggregate(sheet_source, rows)

    assert result['totalApplicants'] == 1
    assert result['applicants']['Events'][0]['rowIndex'] == 3


def test_ranked_by_votes_with_ties_in_sheet_order(sheet_source):
    rows = [
        HEADER,
        ['t1', 'Ann', 'ann@x.org', 'Events', ''],
        ['t2', 'Bob', 'bob@x.org', 'Events', ''],
        ['t3', 'Cid', 'cid@x.org', 'Events', ''],
        ['t4', 'Dee', 'dee@x.org', 'Events', ''],
    ]
    tally = {
        's1-2': ['Jo'],
        's1-3': ['Jo', 'Kim'],
        's1-4': ['Kim'],
        # Votes of another sheet are ignored
        'other-1': ['Jo', 'Kim', 'Lu'],
    }

    result = _aggregate(sheet_source, rows, tally)
    again = aggregate_applicants(SHEET, sheet_source, lambda sheet_id: tally)

    assert [c['Full Name'] for c in result['applicants']['Events']] == ['Cid', 'Bob', 'Dee', 'Ann']
    assert again == result


def test_duplicate_headers_are_exposed_under_display_names(sheet_source):
    rows = [
        ['Name', 'Email', 'Directorship', 'Why?', 'Why?'],
        ['Ann', 'ann@x.org', 'Events', 'returning', 'new'],
    ]

    result = _aggregate(sheet_source, rows)
    candidate = result['applicants']['Events'][0]

    assert result['headers'] == ['Name', 'Email', 'Directorship', 'Why? (return director)', 'Why?']
    assert candidate['Why? (return director)'] == 'returning'
    assert candidate['Why?'] == 'new'


def test_empty_header_columns_are_not_exposed(sheet_source):
    rows = [
        ['Name', '', 'Email', 'Directorship'],
        ['Ann', 'hidden', 'ann@x.org', 'Events'],
    ]

    candidate = _aggregate(sheet_source, rows)['applicants']['Events'][0]

    assert 'hidden' not in candidate.values()
    assert candidate['Email'] == 'ann@x.org'


def test_short_and_long_rows(sheet_source):
    rows = [
        ['Name', 'Email', 'Directorship'],
        ['Ann', 'ann@x.org'],
        ['Bob', 'bob@x.org', 'Events', 'extra cell'],
    ]

    result = _aggregate(sheet_source, rows)

    assert [c['Name'] for c in result['applicants']['Unknown Role']] == ['Ann']
    assert [c['Name'] for c in result['applicants']['Events']] == ['Bob']


def test_position_column_used_when_directorship_is_empty(sheet_source):
    rows = [HEADER, ['t1', 'Ann', 'ann@x.org', '', 'Treasurer']]

    result = _aggregate(sheet_source, rows)

    assert list(result['applicants']) == ['Treasurer']


def test_failing_tally_still_lists_applicants(sheet_source):
    sheet_source.rows['key-1'] = [
        HEADER,
        ['t1', 'Ann', 'ann@x.org', 'Events', ''],
        ['t2', 'Bob', 'bob@x.org', 'Events', ''],
    ]

    def broken_tally(sheet_id):
        raise StorageFailure()

    result = aggregate_applicants(SHEET, sheet_source, broken_tally)

    assert [c['Full Name'] for c in result['applicants']['Events']] == ['Ann', 'Bob']


def test_unreadable_source_propagates(sheet_source):
    sheet_source.unavailable = True

    with pytest.raises(SourceUnavailable):
        aggregate_applicants(SHEET, sheet_source, lambda sheet_id: {})


def test_every_call_reads_the_source_again(sheet_source):
    rows = [HEADER, ['t1', 'Ann', 'ann@x.org', 'Events', '']]

    _aggregate(sheet_source, rows)
    sheet_source.rows['key-1'].append(['t2', 'Bob', 'bob@x.org', 'Events', ''])
    result = aggregate_applicants(SHEET, sheet_source, lambda sheet_id: {})

    assert sheet_source.fetches == 2
    assert result['totalApplicants'] == 2
