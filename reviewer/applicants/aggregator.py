# ==============================================================================
# reviewer/applicants/aggregator.py
# ------------------------------------------------------------------------------
# Builds the role-grouped, vote-ranked applicant view of one sheet.
# Nothing here is cached: every call reads the spreadsheet again and merges
# the current vote tally.
# ==============================================================================

import logging
import pandas as pd
from sqlalchemy.exc import SQLAlchemyError

from reviewer.errors import StorageFailure
from .headers import normalize_headers, display_names
from .roles import detect_columns
from .schema import UNKNOWN_ROLE

logger = logging.getLogger(__name__)


def _empty_result():
    return {'headers': [], 'applicants': {}, 'totalApplicants': 0}


def _build_frame(data_rows, width):
    """
    Loads the data rows into a DataFrame whose columns are the original
    column positions. Short rows are padded and every cell is trimmed.
    """
    padded = [list(row)[:width] + [''] * (width - len(row)) for row in data_rows]
    frame = pd.DataFrame(padded, columns=list(range(width)), dtype=object).fillna('')
    return frame.apply(lambda column: column.astype(str).str.strip())


def _load_vote_counts(sheet_id, load_tally):
    """Returns {row: vote count}; a failing tally only costs the ranking."""
    try:
        tally = load_tally(sheet_id)
    except (StorageFailure, SQLAlchemyError) as e:
        logger.warning(f"Could not fetch votes for sheet {sheet_id}, ranking without vote data: {e}")
        return {}
    counts = {}
    prefix = f'{sheet_id}-'
    for key, voters in tally.items():
        if key.startswith(prefix):
            counts[int(key[len(prefix):])] = len(voters)
    return counts


def _to_candidate(record, headers):
    candidate = {header.display: record[header.position] for header in headers}
    candidate['rowIndex'] = int(record['rowIndex'])
    candidate['role'] = record['role']
    return candidate


def aggregate_applicants(sheet, source, load_tally, cell_range='A:Z'):
    """
    Produces the applicant view for a sheet.

    Args:
        sheet (Sheet): The tracked sheet.
        source: Spreadsheet source exposing fetch_rows(external_id, cell_range).
        load_tally (callable): sheet_id -> {"sheetId-row": [voter names]}.
        cell_range (str): Column range read from the spreadsheet.

    Returns:
        dict: {'headers': [...], 'applicants': {role: [candidate, ...]},
               'totalApplicants': n}

    Raises:
        SourceUnavailable: The spreadsheet could not be read.
    """
    rows = source.fetch_rows(sheet.external_sheet_id, cell_range)
    if not rows or len(rows) < 2:
        logger.info(f"Sheet {sheet.id} has no data rows")
        return _empty_result()

    headers = normalize_headers(rows[0])
    if not headers:
        logger.warning(f"Sheet {sheet.id} has an empty header row")
        return _empty_result()
    columns = detect_columns(headers)

    data_rows = rows[1:]
    width = max([len(rows[0])] + [len(row) for row in data_rows])
    frame = _build_frame(data_rows, width)

    # rowIndex is 1-based within the data rows (spreadsheet row 2 is rowIndex 1).
    frame['rowIndex'] = range(1, len(frame) + 1)
    frame['role'] = frame.apply(columns.role_for, axis=1)

    for row_index in frame.loc[frame['role'] == UNKNOWN_ROLE, 'rowIndex']:
        logger.warning(f"Sheet {sheet.id}: row {row_index} has no role value")

    included = frame[frame.apply(columns.has_identity, axis=1).astype(bool)]
    skipped = len(frame) - len(included)
    if skipped:
        logger.info(f"Sheet {sheet.id}: skipped {skipped} row(s) without both a name and an email")

    counts = _load_vote_counts(sheet.id, load_tally)
    included = included.assign(votes=included['rowIndex'].map(lambda row: counts.get(int(row), 0)))

    applicants = {}
    # sort=False keeps roles in the order they are first seen.
    for role, group in included.groupby('role', sort=False):
        ranked = group.sort_values('votes', ascending=False, kind='stable')
        applicants[role] = [_to_candidate(record, headers) for record in ranked.to_dict('records')]

    return {
        'headers': display_names(headers),
        'applicants': applicants,
        'totalApplicants': int(len(included)),
    }
