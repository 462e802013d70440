# ==============================================================================
# reviewer/main/utils.py
# ------------------------------------------------------------------------------
# Small helpers shared by the API routes.
# ==============================================================================

from flask import current_app, request

from reviewer.errors import InvalidInput


def get_sheet_source():
    """The spreadsheet source configured for this application."""
    return current_app.extensions['sheet_source']


def json_body():
    """Decodes the request body; a missing or non-JSON body is an InvalidInput."""
    payload = request.get_json(silent=True)
    if payload is None:
        raise InvalidInput('The request body must be JSON.')
    return payload


def parse_row(value):
    """Parses an applicant row from the URL. Rows start at 1."""
    try:
        row = int(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"Invalid applicant row '{value}'.")
    if row < 1:
        raise InvalidInput(f"Invalid applicant row '{value}'.")
    return row
