# ==============================================================================
# reviewer/main/routes.py
# ------------------------------------------------------------------------------
# JSON API for sheets, applicants, votes, selections and notes.
# Every route requires a live session; failures are raised as ReviewError
# subclasses and rendered by the application's error handler.
# ==============================================================================

from flask import current_app, jsonify

from reviewer.applicants.aggregator import aggregate_applicants
from reviewer.auth.guard import login_required
from reviewer.ledger import selections, sheets, votes
from reviewer.main import bp
from reviewer.main.forms import NoteForm, SelectionForm, SheetForm, VoteForm, clean_text
from reviewer.main.utils import get_sheet_source, json_body, parse_row
from reviewer.errors import InvalidInput

# --- Sheets ---

@bp.route('/sheets', methods=['POST'])
@login_required
def create_sheet():
    """Registers a Google Sheet after checking its URL and reading its title."""
    form = SheetForm.from_json(json_body()).validate_or_raise()
    sheet = sheets.create_sheet(
        year=clean_text(form.year.data),
        term=clean_text(form.term.data),
        sheet_url=clean_text(form.sheetUrl.data),
        source=get_sheet_source(),
    )
    return jsonify(sheet.to_dict()), 201


@bp.route('/sheets', methods=['GET'])
@login_required
def list_sheets():
    return jsonify([sheet.to_dict() for sheet in sheets.list_sheets()])


@bp.route('/sheets/<sheet_id>', methods=['GET'])
@login_required
def get_sheet(sheet_id):
    return jsonify(sheets.get_sheet(sheet_id).to_dict())


@bp.route('/sheets/<sheet_id>', methods=['DELETE'])
@login_required
def delete_sheet(sheet_id):
    """Deletes a sheet and everything recorded against it."""
    result = sheets.delete_sheet(sheet_id)
    result['message'] = 'Sheet deleted successfully'
    return jsonify(result)


# --- Applicants ---

@bp.route('/sheets/<sheet_id>/applicants', methods=['GET'])
@login_required
def list_applicants(sheet_id):
    """Reads the sheet live and returns its applicants grouped by role, most votes first."""
    sheet = sheets.get_sheet(sheet_id)
    result = aggregate_applicants(
        sheet,
        source=get_sheet_source(),
        load_tally=votes.tally,
        cell_range=current_app.config.get('SHEET_RANGE', 'A:Z'),
    )
    return jsonify(result)


# --- Votes ---

@bp.route('/sheets/<sheet_id>/votes', methods=['GET'])
@login_required
def sheet_votes(sheet_id):
    sheets.get_sheet(sheet_id)
    return jsonify(votes.tally(sheet_id))


@bp.route('/votes', methods=['POST'])
@login_required
def add_vote():
    form = VoteForm.from_json(json_body()).validate_or_raise()
    voter_name = clean_text(form.voterName.data)
    if not voter_name:
        raise InvalidInput('Voter name is required.', fields={'voterName': ['Voter name is required.']})
    voters = votes.add_vote(clean_text(form.sheetId.data), form.applicantRow.data, voter_name)
    return jsonify({
        'message': 'Vote submitted successfully',
        'voters': voters,
        'totalVotes': len(voters),
    })


@bp.route('/votes/<sheet_id>/<applicant_row>/<path:voter_name>', methods=['DELETE'])
@login_required
def delete_vote(sheet_id, applicant_row, voter_name):
    voter_name = voter_name.strip()
    remaining = votes.delete_vote(sheet_id, parse_row(applicant_row), voter_name)
    return jsonify({
        'message': 'Vote deleted successfully',
        'deletedVoter': voter_name,
        'voters': remaining,
        'totalVotes': len(remaining),
    })


# --- Selections ---

@bp.route('/sheets/<sheet_id>/selections', methods=['GET'])
@login_required
def list_selections(sheet_id):
    sheets.get_sheet(sheet_id)
    return jsonify(selections.get_selections(sheet_id))


@bp.route('/sheets/<sheet_id>/selections/<applicant_row>', methods=['PUT'])
@login_required
def update_selection(sheet_id, applicant_row):
    """Replaces both selection flags of an applicant."""
    row = parse_row(applicant_row)
    form = SelectionForm.from_json(json_body()).validate_or_raise()
    record = selections.upsert_selection(
        sheet_id, row,
        selected_for_interview=form.selectedForInterview.data,
        selected_for_hiring=form.selectedForHiring.data,
    )
    return jsonify(record)


# --- Notes ---

@bp.route('/sheets/<sheet_id>/notes', methods=['GET'])
@login_required
def list_notes(sheet_id):
    sheets.get_sheet(sheet_id)
    return jsonify(selections.get_notes(sheet_id))


@bp.route('/sheets/<sheet_id>/notes/<applicant_row>', methods=['PUT'])
@login_required
def update_note(sheet_id, applicant_row):
    row = parse_row(applicant_row)
    form = NoteForm.from_json(json_body()).validate_or_raise()
    return jsonify(selections.upsert_note(sheet_id, row, clean_text(form.text.data)))
