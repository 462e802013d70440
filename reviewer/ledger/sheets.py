# ==============================================================================
# reviewer/ledger/sheets.py
# ------------------------------------------------------------------------------
# Registry of submitted sheets. Deleting a sheet removes its votes,
# selections and notes in the same transaction.
# ==============================================================================

import logging
import uuid
from sqlalchemy.exc import SQLAlchemyError

from reviewer import db
from reviewer.errors import SheetNotFound, StorageFailure
from reviewer.models import Note, Selection, Sheet, Vote, utcnow
from reviewer.sources.google_sheets import extract_spreadsheet_key

logger = logging.getLogger(__name__)


def new_sheet_id():
    """Process-unique id for a sheet. Hex only, so "sheetId-row" keys split cleanly."""
    return uuid.uuid4().hex


def create_sheet(year, term, sheet_url, source):
    """
    Registers a new sheet after reading its title from the source.

    Raises:
        InvalidUrl: No spreadsheet key can be extracted from sheet_url.
        SourceUnavailable: The spreadsheet title could not be read.
    """
    spreadsheet_key = extract_spreadsheet_key(sheet_url)
    title = source.fetch_title(spreadsheet_key)

    sheet = Sheet(
        id=new_sheet_id(),
        year=year,
        term=term,
        sheet_url=sheet_url,
        external_sheet_id=spreadsheet_key,
        title=title,
        submitted_at=utcnow(),
    )
    db.session.add(sheet)
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error adding sheet '{title}': {e}", exc_info=True)
        raise StorageFailure() from e

    logger.info(f"Sheet {sheet.id} registered: '{title}' ({year} {term})")
    return sheet


def list_sheets():
    """All sheets, most recently submitted first."""
    return Sheet.query.order_by(Sheet.submitted_at.desc()).all()


def get_sheet(sheet_id):
    sheet = db.session.get(Sheet, sheet_id)
    if sheet is None:
        raise SheetNotFound()
    return sheet


def delete_sheet(sheet_id):
    """
    Deletes a sheet together with every vote, selection and note recorded
    against it. Either everything goes or nothing does.

    Returns:
        dict: The id of the deleted sheet and how many dependent records went with it.
    """
    try:
        sheet = db.session.get(Sheet, sheet_id)
        if sheet is None:
            raise SheetNotFound()

        removed_votes = Vote.query.filter_by(sheet_id=sheet_id).delete(synchronize_session=False)
        removed_selections = Selection.query.filter_by(sheet_id=sheet_id).delete(synchronize_session=False)
        removed_notes = Note.query.filter_by(sheet_id=sheet_id).delete(synchronize_session=False)
        db.session.delete(sheet)
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error deleting sheet {sheet_id}, transaction rolled back: {e}", exc_info=True)
        raise StorageFailure('The sheet could not be deleted. No changes were saved.') from e

    logger.info(f"Sheet {sheet_id} deleted with {removed_votes} vote(s), "
                f"{removed_selections} selection(s) and {removed_notes} note(s)")
    return {
        'deletedSheetId': sheet_id,
        'removedVotes': removed_votes,
        'removedSelections': removed_selections,
        'removedNotes': removed_notes,
    }
