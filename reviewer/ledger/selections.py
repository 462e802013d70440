# ==============================================================================
# reviewer/ledger/selections.py
# ------------------------------------------------------------------------------
# Interview/hire selections and reviewer notes, one record per applicant row.
# Writes are full replacements done as a single INSERT ... ON CONFLICT
# statement; concurrent writers to the same row resolve last-write-wins.
# ==============================================================================

import logging
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from reviewer import db
from reviewer.errors import SheetNotFound, StorageFailure
from reviewer.models import Note, Selection, Sheet, utcnow
from reviewer.ledger.votes import vote_key

logger = logging.getLogger(__name__)

_UPSERT_DIALECTS = {
    'postgresql': postgresql.insert,
    'sqlite': sqlite.insert,
}


def _upsert(model, sheet_id, applicant_row, values):
    """
    Inserts or fully replaces the record of (sheet_id, applicant_row) and
    returns the stored row.
    """
    if db.session.get(Sheet, sheet_id) is None:
        raise SheetNotFound()

    values = dict(values, updated_at=utcnow())
    dialect = db.session.get_bind().dialect.name
    try:
        insert = _UPSERT_DIALECTS.get(dialect)
        if insert is not None:
            statement = insert(model).values(sheet_id=sheet_id, applicant_row=applicant_row, **values)
            statement = statement.on_conflict_do_update(
                index_elements=['sheet_id', 'applicant_row'],
                set_=values,
            )
            db.session.execute(statement)
        else:
            record = model.query.filter_by(sheet_id=sheet_id, applicant_row=applicant_row).first()
            if record is None:
                record = model(sheet_id=sheet_id, applicant_row=applicant_row)
                db.session.add(record)
            for column, value in values.items():
                setattr(record, column, value)
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        if db.session.get(Sheet, sheet_id) is None:
            raise SheetNotFound() from e
        logger.error(f"Error saving {model.__tablename__} for {vote_key(sheet_id, applicant_row)}: {e}", exc_info=True)
        raise StorageFailure() from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error saving {model.__tablename__} for {vote_key(sheet_id, applicant_row)}: {e}", exc_info=True)
        raise StorageFailure() from e

    db.session.expire_all()
    return model.query.filter_by(sheet_id=sheet_id, applicant_row=applicant_row).one()


def _all_for_sheet(model, sheet_id):
    try:
        records = model.query.filter_by(sheet_id=sheet_id).order_by(model.applicant_row).all()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error fetching {model.__tablename__} for sheet {sheet_id}: {e}", exc_info=True)
        raise StorageFailure() from e
    return {vote_key(sheet_id, record.applicant_row): record.to_dict() for record in records}


# --- Selections ---

def upsert_selection(sheet_id, applicant_row, selected_for_interview, selected_for_hiring):
    """
    Stores both selection flags for an applicant, replacing any previous
    record as a whole.

    Returns:
        dict: {'selectedForInterview', 'selectedForHiring', 'updatedAt'}
    """
    record = _upsert(Selection, sheet_id, applicant_row, {
        'selected_for_interview': bool(selected_for_interview),
        'selected_for_hiring': bool(selected_for_hiring),
    })
    logger.info(f"Selection for {vote_key(sheet_id, applicant_row)} set to "
                f"interview={record.selected_for_interview}, hiring={record.selected_for_hiring}")
    return record.to_dict()


def get_selections(sheet_id):
    """All selections of a sheet keyed by "sheetId-row"."""
    return _all_for_sheet(Selection, sheet_id)


def get_selection(sheet_id, applicant_row):
    record = Selection.query.filter_by(sheet_id=sheet_id, applicant_row=applicant_row).first()
    if record is None:
        return {'selectedForInterview': False, 'selectedForHiring': False, 'updatedAt': None}
    return record.to_dict()


# --- Notes ---

def upsert_note(sheet_id, applicant_row, text):
    """Stores the note text for an applicant, replacing any previous note."""
    record = _upsert(Note, sheet_id, applicant_row, {'text': text or ''})
    return record.to_dict()


def get_notes(sheet_id):
    return _all_for_sheet(Note, sheet_id)


def get_note(sheet_id, applicant_row):
    record = Note.query.filter_by(sheet_id=sheet_id, applicant_row=applicant_row).first()
    if record is None:
        return {'text': '', 'updatedAt': None}
    return record.to_dict()
