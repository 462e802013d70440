# ==============================================================================
# reviewer/ledger/votes.py
# ------------------------------------------------------------------------------
# The vote ledger: one vote per (sheet, applicant row, voter name).
# Uniqueness is enforced by the database constraint, never by a
# read-then-write check, so concurrent identical votes cannot both land.
# ==============================================================================

import logging
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from reviewer import db
from reviewer.errors import DuplicateVote, SheetNotFound, StorageFailure, VoteNotFound
from reviewer.models import Sheet, Vote

logger = logging.getLogger(__name__)


def vote_key(sheet_id, applicant_row):
    """Key used by clients to look up a candidate's voters."""
    return f'{sheet_id}-{applicant_row}'


def voters_for(sheet_id, applicant_row):
    """Voter names for one applicant, in the order the votes were cast."""
    rows = (db.session.query(Vote.voter_name)
            .filter_by(sheet_id=sheet_id, applicant_row=applicant_row)
            .order_by(Vote.id)
            .all())
    return [name for (name,) in rows]


def add_vote(sheet_id, applicant_row, voter_name):
    """
    Records a vote.

    Returns:
        list: All voters for the applicant after the insert, oldest first.

    Raises:
        SheetNotFound: The sheet does not exist (or was deleted meanwhile).
        DuplicateVote: This voter already voted for this applicant.
        StorageFailure: Any other database error.
    """
    if db.session.get(Sheet, sheet_id) is None:
        raise SheetNotFound()

    db.session.add(Vote(sheet_id=sheet_id, applicant_row=applicant_row, voter_name=voter_name))
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        # The foreign key fails too when the sheet is deleted between the check and the insert.
        if db.session.get(Sheet, sheet_id) is None:
            raise SheetNotFound()
        raise DuplicateVote()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error adding vote for {vote_key(sheet_id, applicant_row)}: {e}", exc_info=True)
        raise StorageFailure() from e

    logger.info(f"Vote recorded for {vote_key(sheet_id, applicant_row)} by '{voter_name}'")
    return voters_for(sheet_id, applicant_row)


def delete_vote(sheet_id, applicant_row, voter_name):
    """
    Removes exactly one vote.

    Returns:
        list: The remaining voters for the applicant, oldest first.

    Raises:
        VoteNotFound: No such vote exists.
    """
    try:
        removed = (Vote.query
                   .filter_by(sheet_id=sheet_id, applicant_row=applicant_row, voter_name=voter_name)
                   .delete(synchronize_session=False))
        if removed == 0:
            db.session.rollback()
            raise VoteNotFound()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error deleting vote for {vote_key(sheet_id, applicant_row)}: {e}", exc_info=True)
        raise StorageFailure() from e

    logger.info(f"Vote by '{voter_name}' removed from {vote_key(sheet_id, applicant_row)}")
    return voters_for(sheet_id, applicant_row)


def tally(sheet_id):
    """
    All votes of a sheet as {"sheetId-row": [voter names]}, each list in
    the order the votes were cast.
    """
    try:
        rows = (db.session.query(Vote.applicant_row, Vote.voter_name)
                .filter_by(sheet_id=sheet_id)
                .order_by(Vote.applicant_row, Vote.id)
                .all())
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Error fetching votes for sheet {sheet_id}: {e}", exc_info=True)
        raise StorageFailure() from e

    sheet_votes = {}
    for applicant_row, voter_name in rows:
        sheet_votes.setdefault(vote_key(sheet_id, applicant_row), []).append(voter_name)
    return sheet_votes
