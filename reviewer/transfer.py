# ==============================================================================
# reviewer/transfer.py
# ------------------------------------------------------------------------------
# Backup export and import of the review data as one JSON document:
#   {"sheets": [...], "votes": {"sheetId-row": [names]},
#    "selections": {"sheetId-row": {...}}, "notes": {"sheetId-row": {...}}}
# The same layout is written by the file-backed store of earlier versions,
# so its data.json can be imported directly.
# ==============================================================================

import logging
from datetime import datetime, timezone
from sqlalchemy.exc import SQLAlchemyError

from reviewer import db
from reviewer.errors import StorageFailure
from reviewer.ledger.votes import vote_key
from reviewer.models import Note, Selection, Sheet, Vote, utcnow

logger = logging.getLogger(__name__)


def _parse_timestamp(value):
    if not value:
        return utcnow()
    try:
        parsed = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        return utcnow()
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _split_key(key):
    """Splits "sheetId-row" into (sheet_id, row); None when malformed."""
    sheet_id, _, row = str(key).rpartition('-')
    if not sheet_id or not row.isdigit() or int(row) < 1:
        return None
    return sheet_id, int(row)


def export_data():
    """Returns every sheet with its votes, selections and notes."""
    data = {'sheets': [], 'votes': {}, 'selections': {}, 'notes': {}}
    for sheet in Sheet.query.order_by(Sheet.submitted_at).all():
        data['sheets'].append(sheet.to_dict())
    for vote in Vote.query.order_by(Vote.sheet_id, Vote.applicant_row, Vote.id).all():
        data['votes'].setdefault(vote_key(vote.sheet_id, vote.applicant_row), []).append(vote.voter_name)
    for selection in Selection.query.order_by(Selection.sheet_id, Selection.applicant_row).all():
        data['selections'][vote_key(selection.sheet_id, selection.applicant_row)] = selection.to_dict()
    for note in Note.query.order_by(Note.sheet_id, Note.applicant_row).all():
        data['notes'][vote_key(note.sheet_id, note.applicant_row)] = note.to_dict()
    data['exportedAt'] = datetime.now(timezone.utc).isoformat()
    return data


def import_data(data):
    """
    Imports a backup document. Records that already exist are left alone,
    and records pointing at an unknown sheet are skipped. Everything is
    written in a single transaction.

    Returns:
        dict: Number of imported and skipped records per kind.
    """
    stats = {kind: {'imported': 0, 'skipped': 0} for kind in ('sheets', 'votes', 'selections', 'notes')}
    try:
        known_sheets = {sheet_id for (sheet_id,) in db.session.query(Sheet.id).all()}

        for item in data.get('sheets') or []:
            sheet_id = str(item.get('id') or '')
            if not sheet_id or sheet_id in known_sheets:
                stats['sheets']['skipped'] += 1
                continue
            db.session.add(Sheet(
                id=sheet_id,
                year=str(item.get('year') or ''),
                term=str(item.get('term') or ''),
                sheet_url=item.get('sheetUrl') or '',
                external_sheet_id=item.get('externalSheetId') or item.get('sheetId') or '',
                title=item.get('title') or item.get('sheetTitle') or '',
                submitted_at=_parse_timestamp(item.get('submittedAt')),
            ))
            known_sheets.add(sheet_id)
            stats['sheets']['imported'] += 1
        db.session.flush()

        existing_votes = {tuple(row) for row in db.session.query(Vote.sheet_id, Vote.applicant_row, Vote.voter_name).all()}
        for key, voters in (data.get('votes') or {}).items():
            parsed = _split_key(key)
            if parsed is None or parsed[0] not in known_sheets:
                logger.warning(f"Skipping votes for unknown key '{key}'")
                stats['votes']['skipped'] += len(voters or [])
                continue
            sheet_id, row = parsed
            for voter_name in voters or []:
                triple = (sheet_id, row, str(voter_name).strip())
                if not triple[2] or triple in existing_votes:
                    stats['votes']['skipped'] += 1
                    continue
                db.session.add(Vote(sheet_id=sheet_id, applicant_row=row, voter_name=triple[2]))
                existing_votes.add(triple)
                stats['votes']['imported'] += 1

        for kind, model, build in (
            ('selections', Selection, lambda value: {
                'selected_for_interview': bool(value.get('selectedForInterview')),
                'selected_for_hiring': bool(value.get('selectedForHiring')),
            }),
            ('notes', Note, lambda value: {'text': value.get('text') or ''}),
        ):
            existing = {tuple(row) for row in db.session.query(model.sheet_id, model.applicant_row).all()}
            for key, value in (data.get(kind) or {}).items():
                parsed = _split_key(key)
                if parsed is None or parsed[0] not in known_sheets or parsed in existing \
                        or not isinstance(value, dict):
                    stats[kind]['skipped'] += 1
                    continue
                db.session.add(model(sheet_id=parsed[0], applicant_row=parsed[1],
                                     updated_at=_parse_timestamp(value.get('updatedAt')),
                                     **build(value)))
                existing.add(parsed)
                stats[kind]['imported'] += 1

        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Import failed, transaction rolled back: {e}", exc_info=True)
        raise StorageFailure('The import failed. No changes were saved.') from e

    logger.info(f"Import complete: {stats}")
    return stats
