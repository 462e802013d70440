# ==============================================================================
# reviewer/models.py
# ------------------------------------------------------------------------------
# Defines the database schema using SQLAlchemy ORM models.
# Candidates themselves are never stored; they are rebuilt from the source
# spreadsheet on every read and correlated with these rows by applicant_row.
# ==============================================================================

from datetime import datetime, timezone
from sqlalchemy import event
from sqlalchemy.engine import Engine
from reviewer import db


def utcnow():
    return datetime.now(timezone.utc)


def isoformat(value):
    """Serializes a stored timestamp as an ISO-8601 UTC string."""
    if value is None:
        return None
    if value.tzinfo is None:
        # SQLite hands back naive datetimes for timezone-aware columns.
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


@event.listens_for(Engine, 'connect')
def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    if type(dbapi_connection).__module__.startswith('sqlite3'):
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()


class Sheet(db.Model):
    """
    One submitted external spreadsheet tracked for one hiring cycle.
    Immutable after creation; deleting it removes every vote, selection
    and note recorded against it.
    """
    __tablename__ = 'sheets'
    id = db.Column(db.String(64), primary_key=True)
    year = db.Column(db.String(10), nullable=False)
    term = db.Column(db.String(10), nullable=False)
    sheet_url = db.Column(db.Text, nullable=False)
    external_sheet_id = db.Column(db.String(255), nullable=False)
    title = db.Column(db.Text, nullable=False)
    submitted_at = db.Column(db.DateTime(timezone=True), index=True, nullable=False, default=utcnow)

    votes = db.relationship('Vote', backref='sheet', lazy='dynamic', passive_deletes=True)
    selections = db.relationship('Selection', backref='sheet', lazy='dynamic', passive_deletes=True)
    notes = db.relationship('Note', backref='sheet', lazy='dynamic', passive_deletes=True)

    def __repr__(self):
        return f'<Sheet {self.id}: {self.title}>'

    def to_dict(self):
        return {
            'id': self.id,
            'year': self.year,
            'term': self.term,
            'sheetUrl': self.sheet_url,
            'externalSheetId': self.external_sheet_id,
            'title': self.title,
            'submittedAt': isoformat(self.submitted_at),
            # Names used by earlier exports of the same data.
            'sheetId': self.external_sheet_id,
            'sheetTitle': self.title,
        }


class Vote(db.Model):
    """
    One voter's endorsement of one applicant row. The unique constraint is
    what makes concurrent duplicate votes fail; the autoincrement id keeps
    the order votes were cast in.
    """
    __tablename__ = 'votes'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    sheet_id = db.Column(db.String(64), db.ForeignKey('sheets.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    applicant_row = db.Column(db.Integer, nullable=False)
    voter_name = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('sheet_id', 'applicant_row', 'voter_name', name='_vote_sheet_row_voter_uc'),
    )

    def __repr__(self):
        return f'<Vote {self.sheet_id}-{self.applicant_row}: {self.voter_name}>'


class Selection(db.Model):
    """Interview/hire marking for one applicant row. Both flags are always written together."""
    __tablename__ = 'selections'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    sheet_id = db.Column(db.String(64), db.ForeignKey('sheets.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    applicant_row = db.Column(db.Integer, nullable=False)
    selected_for_interview = db.Column(db.Boolean, nullable=False, default=False)
    selected_for_hiring = db.Column(db.Boolean, nullable=False, default=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('sheet_id', 'applicant_row', name='_selection_sheet_row_uc'),
    )

    def __repr__(self):
        return f'<Selection {self.sheet_id}-{self.applicant_row}>'

    def to_dict(self):
        return {
            'selectedForInterview': bool(self.selected_for_interview),
            'selectedForHiring': bool(self.selected_for_hiring),
            'updatedAt': isoformat(self.updated_at),
        }


class Note(db.Model):
    """Free-text reviewer note for one applicant row."""
    __tablename__ = 'notes'
    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    sheet_id = db.Column(db.String(64), db.ForeignKey('sheets.id', ondelete='CASCADE'),
                         nullable=False, index=True)
    applicant_row = db.Column(db.Integer, nullable=False)
    text = db.Column(db.Text, nullable=False, default='')
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        db.UniqueConstraint('sheet_id', 'applicant_row', name='_note_sheet_row_uc'),
    )

    def __repr__(self):
        return f'<Note {self.sheet_id}-{self.applicant_row}>'

    def to_dict(self):
        return {'text': self.text or '', 'updatedAt': isoformat(self.updated_at)}
