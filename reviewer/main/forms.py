# ==============================================================================
# reviewer/main/forms.py
# ------------------------------------------------------------------------------
# Validates JSON request bodies with Flask-WTF forms.
# ==============================================================================

from flask_wtf import FlaskForm
from werkzeug.datastructures import MultiDict
from wtforms import BooleanField, IntegerField, StringField, TextAreaField
from wtforms.validators import DataRequired, InputRequired, Length, NumberRange, StopValidation

from reviewer.errors import InvalidInput


class Present:
    """
    Requires the key to be present in the payload. Unlike InputRequired it
    accepts falsy values, which booleans need.
    """

    def __init__(self, message='This field is required.'):
        self.message = message

    def __call__(self, form, field):
        if not field.raw_data:
            field.errors[:] = []
            raise StopValidation(self.message)


class ApiForm(FlaskForm):
    """Base form for JSON payloads; CSRF is not used by the API."""

    class Meta:
        csrf = False

    @classmethod
    def from_json(cls, payload):
        """Builds the form from a decoded JSON object."""
        if payload is None:
            payload = {}
        if not isinstance(payload, dict):
            raise InvalidInput('The request body must be a JSON object.')
        flat = {}
        for key, value in payload.items():
            # null counts as missing; nested values are not valid for any field.
            if value is None or isinstance(value, (list, dict)):
                continue
            # Numbers become text like form input would; booleans stay as they are.
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                value = str(value)
            flat[key] = value
        return cls(formdata=MultiDict(flat))

    def validate_or_raise(self):
        if not self.validate():
            raise InvalidInput('Missing or invalid fields.', fields=self.errors)
        return self


class SheetForm(ApiForm):
    """Submission of a new Google Sheet."""
    year = StringField('Year', validators=[DataRequired(message='Year is required.'), Length(max=10)])
    term = StringField('Term', validators=[DataRequired(message='Term is required.'), Length(max=10)])
    sheetUrl = StringField('Sheet URL', validators=[DataRequired(message='Sheet URL is required.')])


class VoteForm(ApiForm):
    """A vote for one applicant."""
    sheetId = StringField('Sheet', validators=[DataRequired(message='Sheet is required.')])
    applicantRow = IntegerField('Applicant row', validators=[
        InputRequired(message='Applicant row is required.'), NumberRange(min=1)])
    voterName = StringField('Voter name', validators=[
        DataRequired(message='Voter name is required.'), Length(max=255)])


# from_json turns JSON numbers into text, so 0 arrives as '0'.
FALSE_VALUES = (False, 'false', '', '0')


class SelectionForm(ApiForm):
    """Both selection flags of one applicant; the pair is always written together."""
    selectedForInterview = BooleanField('Selected for interview', validators=[Present()],
                                        false_values=FALSE_VALUES)
    selectedForHiring = BooleanField('Selected for hiring', validators=[Present()],
                                     false_values=FALSE_VALUES)


class NoteForm(ApiForm):
    text = TextAreaField('Notes', validators=[Length(max=10000)])


def clean_text(value):
    """Strips form input, which may arrive as a JSON number."""
    return str(value if value is not None else '').strip()
