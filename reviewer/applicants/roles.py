# ==============================================================================
# reviewer/applicants/roles.py
# ------------------------------------------------------------------------------
# Detects the role, name and email columns of a sheet and derives the role
# of each data row.
# ==============================================================================

import logging
from .schema import COLUMN_KEYWORDS, UNKNOWN_ROLE

logger = logging.getLogger(__name__)


def _matches(header, kind):
    lowered = header.display.lower()
    return any(keyword in lowered for keyword in COLUMN_KEYWORDS[kind])


def _cell(row, position):
    """Reads a trimmed cell by original column position; short rows read as empty."""
    try:
        value = row[position]
    except (IndexError, KeyError):
        return ''
    if value is None:
        return ''
    return str(value).strip()


class ColumnMap:
    """
    The columns of one sheet that matter to the reviewer: the directorship
    columns and the generic role/position columns, each in header order,
    plus the first name and first email column.
    """

    def __init__(self, role_columns, fallback_role_columns, name_column, email_column):
        self.role_columns = role_columns
        self.fallback_role_columns = fallback_role_columns
        self.name_column = name_column
        self.email_column = email_column

    @property
    def missing_identity_columns(self):
        """Column kinds whose absence means no row can ever be listed."""
        missing = []
        if self.name_column is None:
            missing.append('name')
        if self.email_column is None:
            missing.append('email')
        return missing

    def role_for(self, row):
        """
        Returns the first non-empty directorship value of the row. When all
        of them are empty the role/position columns are tried next, and the
        unknown-role marker is returned when those are empty too.
        """
        for header in self.role_columns + self.fallback_role_columns:
            value = _cell(row, header.position)
            if value:
                return value
        return UNKNOWN_ROLE

    def has_identity(self, row):
        """True when the row has both a name and an email value."""
        if self.name_column is None or self.email_column is None:
            return False
        return bool(_cell(row, self.name_column.position)) and \
            bool(_cell(row, self.email_column.position))


def detect_columns(headers):
    """
    Classifies the display headers of a sheet. Runs once per sheet.

    Args:
        headers (list[Header]): Output of normalize_headers.

    Returns:
        ColumnMap: The detected columns.
    """
    role_columns = [h for h in headers if _matches(h, 'role')]
    fallback_role_columns = [h for h in headers if h not in role_columns and _matches(h, 'role_fallback')]
    if not role_columns:
        logger.warning('No directorship columns found in sheet headers, using role/position columns')

    name_column = next((h for h in headers if _matches(h, 'name')), None)
    email_column = next((h for h in headers if _matches(h, 'email')), None)

    columns = ColumnMap(role_columns, fallback_role_columns, name_column, email_column)
    if columns.missing_identity_columns:
        logger.warning(f"No {' or '.join(columns.missing_identity_columns)} column found in sheet headers; "
                       f"no applicant can be listed")
    return columns
