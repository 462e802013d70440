# ==============================================================================
# reviewer/applicants/schema.py
# ------------------------------------------------------------------------------
# Defines the header keywords used to recognise the columns of an
# application form. This table is the single source of truth for the
# role classifier.
# ==============================================================================

# Suffix given to the first of several columns sharing the same header.
RETURN_DIRECTOR_SUFFIX = ' (return director)'

# Role assigned to a row whose role columns are all empty.
UNKNOWN_ROLE = 'Unknown Role'

COLUMN_KEYWORDS = {
    # Preferred source of the applicant's role.
    'role': ['first choice directorship', 'first choice', 'directorship'],
    # Read when every directorship cell of a row is empty.
    'role_fallback': ['role', 'position', 'title', 'job'],
    'name': ['name', 'full name', 'applicant name'],
    'email': ['email', 'email address', 'e-mail'],
}
