# ==============================================================================
# reviewer/applicants/headers.py
# ------------------------------------------------------------------------------
# Cleans and deduplicates the header row of an application spreadsheet.
# ==============================================================================

from collections import Counter, namedtuple
from .schema import RETURN_DIRECTOR_SUFFIX

# display:  the name shown to clients and used as the candidate key
# original: the trimmed header as it appears in the sheet
# position: index of the column in the raw row, used for every value lookup
Header = namedtuple('Header', ['display', 'original', 'position'])


def _clean(value):
    if value is None:
        return ''
    return str(value).strip()


def normalize_headers(raw_headers):
    """
    Builds the display headers for a raw header row.

    Empty headers are dropped but the remaining ones keep the index of the
    column they came from. When a header appears more than once, only its
    first occurrence is renamed to "<header> (return director)"; the later
    ones keep the plain name.

    Args:
        raw_headers (list): Row 0 of the spreadsheet.

    Returns:
        list[Header]: Display headers in original column order.
    """
    cleaned = [(position, _clean(value)) for position, value in enumerate(raw_headers or [])]
    cleaned = [(position, name) for position, name in cleaned if name]
    counts = Counter(name for _, name in cleaned)

    headers = []
    renamed = set()
    for position, name in cleaned:
        display = name
        if counts[name] > 1 and name not in renamed:
            display = f'{name}{RETURN_DIRECTOR_SUFFIX}'
            renamed.add(name)
        headers.append(Header(display=display, original=name, position=position))
    return headers


def display_names(headers):
    """Returns the ordered list of display names."""
    return [header.display for header in headers]
