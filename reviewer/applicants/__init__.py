from reviewer.applicants.headers import Header, normalize_headers, display_names
from reviewer.applicants.roles import ColumnMap, detect_columns
from reviewer.applicants.aggregator import aggregate_applicants

__all__ = [
    'Header',
    'normalize_headers',
    'display_names',
    'ColumnMap',
    'detect_columns',
    'aggregate_applicants',
]
