# ==============================================================================
# reviewer/ledger/__init__.py
# ------------------------------------------------------------------------------
# Persistent records of the review: sheets, votes, selections and notes.
# ==============================================================================
