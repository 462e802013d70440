# ==============================================================================
# reviewer/client/selections.py
# ------------------------------------------------------------------------------
# Optimistic selection checkboxes: the local state changes at once and is
# reconciled with the server's answer, or reverted if the write fails.
# ==============================================================================

import logging

from reviewer.client.api import ApiError

logger = logging.getLogger(__name__)


class SelectionBoard:
    """Local copy of one sheet's selections, keyed like the server: "sheetId-row"."""

    def __init__(self, client, sheet_id):
        self.client = client
        self.sheet_id = sheet_id
        self.records = {}

    def _key(self, applicant_row):
        return f'{self.sheet_id}-{applicant_row}'

    def load(self):
        self.records = dict(self.client.selections(self.sheet_id) or {})
        return self.records

    def get(self, applicant_row):
        return self.records.get(self._key(applicant_row),
                                {'selectedForInterview': False, 'selectedForHiring': False, 'updatedAt': None})

    def update(self, applicant_row, selected_for_interview=None, selected_for_hiring=None):
        """
        Changes one or both flags. The server always receives both flags,
        taken from the local copy for any flag not given here.
        """
        key = self._key(applicant_row)
        had_record = key in self.records
        previous = dict(self.get(applicant_row))

        desired = {
            'selectedForInterview': previous['selectedForInterview'] if selected_for_interview is None
            else bool(selected_for_interview),
            'selectedForHiring': previous['selectedForHiring'] if selected_for_hiring is None
            else bool(selected_for_hiring),
        }
        self.records[key] = dict(desired, updatedAt=previous.get('updatedAt'))

        try:
            stored = self.client.set_selection(self.sheet_id, applicant_row,
                                               desired['selectedForInterview'], desired['selectedForHiring'])
        except ApiError:
            logger.warning(f"Saving selection {key} failed, reverting local state")
            if had_record:
                self.records[key] = previous
            else:
                self.records.pop(key, None)
            raise

        self.records[key] = stored
        return stored

    def toggle_interview(self, applicant_row):
        return self.update(applicant_row, selected_for_interview=not self.get(applicant_row)['selectedForInterview'])

    def toggle_hiring(self, applicant_row):
        return self.update(applicant_row, selected_for_hiring=not self.get(applicant_row)['selectedForHiring'])
