# ==============================================================================
# reviewer/errors.py
# ------------------------------------------------------------------------------
# Error taxonomy shared by the ledger, the aggregator and the HTTP layer.
# Every error knows the HTTP status it maps to, so views simply raise.
# ==============================================================================


class ReviewError(Exception):
    """
    Base class for all expected failures of the application.

    Subclasses set `status_code`, a stable machine-readable `code` and
    whether the caller may retry the same request.
    """
    status_code = 500
    code = 'error'
    retryable = False
    default_message = 'The operation failed.'

    def __init__(self, message=None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message

    def to_dict(self):
        return {'error': self.message, 'code': self.code, 'retryable': self.retryable}


class NotAuthenticated(ReviewError):
    status_code = 401
    code = 'not_authenticated'
    default_message = 'Not authenticated. Please log in again.'


class AccessDenied(ReviewError):
    status_code = 403
    code = 'access_denied'
    default_message = 'Access denied. Only authorized users can access this application.'


class InvalidInput(ReviewError):
    status_code = 400
    code = 'invalid_input'
    default_message = 'Missing or malformed fields.'

    def __init__(self, message=None, fields=None):
        super().__init__(message)
        self.fields = fields or {}

    def to_dict(self):
        payload = super().to_dict()
        if self.fields:
            payload['fields'] = self.fields
        return payload


class InvalidUrl(InvalidInput):
    code = 'invalid_url'
    default_message = 'Invalid Google Sheets URL.'


class NotFound(ReviewError):
    status_code = 404
    code = 'not_found'
    default_message = 'Not found.'


class SheetNotFound(NotFound):
    code = 'sheet_not_found'
    default_message = 'Sheet not found.'


class VoteNotFound(NotFound):
    code = 'vote_not_found'
    default_message = 'Vote not found.'


class DuplicateVote(ReviewError):
    status_code = 409
    code = 'duplicate_vote'
    default_message = 'This voter has already voted for this applicant.'


class SourceUnavailable(ReviewError):
    status_code = 502
    code = 'source_unavailable'
    retryable = True
    default_message = 'The spreadsheet could not be read. Please try again.'


class StorageFailure(ReviewError):
    status_code = 500
    code = 'storage_failure'
    default_message = 'A database error occurred. No changes were saved.'
