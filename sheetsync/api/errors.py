"""
Error taxonomy for the sync proxy.

Every failure a caller can see is a SyncError carrying the machine-readable
``error_kind`` and the HTTP status it maps to.
"""


class SyncError(Exception):
    """Base class for failures reported back to the caller."""

    error_kind = "server_error"
    status_code = 500
    default_message = "Internal server error occurred while syncing"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self):
        return {"success": False, "error": self.error_kind, "message": self.message}


class MissingFieldsError(SyncError):
    error_kind = "missing_fields"
    status_code = 400
    default_message = "Access token, sheetConfig, and rowData are required"


class InvalidSchemaError(SyncError):
    error_kind = "invalid_schema"
    status_code = 400
    default_message = "Request body does not match the expected schema"


class HeaderMismatchError(SyncError):
    error_kind = "header_mismatch"
    status_code = 400
    default_message = (
        "Sheet headers do not match configuration. "
        "Please update client sheetConfig.headers to match the spreadsheet "
        "or delete the file in Google Drive to recreate it."
    )

    def __init__(self, expected=None, found=None, message=None):
        self.expected = list(expected or [])
        self.found = list(found or [])
        super().__init__(message)


class InvalidTokenError(SyncError):
    error_kind = "invalid_token"
    status_code = 401
    default_message = "Access token is invalid or expired. Re-authentication required."


class RateLimitExceededError(SyncError):
    error_kind = "rate_limit_exceeded"
    status_code = 429
    default_message = "Hourly rate limit exceeded. Please try again later."


class MethodNotAllowedError(SyncError):
    error_kind = "method_not_allowed"
    status_code = 405
    default_message = "Only POST and OPTIONS are supported"


class ServerError(SyncError):
    """Unclassified downstream failure. The message shown to callers stays generic."""


class ConfigurationError(Exception):
    """Raised at startup when the environment holds an unusable configuration."""


class CounterStoreError(Exception):
    """Raised by counter stores when the backing store cannot be reached."""
