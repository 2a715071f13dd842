from functools import wraps
import logging
import traceback

from api.errors import SyncError, ServerError

logger = logging.getLogger(__name__)


def column_letter(column_number: int) -> str:
    """
    Converts a 1-based column number to spreadsheet column notation.

    Bijective base-26: there is no zero digit, so after Z comes AA.

    Parameters:
        column_number (int): 1-based column index.

    Returns:
        str: Column letters, e.g. 1 -> "A", 27 -> "AA", 703 -> "AAA".

    Raises:
        ValueError: If column_number is lower than 1.

    Example:
        >>> column_letter(28)
        'AB'
    """
    if column_number < 1:
        raise ValueError(f"Column number must be >= 1, got {column_number}")
    letters = ""
    n = column_number
    while n > 0:
        n -= 1
        letters = chr(ord("A") + n % 26) + letters
        n //= 26
    return letters


def quote_sheet_title(title: str) -> str:
    """Quote a worksheet title for use in A1 notation, when it needs quoting."""
    if title.replace("_", "").isalnum():
        return title
    return "'" + title.replace("'", "''") + "'"


def column_span(column_count: int) -> str:
    """Column-only range covering the first ``column_count`` columns, e.g. A:C."""
    return f"A:{column_letter(column_count)}"


def append_range(worksheet_title: str, span: str) -> str:
    """Qualify a column span with its worksheet, e.g. Sheet1!A:C."""
    return f"{quote_sheet_title(worksheet_title)}!{span}"


def mask_token(token) -> str:
    """Shorten a credential to something safe to log."""
    if not token:
        return "<none>"
    token = str(token)
    if len(token) <= 8:
        return "***"
    return f"{token[:4]}...{token[-4:]}"


def handle_errors(func):
    """
    Decorator to turn any failure inside a sync operation into a SyncError.

    SyncError subclasses (validation, auth, rate limit, header mismatch) pass
    through untouched so the caller sees their specific error kind. Anything
    else is logged with its traceback and re-raised as a generic ServerError,
    keeping internal details out of the response.

    Usage:
        >>> @handle_errors
        >>> def handle(self, payload):
        >>>     ...
    """
    @wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)

        except SyncError:
            raise

        except Exception as e:
            tb = traceback.format_exc()
            logger.error(f"Unexpected server error: {e}\nTraceback:\n{tb}")
            raise ServerError() from e
    return wrapper
