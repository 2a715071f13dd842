"""
Spreadsheet resolution and row appends.

SpreadsheetResolver finds (or creates) the spreadsheet named in the request
and guards its header row; RowAppender writes the rows. Storage failures are
logged and reported as ServerError, except header mismatches which keep their
own error kind.
"""
import logging
from typing import Any, List

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from googleapiclient.errors import HttpError

from api.config_manager import HEADER_POLICY_REJECT, DEFAULT_WORKSHEET_TITLE
from api.errors import HeaderMismatchError, ServerError
from api.schemas import SheetConfig
from api.utils import append_range, column_span

logger = logging.getLogger(__name__)

# Exceptions raised by the Drive/Sheets stack
STORAGE_ERRORS = (
    HttpError,
    gspread.exceptions.GSpreadException,
    GoogleAuthError,
    requests.RequestException,
    OSError,
)


class SpreadsheetResolver:
    """Resolves a sheet name to a spreadsheet ID in the user's Drive."""

    def __init__(
        self,
        client,
        worksheet_title: str = DEFAULT_WORKSHEET_TITLE,
        header_mismatch_policy: str = HEADER_POLICY_REJECT
    ):
        self.client = client
        self.worksheet_title = worksheet_title
        self.header_mismatch_policy = header_mismatch_policy

    def resolve(self, sheet_config: SheetConfig) -> str:
        """
        Find the spreadsheet named ``sheet_config.sheetName`` or create it.

        An existing spreadsheet must already have ``sheet_config.headers`` as
        its first row. Under the default policy a mismatch is an error and
        nothing is written; under the overwrite policy the header row is
        rewritten.

        Returns:
            Spreadsheet ID

        Raises:
            HeaderMismatchError: Existing headers differ and the policy is reject
            ServerError: Drive/Sheets failed
        """
        try:
            spreadsheet_id = self.client.find_spreadsheet_id(sheet_config.sheetName)
            if spreadsheet_id:
                logger.info(f"Found existing spreadsheet '{sheet_config.sheetName}': {spreadsheet_id}")
                self._ensure_headers(spreadsheet_id, sheet_config.headers)
                return spreadsheet_id

            return self.client.create_spreadsheet(
                sheet_config.sheetName,
                self.worksheet_title,
                sheet_config.headers
            )
        except STORAGE_ERRORS as e:
            logger.error(f"Spreadsheet init error for '{sheet_config.sheetName}': {e}")
            raise ServerError() from e

    def _ensure_headers(self, spreadsheet_id: str, headers: List[str]) -> None:
        existing = self.client.get_header_row(spreadsheet_id, self.worksheet_title)
        if list(existing) == list(headers):
            return

        logger.warning(f"Header mismatch detected in {spreadsheet_id}! Expected: {headers} Found: {existing}")
        if self.header_mismatch_policy == HEADER_POLICY_REJECT:
            raise HeaderMismatchError(expected=headers, found=existing)

        self.client.update_header_row(spreadsheet_id, self.worksheet_title, headers)


class RowAppender:
    """Appends validated rows to a resolved spreadsheet."""

    def __init__(self, client, worksheet_title: str = DEFAULT_WORKSHEET_TITLE):
        self.client = client
        self.worksheet_title = worksheet_title

    def append(self, spreadsheet_id: str, headers: List[str], rows: List[List[Any]]) -> int:
        """
        Append all rows; returns the number of rows added.

        Raises:
            ServerError: Sheets rejected the append
        """
        span = column_span(len(headers))
        target = append_range(self.worksheet_title, span)
        try:
            self.client.append_rows(spreadsheet_id, self.worksheet_title, rows, span)
        except STORAGE_ERRORS as e:
            logger.error(f"Error appending data to {spreadsheet_id} ({target}): {e}")
            raise ServerError() from e

        logger.info(f"Successfully appended {len(rows)} rows to {spreadsheet_id} ({target})")
        return len(rows)
