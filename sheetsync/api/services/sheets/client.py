"""
Google Sheets Client

Client for the Drive and Sheets operations the proxy needs, acting as the
end user through their own OAuth access token.
"""
import gspread
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
import logging
from typing import List, Any, Optional

logger = logging.getLogger(__name__)

SPREADSHEET_MIME_TYPE = "application/vnd.google-apps.spreadsheet"


def drive_name_query(name: str) -> str:
    """Drive search query matching non-trashed spreadsheets with exactly this name."""
    escaped = name.replace("\\", "\\\\").replace("'", "\\'")
    return f"name='{escaped}' and mimeType='{SPREADSHEET_MIME_TYPE}' and trashed=false"


class UserSheetsClient:
    """
    Google Sheets client bound to one user's access token.

    Features:
    - Drive search by exact spreadsheet name
    - Spreadsheet creation with a pre-filled header row
    - Header row read/overwrite and row append through gspread

    No call is retried here; failures propagate to the caller.
    """

    def __init__(self, access_token: str):
        """
        Initialize client.

        Args:
            access_token: Validated Google OAuth access token of the end user
        """
        self.access_token = access_token
        self._credentials = None
        self._gspread_client = None
        self._sheets_service = None
        self._drive_service = None

    def _get_credentials(self) -> Credentials:
        """Wrap the user's access token as Google API credentials."""
        if self._credentials is None:
            self._credentials = Credentials(token=self.access_token)
        return self._credentials

    @property
    def gspread_client(self) -> gspread.Client:
        """Lazy-load gspread client."""
        if self._gspread_client is None:
            self._gspread_client = gspread.authorize(self._get_credentials())
        return self._gspread_client

    @property
    def sheets_service(self):
        """Lazy-load Google Sheets API service."""
        if self._sheets_service is None:
            self._sheets_service = build('sheets', 'v4', credentials=self._get_credentials(), cache_discovery=False)
        return self._sheets_service

    @property
    def drive_service(self):
        """Lazy-load Google Drive API service."""
        if self._drive_service is None:
            self._drive_service = build('drive', 'v3', credentials=self._get_credentials(), cache_discovery=False)
        return self._drive_service

    def find_spreadsheet_id(self, name: str) -> Optional[str]:
        """
        Search the user's Drive for a spreadsheet with exactly this name.

        Args:
            name: Spreadsheet title

        Returns:
            ID of the first match, or None
        """
        response = self.drive_service.files().list(
            q=drive_name_query(name),
            fields='files(id, name)',
            spaces='drive',
            pageSize=10
        ).execute()
        files = response.get('files') or []
        if len(files) > 1:
            logger.warning(f"Found {len(files)} spreadsheets named '{name}', using the first")
        return files[0]['id'] if files else None

    def create_spreadsheet(self, title: str, worksheet_title: str, headers: List[str]) -> str:
        """
        Create a spreadsheet with one worksheet whose first row is ``headers``.

        Args:
            title: Spreadsheet title
            worksheet_title: Title of the single worksheet
            headers: Header row values, in order

        Returns:
            New spreadsheet ID
        """
        body = {
            'properties': {'title': title},
            'sheets': [{
                'properties': {'title': worksheet_title},
                'data': [{
                    'startRow': 0,
                    'startColumn': 0,
                    'rowData': [{
                        'values': [
                            {'userEnteredValue': {'stringValue': header}} for header in headers
                        ]
                    }]
                }]
            }]
        }
        response = self.sheets_service.spreadsheets().create(
            body=body,
            fields='spreadsheetId'
        ).execute()
        logger.info(f"Created spreadsheet '{title}': {response['spreadsheetId']}")
        return response['spreadsheetId']

    def open_worksheet(self, spreadsheet_id: str, worksheet_title: str) -> gspread.Worksheet:
        return self.gspread_client.open_by_key(spreadsheet_id).worksheet(worksheet_title)

    def get_header_row(self, spreadsheet_id: str, worksheet_title: str) -> List[str]:
        """First row of the worksheet (trailing empty cells are not returned)."""
        return self.open_worksheet(spreadsheet_id, worksheet_title).row_values(1)

    def update_header_row(self, spreadsheet_id: str, worksheet_title: str, headers: List[str]) -> None:
        """Overwrite the first row of the worksheet with ``headers``."""
        worksheet = self.open_worksheet(spreadsheet_id, worksheet_title)
        worksheet.update(values=[headers], range_name='A1')
        logger.info(f"Rewrote header row of {spreadsheet_id}")

    def append_rows(
        self,
        spreadsheet_id: str,
        worksheet_title: str,
        rows: List[List[Any]],
        table_range: str
    ) -> None:
        """
        Append rows after the last row of data within ``table_range``.

        Args:
            spreadsheet_id: Target spreadsheet ID
            worksheet_title: Target worksheet title
            rows: List of rows to append
            table_range: Column span of the table, e.g. A:C
        """
        worksheet = self.open_worksheet(spreadsheet_id, worksheet_title)
        logger.info(f"Appending {len(rows)} rows to worksheet '{worksheet.title}' ({table_range})")
        worksheet.append_rows(
            rows,
            value_input_option='USER_ENTERED',
            insert_data_option='INSERT_ROWS',
            table_range=table_range
        )
