import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from api.config_manager import AppConfig  # noqa: E402
from api.services.google_auth import TokenInfo, TokenValidator  # noqa: E402
from api.services.ratelimit import InMemoryCounterStore, RateLimiter  # noqa: E402
from api.sync.service import SheetSyncService  # noqa: E402

CLIENT_ID = "client-123.apps.googleusercontent.com"
VALID_TOKEN = "ya29.valid-access-token"
HEADERS = ["Date", "Category", "Amount"]


class FakeClock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class FakeAuthClient:
    """Stands in for GoogleAuthClient; records every call."""

    def __init__(self, valid_tokens: Optional[Dict[str, str]] = None, refresh_results: Optional[Dict[str, str]] = None):
        # access token -> subject id
        self.valid_tokens = dict(valid_tokens or {VALID_TOKEN: "user-1"})
        # refresh token -> new access token
        self.refresh_results = dict(refresh_results or {})
        self.validate_calls: List[str] = []
        self.refresh_calls: List[str] = []

    def validate_access_token(self, access_token: str) -> Optional[TokenInfo]:
        self.validate_calls.append(access_token)
        subject = self.valid_tokens.get(access_token)
        if subject is None:
            return None
        return TokenInfo(subject_id=subject, audience=CLIENT_ID)

    def refresh_access_token(self, refresh_token: str) -> Optional[str]:
        self.refresh_calls.append(refresh_token)
        return self.refresh_results.get(refresh_token)


class FakeSheetsClient:
    """In-memory Drive/Sheets backend shared by every client the factory hands out."""

    def __init__(self):
        self.spreadsheets: Dict[str, Dict[str, Any]] = {}
        self.calls: List[str] = []
        self.access_tokens: List[str] = []
        self.fail_on: Dict[str, Exception] = {}

    # factory used by SheetSyncService
    def __call__(self, access_token: str) -> "FakeSheetsClient":
        self.access_tokens.append(access_token)
        return self

    def add_spreadsheet(self, name: str, headers: List[str], rows: Optional[List[List[Any]]] = None) -> str:
        spreadsheet_id = f"sheet-{len(self.spreadsheets) + 1}"
        self.spreadsheets[spreadsheet_id] = {"name": name, "header": list(headers), "rows": list(rows or [])}
        return spreadsheet_id

    def _record(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail_on:
            raise self.fail_on[name]

    def find_spreadsheet_id(self, name: str) -> Optional[str]:
        self._record("find_spreadsheet_id")
        for spreadsheet_id, sheet in self.spreadsheets.items():
            if sheet["name"] == name:
                return spreadsheet_id
        return None

    def create_spreadsheet(self, title: str, worksheet_title: str, headers: List[str]) -> str:
        self._record("create_spreadsheet")
        return self.add_spreadsheet(title, headers)

    def get_header_row(self, spreadsheet_id: str, worksheet_title: str) -> List[str]:
        self._record("get_header_row")
        return list(self.spreadsheets[spreadsheet_id]["header"])

    def update_header_row(self, spreadsheet_id: str, worksheet_title: str, headers: List[str]) -> None:
        self._record("update_header_row")
        self.spreadsheets[spreadsheet_id]["header"] = list(headers)

    def append_rows(self, spreadsheet_id: str, worksheet_title: str, rows: List[List[Any]], table_range: str) -> None:
        self._record("append_rows")
        self.spreadsheets[spreadsheet_id]["table_range"] = table_range
        self.spreadsheets[spreadsheet_id]["rows"].extend(rows)


def make_config(**overrides) -> AppConfig:
    env = {"GOOGLE_CLIENT_ID": CLIENT_ID, "GOOGLE_CLIENT_SECRET": "secret"}
    env.update(overrides)
    return AppConfig(env)


def make_payload(**overrides) -> Dict[str, Any]:
    payload = {
        "accessToken": VALID_TOKEN,
        "sheetConfig": {"sheetName": "Expenses", "headers": list(HEADERS)},
        "rowData": [["2026-01-14", "Food", 12.5], ["2026-01-15", "Transport", 3]],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def auth_client() -> FakeAuthClient:
    return FakeAuthClient()


@pytest.fixture
def sheets() -> FakeSheetsClient:
    return FakeSheetsClient()


@pytest.fixture
def counter_store(clock) -> InMemoryCounterStore:
    return InMemoryCounterStore(clock=clock)


@pytest.fixture
def config() -> AppConfig:
    return make_config()


@pytest.fixture
def service(config, auth_client, sheets, counter_store) -> SheetSyncService:
    return SheetSyncService(
        config,
        TokenValidator(auth_client, mock_mode=config.mock_mode),
        RateLimiter(counter_store, limit=config.rate_limit_per_hour, window_seconds=config.rate_limit_window),
        sheets_client_factory=sheets,
    )
