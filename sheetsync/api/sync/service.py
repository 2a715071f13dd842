"""
Sheet Sync Service

Handles one sync request end to end:
validate shape -> validate/refresh token -> rate limit -> resolve spreadsheet
-> append rows.
"""
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional

from api.config_manager import AppConfig
from api.errors import SyncError, InvalidTokenError, RateLimitExceededError
from api.schemas import SyncRequest
from api.services.google_auth import GoogleAuthClient, TokenValidator
from api.services.ratelimit import RateLimiter, build_counter_store
from api.services.sheets import UserSheetsClient, SpreadsheetResolver, RowAppender
from api.utils import handle_errors
from api.validation import validate_sync_request

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Data synced successfully"


class SyncStage(Enum):
    """Token stages. A request moves from VALIDATE to VALIDATE_AFTER_REFRESH at most once."""
    VALIDATE = "validate"
    VALIDATE_AFTER_REFRESH = "validate_after_refresh"


class SyncResult:
    """Result of a sync request."""

    def __init__(
        self,
        success: bool,
        status_code: int = 200,
        message: str = SUCCESS_MESSAGE,
        rows_added: int = 0,
        spreadsheet_id: Optional[str] = None,
        token_refreshed: bool = False,
        error_kind: Optional[str] = None
    ):
        self.success = success
        self.status_code = status_code
        self.message = message
        self.rows_added = rows_added
        self.spreadsheet_id = spreadsheet_id
        self.token_refreshed = token_refreshed
        self.error_kind = error_kind

    @classmethod
    def from_error(cls, error: SyncError) -> "SyncResult":
        return cls(
            success=False,
            status_code=error.status_code,
            message=error.message,
            error_kind=error.error_kind
        )

    def to_dict(self) -> Dict[str, Any]:
        if not self.success:
            return {"success": False, "error": self.error_kind, "message": self.message}
        return {
            "success": True,
            "message": self.message,
            "rowsAdded": self.rows_added,
            "spreadsheetId": self.spreadsheet_id,
            "tokenRefreshed": self.token_refreshed
        }


class SheetSyncService:
    """Service that validates a request and appends its rows to the user's sheet."""

    def __init__(
        self,
        config: AppConfig,
        token_validator: TokenValidator,
        rate_limiter: RateLimiter,
        sheets_client_factory: Callable[[str], Any] = UserSheetsClient
    ):
        self.config = config
        self.token_validator = token_validator
        self.rate_limiter = rate_limiter
        self.sheets_client_factory = sheets_client_factory

    @classmethod
    def from_config(cls, config: AppConfig) -> "SheetSyncService":
        """Wire the production collaborators for a configuration."""
        auth_client = GoogleAuthClient(
            client_id=config.google_client_id,
            client_secret=config.google_client_secret,
            timeout=config.http_timeout
        )
        rate_limiter = RateLimiter(
            build_counter_store(config),
            limit=config.rate_limit_per_hour,
            window_seconds=config.rate_limit_window
        )
        return cls(config, TokenValidator(auth_client, mock_mode=config.mock_mode), rate_limiter)

    def handle(self, payload: Any) -> SyncResult:
        """
        Process a decoded request body.

        Never raises; every failure becomes an error SyncResult.
        """
        try:
            result = self._handle(payload)
        except SyncError as e:
            logger.info(f"Sync failed: {e.error_kind} ({e.message})")
            return SyncResult.from_error(e)
        logger.info(
            f"Sync succeeded: {result.rows_added} rows -> {result.spreadsheet_id}"
            f" (token refreshed: {result.token_refreshed})"
        )
        return result

    @handle_errors
    def _handle(self, payload: Any) -> SyncResult:
        request = validate_sync_request(payload)

        stage = SyncStage.VALIDATE
        access_token = request.accessToken
        while True:
            token_info = self.token_validator.validate(access_token)
            if token_info is not None:
                break

            if stage is SyncStage.VALIDATE and request.refreshToken:
                new_token = self.token_validator.refresh(request.refreshToken)
                if new_token:
                    stage = SyncStage.VALIDATE_AFTER_REFRESH
                    access_token = new_token
                    continue

            raise InvalidTokenError()

        return self._sync(
            request,
            access_token,
            token_info.subject_id,
            token_refreshed=stage is SyncStage.VALIDATE_AFTER_REFRESH
        )

    def _sync(self, request: SyncRequest, access_token: str, subject_id: str, token_refreshed: bool) -> SyncResult:
        if not self.rate_limiter.allow(subject_id):
            raise RateLimitExceededError()

        client = self.sheets_client_factory(access_token)
        resolver = SpreadsheetResolver(
            client,
            worksheet_title=self.config.worksheet_title,
            header_mismatch_policy=self.config.header_mismatch_policy
        )
        spreadsheet_id = resolver.resolve(request.sheetConfig)

        appender = RowAppender(client, worksheet_title=self.config.worksheet_title)
        rows_added = appender.append(spreadsheet_id, request.sheetConfig.headers, request.rowData)

        return SyncResult(
            success=True,
            rows_added=rows_added,
            spreadsheet_id=spreadsheet_id,
            token_refreshed=token_refreshed
        )
