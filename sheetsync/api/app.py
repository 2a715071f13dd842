"""
SheetSync API - FastAPI Application

A pass-through proxy that appends application data to a Google Sheet in the
caller's own Drive:
- Validates the caller's Google OAuth access token (refreshing it once if needed)
- Rate limits per Google account
- Finds or creates the target spreadsheet and appends rows

The proxy never stores user data; only a per-user request counter is kept.

Version: 1.0.0
"""

# ============================================================================
# IMPORTS
# ============================================================================

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool
from typing import Optional, Dict
import logging

# Environment variables
from dotenv import load_dotenv
load_dotenv()  # Load .env file

# Local modules - use api prefix for proper imports
from api.config_manager import AppConfig, get_config
from api.errors import InvalidSchemaError, MethodNotAllowedError
from api.schemas import SyncResponse, ErrorResponse
from api.sync.service import SheetSyncService, SyncResult

# ============================================================================
# CONFIGURATION
# ============================================================================

# Initialize logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def cors_headers(config: AppConfig) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": config.allowed_origin,
        "Access-Control-Allow-Methods": "POST, OPTIONS",
        "Access-Control-Allow-Headers": "Content-Type",
    }


def create_app(
    config: Optional[AppConfig] = None,
    sync_service: Optional[SheetSyncService] = None
) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        config: Configuration; read from the environment when omitted.
            Raises ConfigurationError for unusable settings (e.g. MOCK_MODE
            in production), which stops the process at startup.
        sync_service: Service handling /sync; built from ``config`` when omitted.
    """
    config = config or get_config()
    sync_service = sync_service or SheetSyncService.from_config(config)

    app = FastAPI(
        title="SheetSync API",
        description="Proxy that appends rows to a Google Sheet in the caller's Drive",
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    app.state.config = config
    app.state.sync_service = sync_service

    # ========================================================================
    # ROOT ENDPOINT
    # ========================================================================

    @app.get(
        "/",
        tags=["General"],
        summary="API Information",
        description="Get basic information about the SheetSync API and available endpoints"
    )
    def read_root():
        """
        Root endpoint providing API information and endpoint discovery.

        Example:
            ```bash
            curl http://localhost:8000/
            ```
        """
        return {
            "message": "Welcome to the SheetSync API",
            "version": API_VERSION,
            "endpoints": {
                "sync": "/sync - POST rows to a Google Sheet in the caller's Drive"
            }
        }

    # ========================================================================
    # SYNC ENDPOINT
    # ========================================================================

    @app.options("/sync", tags=["Synchronization"], include_in_schema=False)
    def sync_preflight():
        """CORS preflight."""
        return Response(status_code=200, headers=cors_headers(config))

    @app.post(
        "/sync",
        tags=["Synchronization"],
        summary="Append Rows",
        description="Validate the caller's token and append rows to the named spreadsheet, creating it if needed",
        responses={
            200: {"model": SyncResponse},
            400: {"model": ErrorResponse},
            401: {"model": ErrorResponse},
            429: {"model": ErrorResponse},
            500: {"model": ErrorResponse},
        }
    )
    async def sync_rows(request: Request):
        """
        Append rows to a Google Sheet.

        Request body:
            - accessToken (str): Google OAuth access token
            - refreshToken (str, optional): used once if the access token is rejected
            - sheetConfig (dict): sheetName and ordered headers
            - rowData (list): rows, each with one value per header

        Returns:
            JSONResponse: SyncResponse on success, ErrorResponse otherwise

        Example:
            ```bash
            curl -X POST http://localhost:8000/sync -H 'Content-Type: application/json' \\
                -d '{"accessToken": "...", "sheetConfig": {"sheetName": "Expenses",
                     "headers": ["Date", "Amount"]}, "rowData": [["2026-01-14", 12.5]]}'
            ```
        """
        try:
            payload = await request.json()
        except ValueError:
            result = SyncResult.from_error(InvalidSchemaError("Request body must be valid JSON"))
        else:
            # Blocking Google/Redis calls run off the event loop
            result = await run_in_threadpool(app.state.sync_service.handle, payload)

        return JSONResponse(
            content=result.to_dict(),
            status_code=result.status_code,
            headers=cors_headers(config)
        )

    @app.api_route(
        "/sync",
        methods=["GET", "HEAD", "PUT", "PATCH", "DELETE"],
        include_in_schema=False
    )
    def sync_method_not_allowed():
        error = MethodNotAllowedError()
        return JSONResponse(
            content=error.to_dict(),
            status_code=error.status_code,
            headers=cors_headers(config)
        )

    return app


app = create_app()
