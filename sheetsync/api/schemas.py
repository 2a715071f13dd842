"""
Pydantic schemas for request/response models.

This module contains the data models used by the SheetSync API endpoint.
Field names follow the JSON wire format (camelCase) so responses serialize
exactly as clients expect them.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, Field


CellValue = Union[str, int, float, bool, None]


# ============================================================================
# REQUEST SCHEMAS
# ============================================================================

class SheetConfig(BaseModel):
    """Target spreadsheet description."""
    sheetName: str = Field(..., description="Spreadsheet title in the user's Drive", example="Expenses 2026")
    headers: List[str] = Field(
        ...,
        description="Ordered column headers; the first row of the sheet",
        example=["Date", "Category", "Amount"]
    )


class SyncRequest(BaseModel):
    """Body of POST /sync, after validation."""
    accessToken: str = Field(..., description="Google OAuth access token")
    refreshToken: Optional[str] = Field(None, description="Google OAuth refresh token, used once if the access token is rejected")
    sheetConfig: SheetConfig
    rowData: List[List[CellValue]] = Field(
        ...,
        description="Rows to append; each row has one value per header",
        example=[["2026-01-14", "Food", 12.5], ["2026-01-14", "Transport", 3]]
    )

    @property
    def column_count(self) -> int:
        return len(self.sheetConfig.headers)


# ============================================================================
# RESPONSE SCHEMAS
# ============================================================================

class SyncResponse(BaseModel):
    """Successful sync."""
    success: bool = Field(True, example=True)
    message: str = Field(..., example="Data synced successfully")
    rowsAdded: int = Field(..., description="Number of rows appended", example=2)
    spreadsheetId: str = Field(..., description="Target spreadsheet ID", example="1AbCdEf")
    tokenRefreshed: bool = Field(False, description="Whether the refresh token was used", example=False)


class ErrorResponse(BaseModel):
    """Failed sync."""
    success: bool = Field(False, example=False)
    error: str = Field(..., description="Error kind", example="invalid_schema")
    message: str = Field(..., description="Human-readable explanation", example="All rows must have 3 columns to match headers")
