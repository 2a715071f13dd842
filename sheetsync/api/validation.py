"""
Request validation for POST /sync.

Checks the raw decoded JSON body before anything touches the network and
turns it into a typed SyncRequest. Each violation raises a SyncError with a
message naming the constraint that failed.
"""
import logging
from typing import Any

from api.errors import MissingFieldsError, InvalidSchemaError
from api.schemas import SheetConfig, SyncRequest

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("accessToken", "sheetConfig", "rowData")
SCALAR_TYPES = (str, int, float, bool, type(None))


def _is_absent(value: Any) -> bool:
    return value is None or value == "" or value == {}


def validate_sync_request(body: Any) -> SyncRequest:
    """
    Validate a raw request body.

    Parameters:
        body: Decoded JSON body.

    Returns:
        SyncRequest: The validated request.

    Raises:
        MissingFieldsError: accessToken, sheetConfig or rowData is absent.
        InvalidSchemaError: Any shape or length constraint is violated.
    """
    if not isinstance(body, dict):
        raise InvalidSchemaError("Request body must be a JSON object")

    missing = [field for field in REQUIRED_FIELDS if _is_absent(body.get(field))]
    if missing:
        logger.info(f"Rejecting request with missing fields: {missing}")
        raise MissingFieldsError(
            f"Access token, sheetConfig, and rowData are required (missing: {', '.join(missing)})"
        )

    access_token = body["accessToken"]
    if not isinstance(access_token, str):
        raise InvalidSchemaError("accessToken must be a string")

    refresh_token = body.get("refreshToken")
    if refresh_token is not None and not isinstance(refresh_token, str):
        raise InvalidSchemaError("refreshToken must be a string when provided")

    sheet_config = body["sheetConfig"]
    if not isinstance(sheet_config, dict):
        raise InvalidSchemaError("sheetConfig must have sheetName (string) and headers (array)")

    sheet_name = sheet_config.get("sheetName")
    if not isinstance(sheet_name, str) or not sheet_name.strip():
        raise InvalidSchemaError("sheetConfig.sheetName must be a non-empty string")

    headers = sheet_config.get("headers")
    if not isinstance(headers, list) or not headers:
        raise InvalidSchemaError("sheetConfig.headers must be a non-empty array of strings")
    if not all(isinstance(header, str) for header in headers):
        raise InvalidSchemaError("sheetConfig.headers must contain only strings")
    # a blank header reads back from the sheet as a shorter row
    blank = [index for index, header in enumerate(headers) if not header.strip()]
    if blank:
        raise InvalidSchemaError(f"sheetConfig.headers must not contain blank names (index {blank[0]})")

    row_data = body["rowData"]
    if not isinstance(row_data, list) or not row_data:
        raise InvalidSchemaError("rowData must be a non-empty array of arrays")

    header_count = len(headers)
    for index, row in enumerate(row_data):
        if not isinstance(row, list):
            raise InvalidSchemaError(f"rowData must be a non-empty array of arrays (row {index} is not an array)")
        if len(row) != header_count:
            raise InvalidSchemaError(
                f"All rows must have {header_count} columns to match headers "
                f"(row {index} has {len(row)})"
            )
        if not all(isinstance(cell, SCALAR_TYPES) for cell in row):
            raise InvalidSchemaError(
                f"Row {index} contains a value that is not a string, number, boolean or null"
            )

    return SyncRequest(
        accessToken=access_token,
        refreshToken=refresh_token or None,
        sheetConfig=SheetConfig(sheetName=sheet_name, headers=headers),
        rowData=row_data,
    )
