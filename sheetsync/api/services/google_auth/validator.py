"""
Token validation entry point used by the sync service.
"""
import logging
from typing import Optional

from api.services.google_auth.client import GoogleAuthClient, TokenInfo

logger = logging.getLogger(__name__)

MOCK_SUBJECT_ID = "mock_user_123"


class TokenValidator:
    """Validates access tokens, or synthesizes a fixed identity in mock mode."""

    def __init__(self, auth_client: GoogleAuthClient, mock_mode: bool = False):
        self.auth_client = auth_client
        self.mock_mode = mock_mode

    def validate(self, access_token: str) -> Optional[TokenInfo]:
        if self.mock_mode:
            return TokenInfo(subject_id=MOCK_SUBJECT_ID)
        return self.auth_client.validate_access_token(access_token)

    def refresh(self, refresh_token: str) -> Optional[str]:
        logger.info("Token invalid, attempting refresh...")
        return self.auth_client.refresh_access_token(refresh_token)
