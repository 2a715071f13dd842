"""
Google OAuth Client

Talks to Google's tokeninfo and token endpoints on behalf of the proxy.
Credentials are always sent in form bodies, never in URLs, so they cannot
leak through access logs.
"""
import requests
import time
import logging
from typing import Any, Callable, Dict, FrozenSet, Optional
from dataclasses import dataclass, field

from api.utils import mask_token

logger = logging.getLogger(__name__)


ACCEPTED_SCOPES = frozenset({
    "https://www.googleapis.com/auth/spreadsheets",
    "https://www.googleapis.com/auth/drive.file",
})


@dataclass
class TokenInfo:
    """Identity behind a validated access token."""
    subject_id: str
    audience: Optional[str] = None
    expiry: Optional[int] = None
    scopes: FrozenSet[str] = field(default_factory=frozenset)
    authorized_party: Optional[str] = None
    email: Optional[str] = None

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "TokenInfo":
        try:
            expiry = int(data["exp"])
        except (KeyError, TypeError, ValueError):
            expiry = None
        return cls(
            subject_id=data.get("sub") or "",
            audience=data.get("aud"),
            expiry=expiry,
            scopes=frozenset((data.get("scope") or "").split()),
            authorized_party=data.get("azp"),
            email=data.get("email"),
        )


class GoogleAuthClient:
    """
    Client for Google's OAuth 2.0 endpoints.

    Features:
    - Access token introspection with audience, expiry, scope and
      authorized-party checks
    - Refresh token exchange
    - Every failure is reported as None; the caller decides what that means

    API Documentation:
    https://developers.google.com/identity/protocols/oauth2
    """

    TOKENINFO_URL = "https://www.googleapis.com/oauth2/v3/tokeninfo"
    TOKEN_URL = "https://oauth2.googleapis.com/token"

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time
    ):
        """
        Initialize Google OAuth client.

        Args:
            client_id: OAuth application (client) ID; enables audience checks
            client_secret: OAuth application secret; required for refresh
            timeout: Seconds before an HTTP call is abandoned
            session: Optional requests session (for connection reuse or tests)
            clock: Source of the current unix time
        """
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.clock = clock
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

    def _post_form(self, url: str, data: Dict[str, str]) -> Optional[Dict[str, Any]]:
        """POST a form body and return the decoded JSON, or None on any failure."""
        try:
            response = self.session.post(url, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Request to {url} failed: {e}")
            return None

        if not response.ok:
            logger.warning(f"{url} returned status {response.status_code}")
            return None

        try:
            return response.json()
        except ValueError:
            logger.error(f"{url} returned a non-JSON body")
            return None

    def fetch_token_info(self, access_token: str) -> Optional[Dict[str, Any]]:
        """Raw tokeninfo response for an access token, or None."""
        return self._post_form(self.TOKENINFO_URL, {"access_token": access_token})

    def validate_access_token(self, access_token: str) -> Optional[TokenInfo]:
        """
        Validate an access token with Google's tokeninfo endpoint.

        Every check is a hard gate; failing any one makes the token invalid.

        Args:
            access_token: OAuth access token supplied by the caller

        Returns:
            TokenInfo if the token is valid for this application, else None
        """
        data = self.fetch_token_info(access_token)
        if data is None:
            return None

        info = TokenInfo.from_response(data)

        # Audience check
        if self.client_id and info.audience != self.client_id:
            logger.error("Audience mismatch")
            return None

        # Expiration check
        if info.expiry is None or info.expiry <= int(self.clock()):
            logger.info(f"Token {mask_token(access_token)} is expired")
            return None

        # Scope check
        if not info.scopes & ACCEPTED_SCOPES:
            logger.error("Token missing required scope")
            return None

        # Sender constraint (azp)
        if info.authorized_party and self.client_id and info.authorized_party != self.client_id:
            logger.error("Authorized party mismatch")
            return None

        if not info.subject_id:
            logger.error("Token info has no subject")
            return None

        return info

    def refresh_access_token(self, refresh_token: str) -> Optional[str]:
        """
        Exchange a refresh token for a new access token.

        Args:
            refresh_token: OAuth refresh token supplied by the caller

        Returns:
            New access token, or None if the exchange failed
        """
        if not (self.client_id and self.client_secret):
            logger.warning("Cannot refresh token: GOOGLE_CLIENT_ID/GOOGLE_CLIENT_SECRET not configured")
            return None

        data = self._post_form(self.TOKEN_URL, {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "refresh_token": refresh_token,
            "grant_type": "refresh_token",
        })
        if data is None:
            return None

        access_token = data.get("access_token")
        if not access_token:
            logger.error("Token endpoint response has no access_token")
            return None
        return access_token
