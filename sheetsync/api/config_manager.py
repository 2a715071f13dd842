"""
Configuration Manager for SheetSync

Loads settings from environment variables (optionally seeded from a .env file)
and provides easy access to the proxy's runtime settings.
"""
import os
from typing import Dict, Mapping, Optional, Any
import logging

from dotenv import load_dotenv

from api.errors import ConfigurationError

logger = logging.getLogger(__name__)

DEFAULT_RATE_LIMIT_PER_HOUR = 100
RATE_LIMIT_WINDOW_SECONDS = 3600
DEFAULT_WORKSHEET_TITLE = "Sheet1"
DEFAULT_HTTP_TIMEOUT = 10.0

HEADER_POLICY_REJECT = "reject"
HEADER_POLICY_OVERWRITE = "overwrite"
HEADER_POLICIES = (HEADER_POLICY_REJECT, HEADER_POLICY_OVERWRITE)

STORE_REDIS = "redis"
STORE_MEMORY = "memory"
RATE_LIMIT_STORES = (STORE_REDIS, STORE_MEMORY)

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _as_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in _TRUE_VALUES


def _as_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be an integer, got {raw!r}")


def _as_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{key} must be a number, got {raw!r}")


class AppConfig:
    """Runtime configuration for the sync proxy."""

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        env = os.environ if env is None else env
        self.env = env

        # Google OAuth application
        self.google_client_id = env.get("GOOGLE_CLIENT_ID") or None
        self.google_client_secret = env.get("GOOGLE_CLIENT_SECRET") or None
        self.http_timeout = _as_float(env, "GOOGLE_HTTP_TIMEOUT", DEFAULT_HTTP_TIMEOUT)

        # CORS
        self.allowed_origin = env.get("ALLOWED_ORIGIN") or "*"

        # Rate limiting
        self.rate_limit_per_hour = _as_int(env, "RATE_LIMIT_PER_HOUR", DEFAULT_RATE_LIMIT_PER_HOUR)
        self.rate_limit_window = RATE_LIMIT_WINDOW_SECONDS
        self.redis_url = env.get("REDIS_URL") or None
        self.redis_host = env.get("REDIS_HOST") or None
        self.redis_port = _as_int(env, "REDIS_PORT", 6379)
        self.redis_db = _as_int(env, "REDIS_DB", 0)
        self.redis_password = env.get("REDIS_PASSWORD") or None
        default_store = STORE_REDIS if (self.redis_url or self.redis_host) else STORE_MEMORY
        self.rate_limit_store = (env.get("RATE_LIMIT_STORE") or default_store).strip().lower()

        # Spreadsheet behaviour
        self.header_mismatch_policy = (
            env.get("HEADER_MISMATCH_POLICY") or HEADER_POLICY_REJECT
        ).strip().lower()
        self.worksheet_title = env.get("WORKSHEET_TITLE") or DEFAULT_WORKSHEET_TITLE

        # Environment
        self.environment = (env.get("APP_ENV") or env.get("NODE_ENV") or "development").strip().lower()
        self.mock_mode = _as_bool(env.get("MOCK_MODE"))

        self.validate()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def can_refresh(self) -> bool:
        """Whether refresh-token exchange is possible with this configuration."""
        return bool(self.google_client_id and self.google_client_secret)

    def validate(self):
        """Reject configurations the proxy must never start with."""
        if self.mock_mode:
            logger.warning("MOCK_MODE ENABLED - token validation is bypassed. DO NOT USE IN PRODUCTION")
            if self.is_production:
                raise ConfigurationError("MOCK_MODE must be false in production environments")

        if self.rate_limit_per_hour < 1:
            raise ConfigurationError("RATE_LIMIT_PER_HOUR must be a positive integer")

        if self.header_mismatch_policy not in HEADER_POLICIES:
            raise ConfigurationError(
                f"HEADER_MISMATCH_POLICY must be one of {', '.join(HEADER_POLICIES)}, "
                f"got {self.header_mismatch_policy!r}"
            )

        if self.rate_limit_store not in RATE_LIMIT_STORES:
            raise ConfigurationError(
                f"RATE_LIMIT_STORE must be one of {', '.join(RATE_LIMIT_STORES)}, "
                f"got {self.rate_limit_store!r}"
            )

        if not self.google_client_id:
            logger.warning("GOOGLE_CLIENT_ID is not set; audience checks are disabled")

    def to_dict(self) -> Dict[str, Any]:
        """Non-secret settings, for diagnostics."""
        return {
            "environment": self.environment,
            "mock_mode": self.mock_mode,
            "allowed_origin": self.allowed_origin,
            "rate_limit_per_hour": self.rate_limit_per_hour,
            "rate_limit_store": self.rate_limit_store,
            "header_mismatch_policy": self.header_mismatch_policy,
            "worksheet_title": self.worksheet_title,
            "client_id_configured": bool(self.google_client_id),
        }


# Global configuration instance
_config: Optional[AppConfig] = None


def get_config(env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Get or create the global configuration."""
    global _config
    if _config is None or env is not None:
        if env is None:
            load_dotenv()
        _config = AppConfig(env)
        logger.info(f"Loaded configuration: {_config.to_dict()}")
    return _config


def reset_config():
    """Forget the cached configuration so the next get_config() re-reads the environment."""
    global _config
    _config = None
