"""
Per-user hourly rate limiter.
"""
import logging

from api.errors import CounterStoreError
from api.services.ratelimit.store import CounterStore

logger = logging.getLogger(__name__)

KEY_PREFIX = "ratelimit:"


class RateLimiter:
    """
    Fixed-window limiter keyed by user identity.

    The window starts at a user's first request and lasts ``window_seconds``.
    The first ``limit`` requests in a window are allowed, later ones are not.
    If the store fails the request is allowed (fail open), so an outage of
    the counter store never blocks legitimate users.
    """

    def __init__(self, store: CounterStore, limit: int = 100, window_seconds: int = 3600):
        self.store = store
        self.limit = limit
        self.window_seconds = window_seconds

    def key_for(self, subject_id: str) -> str:
        return f"{KEY_PREFIX}{subject_id}"

    def allow(self, subject_id: str) -> bool:
        key = self.key_for(subject_id)
        try:
            count = self.store.hit(key, self.window_seconds)
        except CounterStoreError as e:
            logger.error(f"Rate limit store error, allowing request: {e}")
            return True

        if count > self.limit:
            logger.warning(f"Rate limit exceeded for {subject_id} (request {count}, limit {self.limit} per window)")
            return False
        return True
