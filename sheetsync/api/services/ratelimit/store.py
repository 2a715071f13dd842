"""
Counter Stores

Atomic increment-with-expiry primitives backing the rate limiter.

Two implementations share the same small interface:
- RedisCounterStore: shared across every running instance (production)
- InMemoryCounterStore: per-process, approximate under multi-instance
  deployment; used for tests and single-instance setups
"""
import threading
import time
import logging
from typing import Callable, Dict, Optional, Tuple

import redis

from api.errors import CounterStoreError

logger = logging.getLogger(__name__)


class CounterStore:
    """Interface for counter stores."""

    def increment(self, key: str) -> int:
        """Atomically add one to ``key`` (creating it at 0) and return the new value."""
        raise NotImplementedError

    def expire(self, key: str, ttl_seconds: int, only_if_unset: bool = False) -> None:
        """Make ``key`` disappear after ``ttl_seconds``; with ``only_if_unset``, keep an existing expiry."""
        raise NotImplementedError

    def hit(self, key: str, ttl_seconds: int) -> int:
        """
        Count one request against ``key`` and return the new value.

        The window expiry is seeded whenever the key has none, so a failed
        expire on the first hit is repaired by the next one.
        """
        count = self.increment(key)
        self.expire(key, ttl_seconds, only_if_unset=True)
        return count


class RedisCounterStore(CounterStore):
    """Counter store backed by Redis INCR/EXPIRE."""

    def __init__(self, client: redis.Redis):
        self.client = client

    @classmethod
    def from_config(cls, config) -> "RedisCounterStore":
        if config.redis_url:
            client = redis.Redis.from_url(config.redis_url, socket_timeout=2, socket_connect_timeout=2)
        else:
            client = redis.Redis(
                host=config.redis_host or "localhost",
                port=config.redis_port,
                db=config.redis_db,
                password=config.redis_password,
                socket_timeout=2,
                socket_connect_timeout=2,
            )
        return cls(client)

    def increment(self, key: str) -> int:
        try:
            return int(self.client.incr(key))
        except redis.exceptions.RedisError as e:
            raise CounterStoreError(f"INCR {key} failed: {e}") from e

    def expire(self, key: str, ttl_seconds: int, only_if_unset: bool = False) -> None:
        try:
            # TTL is -1 for a key without expiry, -2 for a missing key
            if only_if_unset and self.client.ttl(key) != -1:
                return
            self.client.expire(key, ttl_seconds)
        except redis.exceptions.RedisError as e:
            raise CounterStoreError(f"EXPIRE {key} failed: {e}") from e

    def hit(self, key: str, ttl_seconds: int) -> int:
        try:
            pipe = self.client.pipeline()
            pipe.incr(key)
            pipe.ttl(key)
            count, ttl = pipe.execute()
            if ttl == -1:
                self.client.expire(key, ttl_seconds)
        except redis.exceptions.RedisError as e:
            raise CounterStoreError(f"Counting {key} failed: {e}") from e
        return int(count)


class InMemoryCounterStore(CounterStore):
    """Thread-safe in-process counter store."""

    def __init__(self, clock: Callable[[], float] = time.monotonic, purge_interval: float = 60.0):
        self.clock = clock
        self.purge_interval = purge_interval
        self._lock = threading.Lock()
        # key -> (count, expires_at or None)
        self._counters: Dict[str, Tuple[int, Optional[float]]] = {}
        self._next_purge = clock() + purge_interval

    def _live_entry(self, key: str) -> Tuple[int, Optional[float]]:
        count, expires_at = self._counters.get(key, (0, None))
        if expires_at is not None and self.clock() >= expires_at:
            del self._counters[key]
            return 0, None
        return count, expires_at

    def _purge_expired(self) -> None:
        now = self.clock()
        if now < self._next_purge:
            return
        self._next_purge = now + self.purge_interval
        expired = [
            key for key, (_, expires_at) in self._counters.items()
            if expires_at is not None and now >= expires_at
        ]
        for key in expired:
            del self._counters[key]
        if expired:
            logger.debug(f"Purged {len(expired)} expired rate limit counters")

    def increment(self, key: str) -> int:
        with self._lock:
            self._purge_expired()
            count, expires_at = self._live_entry(key)
            count += 1
            self._counters[key] = (count, expires_at)
            return count

    def expire(self, key: str, ttl_seconds: int, only_if_unset: bool = False) -> None:
        with self._lock:
            count, expires_at = self._live_entry(key)
            if key not in self._counters:
                return
            if only_if_unset and expires_at is not None:
                return
            self._counters[key] = (count, self.clock() + ttl_seconds)

    def get(self, key: str) -> int:
        with self._lock:
            return self._live_entry(key)[0]

    def size(self) -> int:
        """Number of counters currently held, including ones not yet purged."""
        with self._lock:
            return len(self._counters)


def build_counter_store(config) -> CounterStore:
    """Create the counter store selected by RATE_LIMIT_STORE."""
    if config.rate_limit_store == "redis":
        logger.info("Using Redis rate limit store")
        return RedisCounterStore.from_config(config)
    logger.warning("Using in-memory rate limit store; limits are per instance only")
    return InMemoryCounterStore()
