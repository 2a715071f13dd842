"""
Rate Limiting Service Module

Provides counter stores and the per-user hourly rate limiter.
"""
from .store import CounterStore, RedisCounterStore, InMemoryCounterStore, build_counter_store
from .limiter import RateLimiter

__all__ = ['CounterStore', 'RedisCounterStore', 'InMemoryCounterStore', 'build_counter_store', 'RateLimiter']
