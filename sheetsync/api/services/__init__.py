"""
External Service Integrations

Unified module for all external service clients used by the sync proxy.

Available Services:
- Google OAuth: Access token validation and refresh
- Rate limiting: Per-user counters in Redis or in memory
- Google Sheets: Spreadsheet lookup, creation and row appends

Usage:
    from api.services.google_auth import GoogleAuthClient, TokenValidator
    from api.services.ratelimit import RateLimiter, RedisCounterStore
    from api.services.sheets import UserSheetsClient, SpreadsheetResolver, RowAppender
"""

# Import all service clients for convenience
from .google_auth import GoogleAuthClient, TokenInfo, TokenValidator
from .ratelimit import CounterStore, RedisCounterStore, InMemoryCounterStore, RateLimiter
from .sheets import UserSheetsClient, SpreadsheetResolver, RowAppender

__all__ = [
    # Google OAuth
    'GoogleAuthClient',
    'TokenInfo',
    'TokenValidator',
    # Rate limiting
    'CounterStore',
    'RedisCounterStore',
    'InMemoryCounterStore',
    'RateLimiter',
    # Sheets
    'UserSheetsClient',
    'SpreadsheetResolver',
    'RowAppender',
]
