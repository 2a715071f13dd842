"""
Google OAuth Service Module

Provides access token validation and refresh token exchange.
"""
from .client import GoogleAuthClient, TokenInfo, ACCEPTED_SCOPES
from .validator import TokenValidator, MOCK_SUBJECT_ID

__all__ = ['GoogleAuthClient', 'TokenInfo', 'ACCEPTED_SCOPES', 'TokenValidator', 'MOCK_SUBJECT_ID']
