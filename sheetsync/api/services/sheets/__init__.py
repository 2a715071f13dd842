"""
Google Sheets Service Module

Provides the user-scoped Sheets client plus spreadsheet resolution and
row append operations.
"""
from .client import UserSheetsClient
from .resolver import SpreadsheetResolver, RowAppender

__all__ = ['UserSheetsClient', 'SpreadsheetResolver', 'RowAppender']
