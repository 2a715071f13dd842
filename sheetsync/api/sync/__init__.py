"""
Sync orchestration module.
"""
from .service import SheetSyncService, SyncResult, SyncStage

__all__ = ['SheetSyncService', 'SyncResult', 'SyncStage']
