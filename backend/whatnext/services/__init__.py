from .activity_service import ActivityService, Suggestion
from .connection import ConnectionRouter, build_router
from .sync_manager import SyncIssue, SyncManager, SyncResult

__all__ = [
    "ActivityService",
    "Suggestion",
    "ConnectionRouter",
    "build_router",
    "SyncIssue",
    "SyncManager",
    "SyncResult",
]
