from .base import Base
from .activity import ActivityRecord
from .sync_queue import QueueOperation, SyncQueueEntry

__all__ = ["Base", "ActivityRecord", "QueueOperation", "SyncQueueEntry"]
