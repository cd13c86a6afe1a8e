from .base import Activity, ActivityStore, QueueEntry
from .local import LocalActivityStore
from .remote import RemoteActivityStore, create_remote_engine

__all__ = [
    "Activity",
    "ActivityStore",
    "QueueEntry",
    "LocalActivityStore",
    "RemoteActivityStore",
    "create_remote_engine",
]
