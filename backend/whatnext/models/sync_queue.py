from sqlalchemy import Column, DateTime, Double, Integer, String
from .base import Base, utcnow


class QueueOperation:
    ADD = "ADD_ACTIVITY"
    DELETE = "DELETE_ACTIVITY"
    ADJUST = "PRIORITY_ADJUST"

    ALL = [ADD, DELETE, ADJUST]


class SyncQueueEntry(Base):
    """Mutation made against the local store, waiting to be replayed remotely."""
    __tablename__ = "t_sync_queue"
    # AUTOINCREMENT keeps ids strictly increasing even after deletes
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    operation = Column(String(20), nullable=False)
    activity = Column(String(255), nullable=False)
    delta = Column(Double, nullable=True)  # initial priority for ADD, delta for ADJUST
    timestamp = Column(DateTime, nullable=False, default=utcnow)
