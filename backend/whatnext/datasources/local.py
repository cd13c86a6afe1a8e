"""
Local SQLite store: an always-available mirror of the remote activities plus the
durable sync queue.

Every mutation performed here also appends a queue entry in the same transaction,
so the queue can never drift from what the mirror actually did.
"""
import logging
from pathlib import Path
from typing import Iterable, List, Optional

from sqlalchemy import create_engine, func
from sqlalchemy.exc import IntegrityError

from ..core.config import settings
from ..core.errors import DuplicateNameError
from ..models.activity import ActivityRecord
from ..models.base import Base, make_session_factory, random_order, session_scope, utcnow
from ..models.sync_queue import QueueOperation, SyncQueueEntry
from .base import Activity, QueueEntry, is_duplicate_key, storage_errors

logger = logging.getLogger(__name__)

LOCAL_TABLES = [ActivityRecord.__table__, SyncQueueEntry.__table__]


def create_local_engine(db_path: str):
    path = Path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{path}", connect_args={"check_same_thread": False})


class LocalActivityStore:
    """Activity store backed by a SQLite file, with a FIFO queue of pending mutations.

    ``queue_enabled=False`` turns it into a plain mirror that records nothing.
    """

    label = "local"

    def __init__(self, db_path: Optional[str] = None, engine=None, queue_enabled: bool = True):
        self.engine = engine if engine is not None else create_local_engine(
            db_path or settings.LOCAL_DATABASE_PATH
        )
        self.queue_enabled = queue_enabled
        self._session_factory = make_session_factory(self.engine)
        Base.metadata.create_all(bind=self.engine, tables=LOCAL_TABLES)

    # ------------------------------------------------------------------
    # Store contract
    # ------------------------------------------------------------------

    def list_all(self) -> List[Activity]:
        with storage_errors(self.label, "list"), session_scope(self._session_factory) as db:
            rows = db.query(ActivityRecord).order_by(ActivityRecord.activity).all()
            return [Activity(r.activity, r.priority) for r in rows]

    def get(self, name: str) -> Optional[Activity]:
        with storage_errors(self.label, "get"), session_scope(self._session_factory) as db:
            row = db.query(ActivityRecord).filter(ActivityRecord.activity == name).first()
            return Activity(row.activity, row.priority) if row else None

    def add(self, name: str, priority: float) -> None:
        with storage_errors(self.label, "add"):
            try:
                with session_scope(self._session_factory) as db:
                    db.add(ActivityRecord(activity=name, priority=priority))
                    db.flush()
                    if self.queue_enabled:
                        self._queue(db, QueueOperation.ADD, name, priority)
            except IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise DuplicateNameError(name) from exc
                raise

    def delete(self, name: str) -> bool:
        with storage_errors(self.label, "delete"), session_scope(self._session_factory) as db:
            deleted = (
                db.query(ActivityRecord)
                .filter(ActivityRecord.activity == name)
                .delete(synchronize_session=False)
            ) > 0
            if deleted and self.queue_enabled:
                self._queue(db, QueueOperation.DELETE, name, None)
            return deleted

    def set_priority(self, name: str, priority: float) -> None:
        with storage_errors(self.label, "update"), session_scope(self._session_factory) as db:
            row = db.query(ActivityRecord).filter(ActivityRecord.activity == name).first()
            if row is None:
                return
            delta = priority - row.priority
            row.priority = priority
            if self.queue_enabled and delta != 0:
                self._queue(db, QueueOperation.ADJUST, name, delta)

    def max_priority(self) -> float:
        with storage_errors(self.label, "max"), session_scope(self._session_factory) as db:
            value = db.query(func.max(ActivityRecord.priority)).scalar()
            return float(value or 0.0)

    def select_weighted(self, min_roll: float) -> Optional[Activity]:
        with storage_errors(self.label, "select"), session_scope(self._session_factory) as db:
            row = (
                db.query(ActivityRecord)
                .filter(ActivityRecord.priority >= min_roll)
                .order_by(random_order(self.engine))
                .first()
            )
            return Activity(row.activity, row.priority) if row else None

    def ping(self) -> None:
        with storage_errors(self.label, "ping"), self.engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

    # ------------------------------------------------------------------
    # Sync queue
    # ------------------------------------------------------------------

    def append_queue_entry(self, operation: str, name: str, payload: Optional[float]) -> None:
        with storage_errors(self.label, "queue append"), session_scope(self._session_factory) as db:
            self._queue(db, operation, name, payload)

    def drain_queue_ordered(self) -> List[QueueEntry]:
        """Pending entries, oldest first. Reading does not remove them."""
        with storage_errors(self.label, "queue read"), session_scope(self._session_factory) as db:
            rows = db.query(SyncQueueEntry).order_by(SyncQueueEntry.id).all()
            return [
                QueueEntry(
                    id=r.id,
                    operation=r.operation,
                    activity=r.activity,
                    payload=r.delta,
                    timestamp=r.timestamp,
                )
                for r in rows
            ]

    def remove_queue_entry(self, entry_id: int) -> None:
        with storage_errors(self.label, "queue remove"), session_scope(self._session_factory) as db:
            db.query(SyncQueueEntry).filter(SyncQueueEntry.id == entry_id).delete(
                synchronize_session=False
            )

    def pending_count(self) -> int:
        with storage_errors(self.label, "queue count"), session_scope(self._session_factory) as db:
            return db.query(SyncQueueEntry).count()

    def has_pending_entries(self) -> bool:
        return self.pending_count() > 0

    def replace_snapshot(self, activities: Iterable[Activity]) -> None:
        """Swap the whole mirror for ``activities`` in a single transaction.

        Queue entries are left alone and nothing new is queued.
        """
        activities = list(activities)
        with storage_errors(self.label, "snapshot replace"), session_scope(self._session_factory) as db:
            db.query(ActivityRecord).delete(synchronize_session=False)
            db.add_all(ActivityRecord(activity=a.name, priority=a.priority) for a in activities)
            db.flush()
        logger.info("Local mirror replaced with %d activities", len(activities))

    def close(self) -> None:
        self.engine.dispose()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _queue(db, operation: str, name: str, payload: Optional[float]) -> None:
        db.add(
            SyncQueueEntry(
                operation=operation,
                activity=name,
                delta=payload,
                timestamp=utcnow(),
            )
        )
