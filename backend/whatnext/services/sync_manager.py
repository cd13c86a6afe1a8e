"""
Reconciliation between the local sync queue and the remote store.

A sync is two phases: replay queued local mutations against the remote store (push),
then overwrite the local mirror with the remote snapshot (pull). Push always runs first
so queued intentions reach the remote before the mirror is replaced.
"""
import logging
import threading
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Set

from ..core.errors import DuplicateNameError, SyncInProgressError
from ..datasources.base import QueueEntry
from ..datasources.local import LocalActivityStore
from ..datasources.remote import RemoteActivityStore
from ..models.sync_queue import QueueOperation
from .priority import DEFAULT_PRIORITY, apply_delta

logger = logging.getLogger(__name__)

SKIP_REASON_EXISTS = "Activity already exists in remote database (possibly added by another client)"
SKIP_REASON_GONE = "Activity no longer exists in remote database"
BLOCKED_REASON = "Blocked by an earlier failed operation on this activity"


class ReplayOutcome(str, Enum):
    SUCCESS = "success"
    SKIPPED = "skipped"


@dataclass
class SyncIssue:
    operation: str
    activity: str
    error: str
    severity: str  # "warning" for skipped entries, "error" for failed ones


@dataclass
class SyncResult:
    success_count: int = 0
    skipped_count: int = 0
    failed_count: int = 0
    issues: List[SyncIssue] = field(default_factory=list)
    pulled: bool = False

    @property
    def ok(self) -> bool:
        return self.failed_count == 0

    def as_dict(self) -> Dict:
        return asdict(self)


class SyncManager:
    def __init__(
        self,
        remote: RemoteActivityStore,
        local: LocalActivityStore,
        lock: Optional[threading.Lock] = None,
        pull_after_failed_push: bool = True,
    ):
        self.remote = remote
        self.local = local
        self.lock = lock or threading.Lock()
        self.pull_after_failed_push = pull_after_failed_push

    def push_queue(self) -> SyncResult:
        """Replay the queue against the remote store, oldest entry first.

        Success and skipped entries are removed once the pass is over; failed entries
        stay queued. After a failure, later entries for the same activity are held back
        too, so a retried ADD still precedes the ADJUST that depends on it.
        """
        result = SyncResult()
        processed_ids: List[int] = []
        blocked: Set[str] = set()

        for entry in self.local.drain_queue_ordered():
            if entry.activity in blocked:
                result.failed_count += 1
                result.issues.append(SyncIssue(entry.operation, entry.activity, BLOCKED_REASON, "error"))
                continue
            try:
                outcome = self._process_entry(entry)
            except Exception as exc:
                logger.warning(
                    "Sync of %s on '%s' (queue id %s) failed: %s",
                    entry.operation, entry.activity, entry.id, exc,
                )
                result.failed_count += 1
                result.issues.append(SyncIssue(entry.operation, entry.activity, str(exc), "error"))
                blocked.add(entry.activity)
                continue

            if outcome is ReplayOutcome.SKIPPED:
                result.skipped_count += 1
                result.issues.append(
                    SyncIssue(entry.operation, entry.activity, self._skip_reason(entry.operation), "warning")
                )
            else:
                result.success_count += 1
            processed_ids.append(entry.id)

        for entry_id in processed_ids:
            self.local.remove_queue_entry(entry_id)

        logger.info(
            "Queue push finished: %d synced, %d skipped, %d failed",
            result.success_count, result.skipped_count, result.failed_count,
        )
        return result

    def pull_snapshot(self) -> None:
        """Replace the local mirror with the remote store's full activity list."""
        self.local.replace_snapshot(self.remote.list_all())

    def full_sync(self) -> SyncResult:
        if not self.lock.acquire(blocking=False):
            raise SyncInProgressError("A sync is already in progress")
        try:
            result = self.push_queue()
            if result.failed_count and not self.pull_after_failed_push:
                logger.warning(
                    "Skipping mirror refresh: %d queued operations failed to sync",
                    result.failed_count,
                )
                return result
            self.pull_snapshot()
            result.pulled = True
            return result
        finally:
            self.lock.release()

    def has_pending(self) -> bool:
        return self.local.has_pending_entries()

    def pending_count(self) -> int:
        return self.local.pending_count()

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _process_entry(self, entry: QueueEntry) -> ReplayOutcome:
        if entry.operation == QueueOperation.ADD:
            try:
                priority = entry.payload if entry.payload is not None else DEFAULT_PRIORITY
                self.remote.add(entry.activity, priority)
            except DuplicateNameError:
                return ReplayOutcome.SKIPPED
            return ReplayOutcome.SUCCESS

        if entry.operation == QueueOperation.DELETE:
            # Already gone remotely counts as done
            self.remote.delete(entry.activity)
            return ReplayOutcome.SUCCESS

        if entry.operation == QueueOperation.ADJUST:
            current = self.remote.get(entry.activity)
            if current is None:
                return ReplayOutcome.SKIPPED
            self.remote.set_priority(entry.activity, apply_delta(current.priority, entry.payload or 0.0))
            return ReplayOutcome.SUCCESS

        raise ValueError(f"Unknown operation: {entry.operation}")

    @staticmethod
    def _skip_reason(operation: str) -> str:
        return SKIP_REASON_EXISTS if operation == QueueOperation.ADD else SKIP_REASON_GONE
