"""
Activity operations used by the HTTP API and the CLI.

Each call asks the router for the active store, so a request made while offline lands
in the local mirror (and its sync queue) without the caller having to know.
"""
import logging
import random
from dataclasses import dataclass
from typing import Dict, List, Optional

from ..core.errors import ActivityNotFoundError, InvalidActivityError, RemoteUnavailableError
from ..datasources.base import Activity
from .connection import ConnectionRouter
from .priority import DEFAULT_PRIORITY, apply_delta, check_delta, check_priority
from .sync_manager import SyncManager, SyncResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Suggestion:
    activity: str
    priority: float
    min_roll: float


class ActivityService:
    def __init__(
        self,
        router: ConnectionRouter,
        rng: Optional[random.Random] = None,
        pull_after_failed_push: bool = True,
    ):
        self.router = router
        self.rng = rng or random.Random()
        self.pull_after_failed_push = pull_after_failed_push

    def list_all(self) -> List[Activity]:
        return self.router.active_store().list_all()

    def get(self, name: str) -> Optional[Activity]:
        return self.router.active_store().get(name)

    def suggest(self) -> Optional[Suggestion]:
        """
        Pick a random activity weighted by priority.

        A threshold is rolled between 0 and the highest priority (in 0.1 steps) and a
        random activity at or above it is returned, so higher priorities clear more rolls.
        """
        store = self.router.active_store()
        max_priority = store.max_priority()
        if max_priority <= 0:
            return None
        min_roll = self.rng.randint(0, int(max_priority * 10)) / 10
        picked = store.select_weighted(min_roll)
        if picked is None and min_roll > 0:
            # the top row can compare just below its own value on lossy float columns
            min_roll = 0.0
            picked = store.select_weighted(min_roll)
        if picked is None:
            return None
        return Suggestion(activity=picked.name, priority=picked.priority, min_roll=min_roll)

    def add(self, name: str, priority: float = DEFAULT_PRIORITY) -> Activity:
        name = (name or "").strip()
        if not name:
            raise InvalidActivityError("Activity name is required")
        check_priority(priority)
        self.router.active_store().add(name, priority)
        return Activity(name, priority)

    def delete(self, name: str) -> bool:
        return self.router.active_store().delete(name)

    def adjust_priority(self, name: str, delta: float) -> float:
        """Apply ``delta`` to an activity's priority and return the new value."""
        check_delta(delta)
        store = self.router.active_store()
        activity = store.get(name)
        if activity is None:
            raise ActivityNotFoundError(name)
        new_priority = apply_delta(activity.priority, delta)
        check_priority(new_priority)
        store.set_priority(name, new_priority)
        return new_priority

    def connectivity_status(self) -> Dict:
        online = self.router.status()["online"]
        return {
            "online": online,
            "status": "online" if online else "offline",
            "pending_count": self.router.local_store().pending_count(),
        }

    def sync_manager(self) -> SyncManager:
        if not self.router.status()["online"]:
            raise RemoteUnavailableError("Cannot sync while offline")
        remote = self.router.remote_store()
        if remote is None:
            raise RemoteUnavailableError("Remote connection unavailable")
        return SyncManager(
            remote,
            self.router.local_store(),
            lock=self.router.sync_lock,
            pull_after_failed_push=self.pull_after_failed_push,
        )

    def trigger_sync(self) -> SyncResult:
        manager = self.sync_manager()
        pending = manager.pending_count()
        if pending:
            logger.info("Starting sync with %d pending operations", pending)
        return manager.full_sync()
