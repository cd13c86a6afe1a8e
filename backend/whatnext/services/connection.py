"""
Connectivity-aware routing between the remote store and the local mirror.

The router probes the remote store at most once per ``probe_interval`` seconds, so an
offline client pays a connection timeout once per interval instead of on every call.
"""
import logging
import threading
import time
from typing import Callable, Dict, Optional

from ..core.config import Settings, settings as default_settings
from ..datasources.local import LocalActivityStore
from ..datasources.remote import RemoteActivityStore, create_remote_engine

logger = logging.getLogger(__name__)


class ConnectionRouter:
    """Owns connectivity state and hands out the store to use right now."""

    def __init__(
        self,
        remote_factory: Callable[[], RemoteActivityStore],
        local_factory: Callable[[], LocalActivityStore],
        probe_interval: float = 5.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._remote_factory = remote_factory
        self._local_factory = local_factory
        self.probe_interval = probe_interval
        self._clock = clock

        self._remote: Optional[RemoteActivityStore] = None
        self._local: Optional[LocalActivityStore] = None
        self._online = False
        self.last_checked_at: Optional[float] = None
        self.probe_count = 0

        # Guards lazy store construction and probing
        self._state_lock = threading.Lock()
        # Serializes reconciliation runs within this process
        self.sync_lock = threading.Lock()

    def probe(self) -> bool:
        """Check the remote store now. Failures only flip the state to offline."""
        with self._state_lock:
            return self._probe()

    def _probe(self) -> bool:
        was_online = self._online
        self.probe_count += 1
        fresh = None
        try:
            remote = self._remote
            if remote is None:
                remote = fresh = self._remote_factory()
            remote.ping()
        except Exception as exc:
            self._online = False
            if fresh is not None:
                fresh.close()
            if was_online:
                logger.warning("Remote store unreachable, falling back to local store: %s", exc)
            else:
                logger.debug("Remote store probe failed: %s", exc)
        else:
            self._remote = remote
            self._online = True
            if not was_online:
                logger.info("Remote store reachable")
        finally:
            self.last_checked_at = self._clock()
        return self._online

    def is_stale(self) -> bool:
        if self.last_checked_at is None:
            return True
        return self._clock() - self.last_checked_at >= self.probe_interval

    def _refresh(self) -> None:
        if not self.is_stale():
            return
        with self._state_lock:
            # another caller may have probed while we waited
            if self.is_stale():
                self._probe()

    def active_store(self):
        self._refresh()
        if self._online and self._remote is not None:
            return self._remote
        return self.local_store()

    def status(self) -> Dict:
        self._refresh()
        return {"online": self._online}

    def is_online(self) -> bool:
        """Last known state, without probing."""
        return self._online

    def local_store(self) -> LocalActivityStore:
        if self._local is None:
            with self._state_lock:
                if self._local is None:
                    self._local = self._local_factory()
        return self._local

    def remote_store(self) -> Optional[RemoteActivityStore]:
        return self._remote

    def close(self) -> None:
        if self._remote is not None:
            self._remote.close()
        if self._local is not None:
            self._local.close()


def build_router(settings: Optional[Settings] = None) -> ConnectionRouter:
    """Router wired to the configured remote database and local SQLite file."""
    settings = settings or default_settings
    return ConnectionRouter(
        remote_factory=lambda: RemoteActivityStore(create_remote_engine(settings)),
        local_factory=lambda: LocalActivityStore(settings.LOCAL_DATABASE_PATH),
        probe_interval=settings.PROBE_INTERVAL_SECONDS,
    )
