import pytest
from sqlalchemy import create_engine

from whatnext.core.errors import StorageError
from whatnext.datasources.local import LocalActivityStore
from whatnext.datasources.remote import RemoteActivityStore
from whatnext.services.connection import ConnectionRouter


class FakeClock:
    """Manually advanced stand-in for time.monotonic."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class SwitchableRemote(RemoteActivityStore):
    """Remote store whose reachability and per-name add failures can be toggled."""

    def __init__(self, engine):
        super().__init__(engine)
        self.reachable = True
        self.ping_count = 0
        self.failing_adds = set()

    def ping(self) -> None:
        self.ping_count += 1
        if not self.reachable:
            raise StorageError("remote store ping failed: connection refused")
        super().ping()

    def add(self, name: str, priority: float) -> None:
        if name in self.failing_adds:
            raise StorageError(f"remote store add failed: lost connection while adding {name}")
        super().add(name, priority)


@pytest.fixture()
def local_store(tmp_path):
    store = LocalActivityStore(str(tmp_path / "data" / "local.db"))
    yield store
    store.close()


@pytest.fixture()
def remote_store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'remote.db'}")
    store = SwitchableRemote(engine)
    store.create_schema()
    yield store
    store.close()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def router(remote_store, local_store, clock):
    return ConnectionRouter(
        remote_factory=lambda: remote_store,
        local_factory=lambda: local_store,
        probe_interval=5.0,
        clock=clock,
    )
