"""
Store contract shared by the local mirror and the remote database.
Priority deltas and clamping live in the service layer, not here.
"""
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional, Protocol, runtime_checkable

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..core.errors import StorageError

MYSQL_DUPLICATE_ENTRY = 1062
POSTGRES_UNIQUE_VIOLATION = "23505"


@dataclass(frozen=True)
class Activity:
    name: str
    priority: float

    def as_dict(self) -> Dict:
        return {"activity": self.name, "priority": self.priority}


@dataclass(frozen=True)
class QueueEntry:
    id: int
    operation: str
    activity: str
    payload: Optional[float]
    timestamp: datetime


@runtime_checkable
class ActivityStore(Protocol):
    def list_all(self) -> List[Activity]:
        ...

    def get(self, name: str) -> Optional[Activity]:
        ...

    def add(self, name: str, priority: float) -> None:
        """Insert a new activity. Raises DuplicateNameError if the name exists."""
        ...

    def delete(self, name: str) -> bool:
        """Return True if a row was removed, False if the name was absent."""
        ...

    def set_priority(self, name: str, priority: float) -> None:
        ...

    def max_priority(self) -> float:
        """Highest priority present, 0.0 when empty."""
        ...

    def select_weighted(self, min_roll: float) -> Optional[Activity]:
        """Random activity with priority >= min_roll, or None."""
        ...

    def ping(self) -> None:
        """Trivial liveness query; raises when the store is unreachable."""
        ...


@contextmanager
def storage_errors(store: str, action: str):
    """Re-raise SQLAlchemy failures as StorageError so callers see one error type."""
    try:
        yield
    except SQLAlchemyError as exc:
        raise StorageError(f"{store} store {action} failed: {exc}") from exc


def is_duplicate_key(exc: IntegrityError) -> bool:
    """True when the driver reports a unique or primary key violation."""
    orig = exc.orig
    if getattr(orig, "pgcode", None) == POSTGRES_UNIQUE_VIOLATION:
        return True
    args = getattr(orig, "args", ())
    if args and args[0] == MYSQL_DUPLICATE_ENTRY:
        return True
    # sqlite3 reports a text primary key collision as a UNIQUE failure
    return "UNIQUE constraint failed" in str(orig)
