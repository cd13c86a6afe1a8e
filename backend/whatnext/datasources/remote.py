"""
Remote (authoritative) activity store on a network database, MySQL by default.
Only usable while the connectivity router reports it online.
"""
from typing import List, Optional

from sqlalchemy import create_engine, func
from sqlalchemy.exc import IntegrityError

from ..core.config import Settings, settings as default_settings
from ..core.errors import DuplicateNameError, RemoteNotConfiguredError
from ..models.activity import ActivityRecord
from ..models.base import make_session_factory, random_order, session_scope
from .base import Activity, is_duplicate_key, storage_errors


def create_remote_engine(settings: Optional[Settings] = None):
    """Build the engine for the remote store; nothing connects until first use."""
    settings = settings or default_settings
    url = settings.remote_database_url
    if not url:
        raise RemoteNotConfiguredError("No remote database configured (set REMOTE_DATABASE_URL or DB_HOST/DB_DATABASE)")
    connect_args = {}
    if url.startswith(("mysql", "mariadb", "postgresql")):
        connect_args["connect_timeout"] = settings.REMOTE_CONNECT_TIMEOUT
    return create_engine(url, pool_pre_ping=True, connect_args=connect_args)


class RemoteActivityStore:
    """Activity store on the shared remote database. Mutations are applied directly."""

    label = "remote"

    def __init__(self, engine):
        self.engine = engine
        self._session_factory = make_session_factory(engine)

    def create_schema(self) -> None:
        """Create ``t_activity`` if missing. Production schemas are managed by Alembic."""
        with storage_errors(self.label, "schema create"):
            ActivityRecord.__table__.create(bind=self.engine, checkfirst=True)

    def list_all(self) -> List[Activity]:
        with storage_errors(self.label, "list"), session_scope(self._session_factory) as db:
            rows = db.query(ActivityRecord).order_by(ActivityRecord.activity).all()
            # DECIMAL columns come back as Decimal on some drivers
            return [Activity(r.activity, float(r.priority)) for r in rows]

    def get(self, name: str) -> Optional[Activity]:
        with storage_errors(self.label, "get"), session_scope(self._session_factory) as db:
            row = db.query(ActivityRecord).filter(ActivityRecord.activity == name).first()
            return Activity(row.activity, float(row.priority)) if row else None

    def add(self, name: str, priority: float) -> None:
        with storage_errors(self.label, "add"):
            try:
                with session_scope(self._session_factory) as db:
                    db.add(ActivityRecord(activity=name, priority=priority))
                    db.flush()
            except IntegrityError as exc:
                if is_duplicate_key(exc):
                    raise DuplicateNameError(name) from exc
                raise

    def delete(self, name: str) -> bool:
        with storage_errors(self.label, "delete"), session_scope(self._session_factory) as db:
            return (
                db.query(ActivityRecord)
                .filter(ActivityRecord.activity == name)
                .delete(synchronize_session=False)
            ) > 0

    def set_priority(self, name: str, priority: float) -> None:
        with storage_errors(self.label, "update"), session_scope(self._session_factory) as db:
            db.query(ActivityRecord).filter(ActivityRecord.activity == name).update(
                {ActivityRecord.priority: priority}, synchronize_session=False
            )

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
            return Activity(row.activity, float(row.priority)) if row else None

    def ping(self) -> None:
        with storage_errors(self.label, "ping"), self.engine.connect() as conn:
            conn.exec_driver_sql("SELECT 1")

    def close(self) -> None:
        self.engine.dispose()
