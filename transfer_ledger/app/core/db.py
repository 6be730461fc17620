from __future__ import annotations

from collections.abc import Callable, Generator
from typing import Any, Optional, TypeVar

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError
from sqlmodel import Session, SQLModel, create_engine

from ..models import db as _db_models  # noqa: F401 - ensure models register with metadata
from .config import get_settings

T = TypeVar("T")

SERIALIZATION_FAILURE = "40001"
DEADLOCK_DETECTED = "40P01"
LOCK_NOT_AVAILABLE = "55P03"
UNIQUE_VIOLATION = "23505"

_RETRYABLE_SQLSTATES = frozenset(
    {SERIALIZATION_FAILURE, DEADLOCK_DETECTED, LOCK_NOT_AVAILABLE}
)

# Execution options for transactions that only read.
READ_ONLY: dict[str, Any] = {"ledger_read_only": True}


def create_engine_for_url(database_url: str, lock_timeout_ms: Optional[int] = None) -> Engine:
    if lock_timeout_ms is None:
        lock_timeout_ms = get_settings().lock_timeout_ms

    connect_args: dict[str, Any] = {}
    if database_url.startswith("sqlite"):
        connect_args = {
            "check_same_thread": False,
            # busy timeout: how long a writer waits for the database lock
            "timeout": lock_timeout_ms / 1000,
        }
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if engine.dialect.name == "sqlite":
        _configure_sqlite(engine)
    return engine


def _configure_sqlite(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_conn: Any, _: Any) -> None:
        # pysqlite's implicit BEGIN is replaced by the "begin" hook below.
        dbapi_conn.isolation_level = None
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def _on_begin(conn: Any) -> None:
        if conn.get_execution_options().get("ledger_read_only"):
            # WAL readers see the last committed state without locking.
            conn.exec_driver_sql("BEGIN")
            return
        # SQLite has no row locks; take the database write lock when the
        # transaction starts so a read is never upgraded to a write later.
        conn.exec_driver_sql("BEGIN IMMEDIATE")


settings = get_settings()
engine = create_engine_for_url(settings.database_url, settings.lock_timeout_ms)


def init_db() -> None:
    SQLModel.metadata.create_all(engine)


def get_session() -> Generator[Session, None, None]:
    with Session(engine) as session:
        yield session


def set_engine(new_engine: Engine) -> None:
    global engine
    engine = new_engine


def run_in_transaction(session: Session, work: Callable[[], T]) -> T:
    """Run ``work`` as one database transaction on ``session``.

    The transaction is committed only when ``work`` returns normally.
    Every other exit, including a failed commit and ``BaseException``
    such as task cancellation, rolls it back before propagating.
    """
    try:
        result = work()
        session.commit()
    except BaseException:
        session.rollback()
        raise
    return result


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    orig = exc.orig
    # psycopg exposes ``sqlstate``, psycopg2 ``pgcode``.
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _sqlite_busy(exc: DBAPIError) -> bool:
    name = getattr(exc.orig, "sqlite_errorname", None) or ""
    return name.startswith(("SQLITE_BUSY", "SQLITE_LOCKED"))


def is_lock_timeout(exc: BaseException) -> bool:
    """True when the datastore gave up waiting for a lock."""
    if not isinstance(exc, DBAPIError):
        return False
    return _sqlstate(exc) == LOCK_NOT_AVAILABLE or _sqlite_busy(exc)


def is_retryable(exc: BaseException) -> bool:
    """True for conflicts where rerunning the whole transaction is safe."""
    if not isinstance(exc, DBAPIError):
        return False
    return _sqlstate(exc) in _RETRYABLE_SQLSTATES or _sqlite_busy(exc)


def is_unique_violation(exc: BaseException) -> bool:
    """True when an insert collided with an existing primary/unique key."""
    if not isinstance(exc, DBAPIError):
        return False
    if _sqlstate(exc) == UNIQUE_VIOLATION:
        return True
    # Without extended result codes SQLite only reports SQLITE_CONSTRAINT.
    name = getattr(exc.orig, "sqlite_errorname", None) or ""
    return name in (
        "SQLITE_CONSTRAINT",
        "SQLITE_CONSTRAINT_PRIMARYKEY",
        "SQLITE_CONSTRAINT_UNIQUE",
    )
