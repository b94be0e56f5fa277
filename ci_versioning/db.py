"""Storage engine for build records.

Build reports arrive from many CI runners at once and each store operation
is one short write transaction. On SQLite, connections wait for the write
lock instead of failing with "database is locked", and file databases run
in WAL mode so list/show requests do not block reporting runners.
"""

from collections.abc import Generator
from contextlib import contextmanager
from functools import partial
from pathlib import Path
from typing import Any

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.engine import make_url
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

SQLITE_BUSY_TIMEOUT_MS = 30_000


class Base(DeclarativeBase):
    """Declarative base of the build record tables."""


def _configure_sqlite(
    dbapi_connection: Any, connection_record: Any, *, wal: bool
) -> None:
    cursor = dbapi_connection.cursor()
    try:
        cursor.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        if wal:
            cursor.execute("PRAGMA journal_mode = WAL")
    finally:
        cursor.close()


def get_engine(db_url: str) -> Engine:
    """Create the engine for a database URL.

    SQLite file databases get their parent directory created, a busy
    timeout of SQLITE_BUSY_TIMEOUT_MS and the WAL journal. In-memory
    databases only get the busy timeout.

    Args:
        db_url: SQLAlchemy database URL.

    Returns:
        SQLAlchemy Engine instance.
    """
    url = make_url(db_url)
    if url.get_backend_name() != "sqlite":
        return create_engine(url, pool_pre_ping=True)

    in_memory = url.database in (None, "", ":memory:")
    if not in_memory:
        Path(url.database).parent.mkdir(parents=True, exist_ok=True)

    engine = create_engine(url, connect_args={"check_same_thread": False})
    event.listen(engine, "connect", partial(_configure_sqlite, wal=not in_memory))
    return engine


def get_session_factory(engine: Engine) -> sessionmaker[Session]:
    """Return the session factory the build store runs its transactions on."""
    return sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


@contextmanager
def get_session(
    session_factory: sessionmaker[Session],
) -> Generator[Session, None, None]:
    """Run one store operation in its own transaction.

    Commits when the block exits normally, rolls back and re-raises
    otherwise.
    """
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def create_all_tables(engine: Engine) -> None:
    """Create the build record tables if they do not exist."""
    from ci_versioning.builds import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "SQLITE_BUSY_TIMEOUT_MS",
    "create_all_tables",
    "get_engine",
    "get_session",
    "get_session_factory",
]
