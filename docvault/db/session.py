"""Engine and session setup for the credential record store.

One engine per process, built from DOCVAULT_DATABASE_URL. SQLite files get WAL
journaling so event log writes do not block credential reads; PostgreSQL gets
a bounded connection pool.
"""

import logging
from pathlib import Path
from typing import Generator, Optional

from sqlalchemy import Engine, create_engine, event
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from docvault.config import DATABASE_URL

log = logging.getLogger(__name__)


def engine_options(url: str) -> dict:
    """Pool settings for a database URL."""
    if url.startswith("sqlite"):
        return {
            "pool_pre_ping": True,
            "poolclass": StaticPool,
            "connect_args": {"check_same_thread": False},
        }
    return {
        "pool_pre_ping": True,
        "pool_size": 5,
        "max_overflow": 10,
        "pool_recycle": 1800,  # seconds
    }


def _sqlite_file(url: str) -> Optional[Path]:
    if not url.startswith("sqlite:///"):
        return None
    path = url.removeprefix("sqlite:///")
    return Path(path) if path and path != ":memory:" else None


def create_db_engine(url: str) -> Engine:
    """Build an engine; SQLite files are switched to WAL with a busy timeout."""
    engine = create_engine(url, **engine_options(url))

    if _sqlite_file(url) is not None:

        @event.listens_for(engine, "connect")
        def _sqlite_pragmas(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA busy_timeout=5000")
            cursor.close()

    return engine


engine = create_db_engine(DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency yielding a request-scoped session."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_database(bind: Optional[Engine] = None, url: str = DATABASE_URL) -> None:
    """Create the credentials, log_entries and users tables if missing."""
    from docvault.db.models import Base

    bind = bind or engine
    db_file = _sqlite_file(url)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)
        log.info(f"Using SQLite record store at {db_file}")
    else:
        log.info(f"Using record store at {url.split('@')[-1]}")

    Base.metadata.create_all(bind=bind)
