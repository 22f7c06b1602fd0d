"""Database setup: SQLite with WAL mode via SQLModel/SQLAlchemy.

Design decisions:
- SQLModel: one class per table carries both the pydantic fields and the
  SQLAlchemy mapping
- SQLite WAL mode: readers see either the pre- or post-commit state of a
  cascade, never a partial one
- Alembic for migrations (backend/alembic); create_db_and_tables() for tests
  and first-run bootstrap
- Relationships are stored as id columns and resolved through the store,
  so no ORM relationship() graph is loaded implicitly

What goes where (all SQLite):
    project, issue_label, issue, issue_label_link, comment, cycle,
    ai_tracking_event, context_snapshot
"""

from __future__ import annotations

import logging
import os
import sqlite3
from functools import lru_cache

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel, create_engine

from codingflow.config import settings

logger = logging.getLogger(__name__)

_MEMORY_URLS = {"sqlite://", "sqlite:///:memory:"}


def get_database_url(url: str | None = None) -> str:
    """Resolve the database URL, ensuring the data directory exists."""
    url = url or settings.database_url
    if url.startswith("sqlite:///") and url not in _MEMORY_URLS:
        db_path = url.replace("sqlite:///", "")
        db_dir = os.path.dirname(db_path)
        if db_dir:
            os.makedirs(db_dir, exist_ok=True)
    return url


@event.listens_for(Engine, "connect")
def set_sqlite_pragmas(dbapi_connection, connection_record):
    """Enable WAL mode and a lock wait for every SQLite connection."""
    if not isinstance(dbapi_connection, sqlite3.Connection):
        return
    cursor = dbapi_connection.cursor()
    if settings.sqlite_wal:
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.execute("PRAGMA synchronous=NORMAL")  # Safe with WAL
    cursor.execute("PRAGMA busy_timeout=5000")    # 5s wait on lock
    cursor.close()


def make_engine(url: str | None = None, echo: bool | None = None) -> Engine:
    """Build an engine for the given URL (defaults to settings.database_url).

    In-memory URLs share one connection so every session sees the same data.
    """
    url = get_database_url(url)
    kwargs: dict = {
        "echo": settings.database_echo if echo is None else echo,
        "connect_args": {"check_same_thread": False},
    }
    if url in _MEMORY_URLS:
        kwargs["poolclass"] = StaticPool
    logger.debug("Creating engine for %s", url)
    return create_engine(url, **kwargs)


@lru_cache(maxsize=1)
def get_engine() -> Engine:
    """Process-wide engine for the configured database."""
    return make_engine()


def create_db_and_tables(engine: Engine | None = None) -> None:
    """Create all tables defined by SQLModel metadata."""
    # Import all SQL models so SQLModel metadata registers them
    from codingflow.models import cycle, issue, project, tracking  # noqa: F401

    SQLModel.metadata.create_all(engine or get_engine())
