"""Database connection management for SQLModel ORM.

Supports SQLite (local dev) and PostgreSQL (production) via DATABASE_URL.
"""

from __future__ import annotations

from pathlib import Path
from typing import Generator

from sqlalchemy import event
from sqlalchemy.engine import Engine
from sqlmodel import Session, SQLModel, create_engine

from .config import get_settings

# Global engine instance
_engine: Engine | None = None
_database_url: str | None = None


def get_database_url() -> str:
    """Get the active database URL (override first, then settings)."""
    return _database_url or get_settings().database_url


def set_database_url(url: str) -> None:
    """Set a custom database URL (useful for testing)."""
    global _database_url, _engine
    _database_url = url
    _engine = None  # Reset engine when URL changes


def get_engine() -> Engine:
    """Get SQLAlchemy engine for SQLModel operations."""
    global _engine
    if _engine is None:
        database_url = get_database_url()

        connect_args = {}
        if database_url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
            _ensure_sqlite_directory(database_url)

        _engine = create_engine(database_url, echo=False, connect_args=connect_args)
        if database_url.startswith("sqlite"):
            register_sqlite_functions(_engine)
    return _engine


def register_sqlite_functions(engine: Engine) -> None:
    """Replace SQLite's ASCII-only lower() with Python's Unicode lowering.

    Case-insensitive text conditions compile to lower(), and ilike compiles
    to lower() on both sides on SQLite.
    """
    @event.listens_for(engine, "connect")
    def _connect(dbapi_connection, connection_record):
        dbapi_connection.create_function("lower", 1, _unicode_lower, deterministic=True)


def _unicode_lower(value):
    return value.lower() if isinstance(value, str) else value


def reset_engine() -> None:
    """Reset the engine (useful for testing or reconfiguration)."""
    global _engine
    if _engine is not None:
        _engine.dispose()
    _engine = None


def get_session() -> Generator[Session, None, None]:
    """Yield a SQLModel session for dependency injection."""
    with Session(get_engine()) as session:
        yield session


def init_db() -> None:
    """Create all tables if they don't exist. Safe to call multiple times."""
    # Table classes register themselves on SQLModel.metadata at import time
    from finmatch.storage import models  # noqa: F401

    SQLModel.metadata.create_all(get_engine())


def _ensure_sqlite_directory(database_url: str) -> None:
    if not database_url.startswith("sqlite:///"):
        return
    path = database_url.removeprefix("sqlite:///")
    if not path or path.startswith(":memory:"):
        return
    Path(path).parent.mkdir(parents=True, exist_ok=True)
