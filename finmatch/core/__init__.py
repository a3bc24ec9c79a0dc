"""Core package - Shared configuration and database session management."""

from .config import Settings, get_settings
from .database import (
    get_database_url,
    set_database_url,
    get_engine,
    register_sqlite_functions,
    reset_engine,
    get_session,
    init_db,
)

__all__ = [
    # Config
    "Settings",
    "get_settings",
    # Database
    "get_database_url",
    "set_database_url",
    "get_engine",
    "register_sqlite_functions",
    "reset_engine",
    "get_session",
    "init_db",
]
