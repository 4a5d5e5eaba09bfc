"""Core components: settings, database wiring, logging."""

from .config import Settings, settings
from .logging import correlation_scope, get_logger, setup_logging
from .database import (
    AsyncSessionLocal,
    build_engine,
    drop_db,
    enable_sqlite_foreign_keys,
    engine,
    init_db,
    session_scope,
)

__all__ = [
    "settings",
    "Settings",
    "engine",
    "build_engine",
    "AsyncSessionLocal",
    "enable_sqlite_foreign_keys",
    "session_scope",
    "init_db",
    "drop_db",
    "setup_logging",
    "get_logger",
    "correlation_scope",
]
