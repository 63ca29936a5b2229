"""Persistence: engine/session helpers, table models and the SQL store."""

from progress_engine.db.database import create_db_engine, init_db, make_session_factory, session_scope
from progress_engine.db.repository import SqlProgressStore

__all__ = [
    "SqlProgressStore",
    "create_db_engine",
    "init_db",
    "make_session_factory",
    "session_scope",
]
