"""
Database connection for the clinic CRM.

- SQLite: authoritative system of record (via SQLAlchemy)
"""

from .sqlite import Base, init_db, get_db_session, reset_engine

__all__ = [
    "Base",
    "init_db",
    "get_db_session",
    "reset_engine",
]
