"""
SQLite connection via SQLAlchemy.

This is the authoritative system of record for clinics, users, leads and
patients.
"""

import logging

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base
from sqlalchemy.pool import StaticPool

from clinic_crm.config import config

logger = logging.getLogger("db.sqlite")

# SQLAlchemy base for model declarations
Base = declarative_base()

# Engine and session factory (initialized lazily)
_engine = None
_session_factory = None


def _is_memory_url(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:") or "mode=memory" in url


def get_engine():
    """Get or create the SQLAlchemy engine."""
    global _engine
    if _engine is None:
        db_url = config.get_database_url()
        kwargs = {"echo": config.DEBUG}
        if db_url.startswith("sqlite"):
            kwargs["connect_args"] = {"check_same_thread": False}
            if _is_memory_url(db_url):
                # One shared connection, otherwise every checkout sees an empty database
                kwargs["poolclass"] = StaticPool
        _engine = create_engine(db_url, **kwargs)

        if db_url.startswith("sqlite"):
            @event.listens_for(_engine, "connect")
            def _enable_foreign_keys(dbapi_conn, connection_record):
                cursor = dbapi_conn.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

        logger.info(f"Engine created for {db_url}")

    return _engine


def get_db_session():
    """Get a scoped database session.

    Returns the thread-local session from the scoped session factory.
    The session is cleaned up at the end of each request via close_db_session().
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = scoped_session(
            sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)
        )

    return _session_factory()


def init_db():
    """Create all tables."""
    # Import models so they register with Base.metadata
    from clinic_crm import models  # noqa: F401

    Base.metadata.create_all(bind=get_engine())


def reset_engine():
    """Drop the cached engine and session factory.

    Used when DATABASE_URL changes at runtime (tests, app factory overrides).
    """
    global _engine, _session_factory
    if _session_factory is not None:
        _session_factory.remove()
        _session_factory = None
    if _engine is not None:
        _engine.dispose()
        _engine = None


def close_db_session(exception=None):
    """Remove the current session (call at end of request).

    Always rollback so uncommitted work never leaks into the next request,
    then remove the session from the registry.
    """
    if _session_factory is not None:
        try:
            _session_factory.rollback()
        finally:
            _session_factory.remove()


def rollback_session():
    """Explicitly rollback the current session.

    Called at the start of a request to ensure clean state.
    """
    if _session_factory is not None:
        session = _session_factory()
        if session.is_active:
            session.rollback()

