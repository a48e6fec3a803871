"""
Database Session Management
===========================

Engine and sessions behind SqlRecordStore.

The engine follows DATABASE_URL and is rebuilt whenever the variable
changes, so tests can point the store at a temporary SQLite file and call
reset_engine() between runs. SQLite connections enforce foreign keys, which
the cases/time_logs cascade and the attorney SET NULL rely on. An in-memory
SQLite URL shares one connection so the tables outlive a single session.

Sessions keep loaded rows usable after commit; the store converts them to
plain dictionaries before the session closes anyway.
"""

import os
from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool

from .models import Base

DEFAULT_DATABASE_URL = "sqlite:///./timetrack.db"

_engine = None
_engine_url = None

SessionLocal = sessionmaker(autocommit=False, autoflush=False, expire_on_commit=False)


def database_url() -> str:
    """DATABASE_URL, or a SQLite file in the working directory"""
    return os.environ.get("DATABASE_URL", DEFAULT_DATABASE_URL)


def _is_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///:memory:")


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def _build_engine(url: str) -> Engine:
    echo = os.environ.get("SQL_ECHO", "false").lower() == "true"

    if url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}, "echo": echo}
        if _is_memory_sqlite(url):
            options["poolclass"] = StaticPool
        engine = create_engine(url, **options)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine

    return create_engine(
        url,
        poolclass=QueuePool,
        pool_size=int(os.environ.get("DB_POOL_SIZE", "5")),
        max_overflow=10,
        pool_pre_ping=True,
        connect_args={"connect_timeout": int(os.environ.get("DB_CONNECT_TIMEOUT", "5"))},
        echo=echo,
    )


def get_engine() -> Engine:
    """Engine for the current DATABASE_URL, rebuilt when the URL changes"""
    global _engine, _engine_url
    url = database_url()
    if _engine is None or _engine_url != url:
        if _engine is not None:
            _engine.dispose()
        _engine = _build_engine(url)
        _engine_url = url
        SessionLocal.configure(bind=_engine)
    return _engine


def reset_engine() -> None:
    """Dispose the engine and unbind sessions; the next call reconnects."""
    global _engine, _engine_url
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _engine_url = None
    SessionLocal.configure(bind=None)


def init_db() -> None:
    """Create the attorneys, profiles, cases and time_logs tables if missing"""
    Base.metadata.create_all(bind=get_engine())


def drop_db() -> None:
    Base.metadata.drop_all(bind=get_engine())


@contextmanager
def get_db_session() -> Generator[Session, None, None]:
    """
    One unit of work: commits on success, rolls back and re-raises on error.

    Usage:
        with get_db_session() as db:
            db.query(Case).filter(Case.attorney_id == attorney_id).all()
    """
    get_engine()
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()
