"""
Database Package - SQLAlchemy
=============================

Tables and sessions for the SQL record store.
"""

from .models import Base, Attorney, Profile, Case, TimeLog
from .session import get_db_session, init_db, drop_db, get_engine, reset_engine

__all__ = [
    # Base
    "Base",
    # Tables
    "Attorney", "Profile", "Case", "TimeLog",
    # Session
    "get_db_session", "init_db", "drop_db", "get_engine", "reset_engine",
]
