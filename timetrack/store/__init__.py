"""
Record Store Package
====================

Adapters for the relational data service behind the application.
"""

from .base import (
    RecordStore, Row, StoreError, RecordNotFoundError,
    TABLE_CASES, TABLE_TIME_LOGS, TABLE_ATTORNEYS, TABLE_PROFILES,
)
from .sql import SqlRecordStore
from .postgrest import PostgrestRecordStore
from .factory import create_store

__all__ = [
    "RecordStore", "Row", "StoreError", "RecordNotFoundError",
    "TABLE_CASES", "TABLE_TIME_LOGS", "TABLE_ATTORNEYS", "TABLE_PROFILES",
    "SqlRecordStore", "PostgrestRecordStore", "create_store",
]
