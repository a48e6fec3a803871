"""
Record Store Base Types
=======================

Query-and-mutate interface to the hosted relational data service.

Rows travel as plain dictionaries keyed by column name; typing them is the
job of timetrack.records. Every adapter must:

- return an empty list (not raise) when a select matches nothing
- raise RecordNotFoundError when get/update targets a missing row
- raise StoreError for any other failure reported by the backend
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..errors import RecordNotFoundError, StoreError

Row = Dict[str, Any]

TABLE_CASES = "cases"
TABLE_TIME_LOGS = "time_logs"
TABLE_ATTORNEYS = "attorneys"
TABLE_PROFILES = "profiles"

TABLES = (TABLE_CASES, TABLE_TIME_LOGS, TABLE_ATTORNEYS, TABLE_PROFILES)

__all__ = [
    "RecordStore", "Row", "StoreError", "RecordNotFoundError",
    "TABLE_CASES", "TABLE_TIME_LOGS", "TABLE_ATTORNEYS", "TABLE_PROFILES", "TABLES",
]


class RecordStore(ABC):
    """
    Abstract record store.

    Adapters translate these calls into SQL sessions or REST requests.
    """

    name: str = "base"

    @abstractmethod
    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Row]:
        """
        Rows whose columns equal every value in filters.

        Args:
            table: Table name
            filters: Column -> value equality filters
            order_by: Column to sort by
            ascending: Sort direction

        Returns:
            Matching rows (possibly empty)
        """
        pass

    @abstractmethod
    async def get(self, table: str, record_id: str) -> Row:
        """Single row by id, RecordNotFoundError if absent"""
        pass

    @abstractmethod
    async def insert(self, table: str, values: Row) -> Row:
        """Insert one row and return it as stored"""
        pass

    @abstractmethod
    async def update(self, table: str, record_id: str, values: Row) -> Row:
        """Update one row by id and return it as stored"""
        pass

    @abstractmethod
    async def delete(self, table: str, record_id: str) -> None:
        """Delete one row by id (missing rows are not an error)"""
        pass

    async def close(self) -> None:
        """Release connections held by the adapter"""
        return None

    def _check_table(self, table: str) -> None:
        if table not in TABLES:
            raise StoreError(f"Unknown table: {table}", table=table)
