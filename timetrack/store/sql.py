"""
SQL Record Store
================

RecordStore backed by the SQLAlchemy tables in timetrack.db.

Timestamps are stored as naive UTC and come back timezone-aware (UTC).
Each call runs in its own short session; the session commits on success
and rolls back on any error.
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, ContextManager, Dict, List, Optional

from sqlalchemy import DateTime
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import models
from ..db.session import get_db_session
from .base import (
    RecordStore, Row, StoreError, RecordNotFoundError,
    TABLE_CASES, TABLE_TIME_LOGS, TABLE_ATTORNEYS, TABLE_PROFILES,
)

logger = logging.getLogger(__name__)

_MODELS = {
    TABLE_CASES: models.Case,
    TABLE_TIME_LOGS: models.TimeLog,
    TABLE_ATTORNEYS: models.Attorney,
    TABLE_PROFILES: models.Profile,
}


def _to_db_value(value: Any, is_datetime: bool = False) -> Any:
    if isinstance(value, Enum):
        return value.value
    if is_datetime and isinstance(value, str):
        value = datetime.fromisoformat(value)
    if isinstance(value, datetime) and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def _from_db_value(value: Any) -> Any:
    if isinstance(value, datetime) and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class SqlRecordStore(RecordStore):
    """Record store over SQLAlchemy sessions"""

    name = "sql"

    def __init__(self, session_factory: Callable[[], ContextManager[Session]] = get_db_session):
        self._session_factory = session_factory

    def _model(self, table: str):
        self._check_table(table)
        return _MODELS[table]

    @staticmethod
    def _column(model, name: str):
        column = model.__table__.columns.get(name)
        if column is None:
            raise StoreError(f"Unknown column {name!r} on {model.__tablename__}", table=model.__tablename__)
        return column

    def _prepare(self, model, values: Row) -> Dict[str, Any]:
        prepared = {}
        for key, value in values.items():
            column = self._column(model, key)
            try:
                prepared[key] = _to_db_value(value, isinstance(column.type, DateTime))
            except ValueError as e:
                raise StoreError(f"Invalid value for {key}: {value!r}", table=model.__tablename__) from e
        return prepared

    @staticmethod
    def _to_row(obj) -> Row:
        return {c.key: _from_db_value(getattr(obj, c.key)) for c in obj.__table__.columns}

    def _fail(self, action: str, table: str, exc: Exception) -> StoreError:
        logger.error(f"SQL store {action} on {table} failed: {exc}")
        return StoreError(f"Database error: {exc}", table=table)

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Row]:
        model = self._model(table)
        conditions = [
            self._column(model, key) == value
            for key, value in self._prepare(model, filters or {}).items()
        ]
        order_column = self._column(model, order_by) if order_by else None

        try:
            with self._session_factory() as db:
                query = db.query(model).filter(*conditions)
                if order_column is not None:
                    query = query.order_by(order_column.asc() if ascending else order_column.desc())
                return [self._to_row(obj) for obj in query.all()]
        except SQLAlchemyError as e:
            raise self._fail("select", table, e) from e

    async def get(self, table: str, record_id: str) -> Row:
        model = self._model(table)
        try:
            with self._session_factory() as db:
                obj = db.get(model, record_id)
                if obj is None:
                    raise RecordNotFoundError(table, record_id)
                return self._to_row(obj)
        except SQLAlchemyError as e:
            raise self._fail("get", table, e) from e

    async def insert(self, table: str, values: Row) -> Row:
        model = self._model(table)
        prepared = self._prepare(model, values)
        try:
            with self._session_factory() as db:
                obj = model(**prepared)
                db.add(obj)
                db.flush()
                return self._to_row(obj)
        except SQLAlchemyError as e:
            raise self._fail("insert", table, e) from e

    async def update(self, table: str, record_id: str, values: Row) -> Row:
        model = self._model(table)
        prepared = self._prepare(model, values)
        try:
            with self._session_factory() as db:
                obj = db.get(model, record_id)
                if obj is None:
                    raise RecordNotFoundError(table, record_id)
                for key, value in prepared.items():
                    setattr(obj, key, value)
                if "updated_at" in model.__table__.columns and "updated_at" not in prepared:
                    obj.updated_at = models.utcnow()
                db.flush()
                return self._to_row(obj)
        except SQLAlchemyError as e:
            raise self._fail("update", table, e) from e

    async def delete(self, table: str, record_id: str) -> None:
        model = self._model(table)
        try:
            with self._session_factory() as db:
                obj = db.get(model, record_id)
                if obj is not None:
                    db.delete(obj)
        except SQLAlchemyError as e:
            raise self._fail("delete", table, e) from e
