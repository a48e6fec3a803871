"""
PostgREST Record Store
======================

Async client for the hosted data service's REST interface (Supabase
/rest/v1). Equality filters become `col=eq.value`, ordering becomes
`order=col.asc|desc`, and writes ask for `Prefer: return=representation`
so inserted/updated rows come back in the response.
"""

import logging
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from .base import RecordStore, Row, StoreError, RecordNotFoundError

logger = logging.getLogger(__name__)


def _encode(value: Any) -> Any:
    """JSON-ready value for request bodies"""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def _filter_value(value: Any) -> str:
    if value is None:
        return "is.null"
    if isinstance(value, bool):
        return f"eq.{str(value).lower()}"
    return f"eq.{_encode(value)}"


class PostgrestRecordStore(RecordStore):
    """
    Record store over the Supabase REST API.

    Provides the same row dictionaries as the SQL adapter; timestamps arrive
    as ISO strings and are parsed by the pydantic record models.
    """

    name = "postgrest"

    def __init__(
        self,
        base_url: str,
        api_key: str,
        timeout: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create async HTTP client"""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=f"{self.base_url}/rest/v1",
                timeout=self.timeout,
                transport=self._transport,
                headers={
                    "apikey": self.api_key,
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
            )
        return self._client

    async def close(self):
        """Close the HTTP client"""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        table: str,
        params: Optional[Dict[str, str]] = None,
        json: Any = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        self._check_table(table)
        try:
            client = await self._get_client()
            response = await client.request(method, f"/{table}", params=params, json=json, headers=headers)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            detail = e.response.text[:500]
            logger.error(f"Record store {method} {table} returned {e.response.status_code}: {detail}")
            raise StoreError(f"Record store error {e.response.status_code}: {detail}", table=table) from e
        except httpx.RequestError as e:
            logger.error(f"Record store {method} {table} failed: {e}")
            raise StoreError(f"Record store unreachable: {e}", table=table) from e

        if not response.content:
            return None
        return response.json()

    async def select(
        self,
        table: str,
        filters: Optional[Dict[str, Any]] = None,
        order_by: Optional[str] = None,
        ascending: bool = True,
    ) -> List[Row]:
        params = {"select": "*"}
        for key, value in (filters or {}).items():
            params[key] = _filter_value(value)
        if order_by:
            params["order"] = f"{order_by}.{'asc' if ascending else 'desc'}"

        data = await self._request("GET", table, params=params)
        return list(data or [])

    async def get(self, table: str, record_id: str) -> Row:
        rows = await self._request(
            "GET", table, params={"select": "*", "id": _filter_value(record_id), "limit": "1"}
        )
        if not rows:
            raise RecordNotFoundError(table, record_id)
        return rows[0]

    async def insert(self, table: str, values: Row) -> Row:
        payload = {k: _encode(v) for k, v in values.items()}
        rows = await self._request(
            "POST", table, json=[payload], headers={"Prefer": "return=representation"}
        )
        if not rows:
            raise StoreError(f"Insert into {table} returned no row", table=table)
        return rows[0]

    async def update(self, table: str, record_id: str, values: Row) -> Row:
        payload = {k: _encode(v) for k, v in values.items()}
        rows = await self._request(
            "PATCH",
            table,
            params={"id": _filter_value(record_id)},
            json=payload,
            headers={"Prefer": "return=representation"},
        )
        if not rows:
            raise RecordNotFoundError(table, record_id)
        return rows[0]

    async def delete(self, table: str, record_id: str) -> None:
        await self._request("DELETE", table, params={"id": _filter_value(record_id)})
