from __future__ import annotations

import asyncio
from typing import Any, Mapping, Sequence

import httpx
import structlog

from garden_gateway.errors import PersistenceError


logger = structlog.get_logger(__name__)


def _eq_params(filters: Mapping[str, Any]) -> dict[str, str]:
    return {column: f"eq.{value}" for column, value in filters.items()}


class SupabaseDataStore:
    """Minimal PostgREST client authenticated with the service role key.

    Only equality filters are supported. Deletes refuse to run without a
    filter so a caller can never wipe a table.
    """

    def __init__(
        self,
        base_url: str,
        service_key: str,
        timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self.service_key = service_key
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self, extra: Mapping[str, str] | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.service_key,
            "Authorization": f"Bearer {self.service_key}",
            "Accept": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None = None,
        json: Any = None,
        headers: Mapping[str, str] | None = None,
    ) -> httpx.Response:
        try:
            response = await asyncio.wait_for(
                self._send(method, table, params=params, json=json, headers=headers),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError as exc:
            logger.error("data_store_timeout", table=table, method=method, timeout=self.timeout_seconds)
            raise PersistenceError(f"{method} {table} exceeded {self.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            logger.error("data_store_transport_error", table=table, method=method, error=repr(exc))
            raise PersistenceError(f"{method} {table} failed: {type(exc).__name__}") from exc

        if response.status_code >= 400:
            logger.error(
                "data_store_error",
                table=table,
                method=method,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise PersistenceError(f"{method} {table} returned {response.status_code}")
        return response

    async def _send(
        self,
        method: str,
        table: str,
        *,
        params: Mapping[str, str] | None,
        json: Any,
        headers: Mapping[str, str] | None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_seconds) as client:
            return await client.request(
                method,
                f"{self.rest_url}/{table}",
                params=params,
                json=json,
                headers=self._headers(headers),
            )

    async def select(
        self,
        table: str,
        columns: Sequence[str],
        filters: Mapping[str, Any],
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        params = {"select": ",".join(columns), **_eq_params(filters)}
        if order:
            params["order"] = order
        response = await self._request("GET", table, params=params)
        try:
            rows = response.json()
        except ValueError as exc:
            raise PersistenceError(f"GET {table} returned an undecodable body") from exc
        if not isinstance(rows, list):
            raise PersistenceError(f"GET {table} returned {type(rows).__name__}, expected a list")
        return rows

    async def insert(self, table: str, rows: Sequence[Mapping[str, Any]]) -> None:
        await self._request("POST", table, json=list(rows), headers={"Prefer": "return=minimal"})

    async def delete(self, table: str, filters: Mapping[str, Any]) -> None:
        if not filters:
            raise ValueError("delete requires at least one filter")
        await self._request("DELETE", table, params=_eq_params(filters), headers={"Prefer": "return=minimal"})
