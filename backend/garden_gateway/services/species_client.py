from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from garden_gateway.errors import UpstreamError, UpstreamTimeout


logger = structlog.get_logger(__name__)

# An IPv4 local address restricts connects to A records.
IPV4_LOCAL_ADDRESS = "0.0.0.0"


def normalize_species(record: dict[str, Any]) -> dict[str, Any]:
    scientific_name = record.get("scientific_name")
    return {
        "id": record.get("id"),
        "common_name": record.get("common_name") or scientific_name,
        "scientific_name": scientific_name,
        "image_url": record.get("image_url") or None,
        "family": record.get("family") or "",
    }


class SpeciesLookupClient:
    def __init__(
        self,
        api_token: str,
        base_url: str = "https://trefle.io/api/v1",
        timeout_seconds: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_token = api_token
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    def _make_transport(self) -> httpx.AsyncBaseTransport:
        if self._transport is not None:
            return self._transport
        return httpx.AsyncHTTPTransport(local_address=IPV4_LOCAL_ADDRESS)

    async def search(self, raw_query: str) -> list[dict[str, Any]]:
        try:
            payload = await asyncio.wait_for(self._fetch(raw_query), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("species_lookup_timeout", query=raw_query, timeout=self.timeout_seconds)
            raise UpstreamTimeout(f"species lookup exceeded {self.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            logger.error("species_lookup_transport_error", query=raw_query, error=type(exc).__name__)
            raise UpstreamError(f"species lookup transport failure: {type(exc).__name__}") from exc

        species = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(species, list):
            return []
        return [normalize_species(item) for item in species if isinstance(item, dict)]

    async def _fetch(self, raw_query: str) -> Any:
        async with httpx.AsyncClient(transport=self._make_transport(), timeout=self.timeout_seconds) as client:
            response = await client.get(
                f"{self.base_url}/species/search",
                params={"token": self.api_token, "q": raw_query},
                headers={"Accept": "application/json"},
            )
        if response.status_code >= 400:
            logger.error(
                "species_lookup_bad_status",
                query=raw_query,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UpstreamError(f"species lookup returned {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("species lookup returned an undecodable body") from exc
