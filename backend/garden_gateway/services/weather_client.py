from __future__ import annotations

import asyncio
from typing import Any

import httpx
import structlog

from garden_gateway.errors import UpstreamError, UpstreamTimeout


logger = structlog.get_logger(__name__)

MAX_DAILY_ENTRIES = 7


class WeatherClient:
    """OpenWeather One Call 3.0 in metric units."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.openweathermap.org/data/3.0",
        timeout_seconds: float = 2.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def forecast(self, lat: str, lon: str) -> dict[str, Any]:
        try:
            payload = await asyncio.wait_for(self._fetch(lat, lon), timeout=self.timeout_seconds)
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            logger.warning("weather_timeout", lat=lat, lon=lon, timeout=self.timeout_seconds)
            raise UpstreamTimeout(f"weather lookup exceeded {self.timeout_seconds}s") from exc
        except httpx.HTTPError as exc:
            logger.error("weather_transport_error", lat=lat, lon=lon, error=type(exc).__name__)
            raise UpstreamError(f"weather transport failure: {type(exc).__name__}") from exc

        if not isinstance(payload, dict):
            raise UpstreamError("weather payload is not an object")
        daily = payload.get("daily")
        if not isinstance(daily, list):
            daily = []
        return {"current": payload.get("current"), "daily": daily[:MAX_DAILY_ENTRIES]}

    async def _fetch(self, lat: str, lon: str) -> Any:
        async with httpx.AsyncClient(transport=self._transport, timeout=self.timeout_seconds) as client:
            response = await client.get(
                f"{self.base_url}/onecall",
                params={"lat": lat, "lon": lon, "appid": self.api_key, "units": "metric"},
            )
        if response.status_code >= 400:
            logger.error(
                "weather_bad_status",
                lat=lat,
                lon=lon,
                status_code=response.status_code,
                body=response.text[:500],
            )
            raise UpstreamError(f"weather lookup returned {response.status_code}")
        try:
            return response.json()
        except ValueError as exc:
            raise UpstreamError("weather lookup returned an undecodable body") from exc
