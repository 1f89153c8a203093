from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from garden_gateway.auth import get_current_user_id
from garden_gateway.dependencies import get_weather_client
from garden_gateway.errors import UpstreamError, ValidationError
from garden_gateway.schemas.weather import WeatherOut
from garden_gateway.services.weather_client import WeatherClient


router = APIRouter(dependencies=[Depends(get_current_user_id)])


@router.get("", response_model=WeatherOut)
async def get_weather(
    lat: str | None = Query(default=None),
    lon: str | None = Query(default=None),
    weather: WeatherClient = Depends(get_weather_client),
) -> dict[str, Any]:
    if not lat or not lon:
        raise ValidationError("lat & lon query required")
    try:
        return await weather.forecast(lat, lon)
    except UpstreamError as exc:
        exc.public_message = "Weather fetch failed"
        raise
