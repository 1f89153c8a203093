from __future__ import annotations

from typing import Any, TypeVar

import pydantic
from fastapi import Request

from garden_gateway.errors import ValidationError
from garden_gateway.services.search_cache import SearchCache
from garden_gateway.services.species_client import SpeciesLookupClient
from garden_gateway.services.user_plants import UserPlantStore
from garden_gateway.services.user_tasks import UserTaskStore
from garden_gateway.services.weather_client import WeatherClient


INVALID_BODY_MESSAGE = "Invalid request body"

PayloadT = TypeVar("PayloadT", bound=pydantic.BaseModel)


def get_search_cache(request: Request) -> SearchCache:
    return request.app.state.search_cache


def get_species_client(request: Request) -> SpeciesLookupClient:
    return request.app.state.species_client


def get_weather_client(request: Request) -> WeatherClient:
    return request.app.state.weather_client


def get_plant_store(request: Request) -> UserPlantStore:
    return request.app.state.plant_store


def get_task_store(request: Request) -> UserTaskStore:
    return request.app.state.task_store


async def read_payload(request: Request, model: type[PayloadT]) -> PayloadT | None:
    """Decode the JSON body into `model` from inside the endpoint.

    Declaring the body as a parameter would make FastAPI decode it before the
    auth dependency runs. An empty body or a non-object body yields None.
    """
    if not (await request.body()).strip():
        return None
    try:
        data: Any = await request.json()
    except ValueError as exc:
        raise ValidationError(INVALID_BODY_MESSAGE) from exc
    if not isinstance(data, dict):
        return None
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as exc:
        raise ValidationError(INVALID_BODY_MESSAGE) from exc
