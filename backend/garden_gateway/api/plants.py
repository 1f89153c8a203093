from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from garden_gateway.auth import get_current_user_id
from garden_gateway.dependencies import get_plant_store, read_payload
from garden_gateway.errors import ValidationError
from garden_gateway.schemas.common import MessageOut
from garden_gateway.schemas.plant import UserPlantCreate
from garden_gateway.services.user_plants import UserPlantStore


router = APIRouter()


@router.get("")
async def list_user_plants(
    user_id: str = Depends(get_current_user_id),
    plants: UserPlantStore = Depends(get_plant_store),
) -> list[Any]:
    return await plants.list_for_user(user_id)


@router.post("", response_model=MessageOut)
async def add_user_plant(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    plants: UserPlantStore = Depends(get_plant_store),
) -> MessageOut:
    payload = await read_payload(request, UserPlantCreate)
    if payload is None or not payload.plant_id or not payload.plant_data:
        raise ValidationError("plantId & plantData required")
    await plants.add(user_id, payload.plant_id, payload.plant_data)
    return MessageOut(msg="Added")


@router.delete("/{plant_id}", response_model=MessageOut)
async def remove_user_plant(
    plant_id: str,
    user_id: str = Depends(get_current_user_id),
    plants: UserPlantStore = Depends(get_plant_store),
) -> MessageOut:
    await plants.remove(user_id, plant_id)
    return MessageOut(msg="Removed")
