from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Request

from garden_gateway.auth import get_current_user_id
from garden_gateway.dependencies import get_task_store, read_payload
from garden_gateway.errors import ValidationError
from garden_gateway.schemas.common import MessageOut
from garden_gateway.schemas.task import UserTaskCreate, UserTaskOut
from garden_gateway.services.user_tasks import UserTaskStore


router = APIRouter()


@router.get("", response_model=list[UserTaskOut])
async def list_user_tasks(
    user_id: str = Depends(get_current_user_id),
    tasks: UserTaskStore = Depends(get_task_store),
) -> list[dict[str, Any]]:
    return await tasks.list_for_user(user_id)


@router.post("", response_model=MessageOut)
async def create_user_task(
    request: Request,
    user_id: str = Depends(get_current_user_id),
    tasks: UserTaskStore = Depends(get_task_store),
) -> MessageOut:
    payload = await read_payload(request, UserTaskCreate)
    if payload is None or not payload.task_type or not payload.due_date:
        raise ValidationError("taskType & dueDate required")
    # Free-text tasks are allowed, so the plant reference stays optional.
    await tasks.create(
        user_id,
        task_type=payload.task_type,
        due_date=payload.due_date,
        plant_id=payload.plant_id,
        plant_name=payload.plant_name,
    )
    return MessageOut(msg="Task created")


@router.delete("/{task_id}", response_model=MessageOut)
async def delete_user_task(
    task_id: str,
    user_id: str = Depends(get_current_user_id),
    tasks: UserTaskStore = Depends(get_task_store),
) -> MessageOut:
    await tasks.delete(user_id, task_id)
    return MessageOut(msg="Task removed")
