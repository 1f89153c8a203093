from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UserTaskCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    task_type: str | None = Field(default=None, alias="taskType")
    due_date: str | None = Field(default=None, alias="dueDate")
    plant_id: Any = Field(default=None, alias="plantId")
    plant_name: str | None = Field(default=None, alias="plantName")


class UserTaskOut(BaseModel):
    id: int | str
    plant_id: Any = None
    plant_name: str | None = None
    task_type: str
    due_date: str
    created_at: str | None = None
