from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class UserPlantCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    plant_id: Any = Field(default=None, alias="plantId")
    plant_data: Any = Field(default=None, alias="plantData")
