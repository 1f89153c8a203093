from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class WeatherOut(BaseModel):
    current: dict[str, Any] | None = None
    daily: list[dict[str, Any]] = Field(default_factory=list)
