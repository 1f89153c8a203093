from __future__ import annotations

from pydantic import BaseModel


class SpeciesOut(BaseModel):
    id: int | str | None = None
    common_name: str | None = None
    scientific_name: str | None = None
    image_url: str | None = None
    family: str = ""
