from __future__ import annotations

from typing import Any

from garden_gateway.services.data_store import SupabaseDataStore


TABLE = "user_plants"


class UserPlantStore:
    def __init__(self, store: SupabaseDataStore) -> None:
        self.store = store

    async def list_for_user(self, user_id: str) -> list[Any]:
        rows = await self.store.select(TABLE, ["plant_data"], {"user_id": user_id})
        return [row.get("plant_data") for row in rows]

    async def add(self, user_id: str, plant_id: Any, plant_data: Any) -> None:
        await self.store.insert(TABLE, [{"user_id": user_id, "plant_id": plant_id, "plant_data": plant_data}])

    async def remove(self, user_id: str, plant_id: str) -> None:
        await self.store.delete(TABLE, {"user_id": user_id, "plant_id": plant_id})
