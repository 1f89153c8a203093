from __future__ import annotations

from typing import Any

from garden_gateway.services.data_store import SupabaseDataStore


TABLE = "user_tasks"
TASK_COLUMNS = ["id", "plant_id", "plant_name", "task_type", "due_date", "created_at"]


class UserTaskStore:
    def __init__(self, store: SupabaseDataStore) -> None:
        self.store = store

    async def list_for_user(self, user_id: str) -> list[dict[str, Any]]:
        return await self.store.select(TABLE, TASK_COLUMNS, {"user_id": user_id}, order="due_date.asc")

    async def create(
        self,
        user_id: str,
        task_type: str,
        due_date: str,
        plant_id: Any = None,
        plant_name: str | None = None,
    ) -> None:
        await self.store.insert(
            TABLE,
            [
                {
                    "user_id": user_id,
                    "plant_id": plant_id or None,
                    "plant_name": plant_name or None,
                    "task_type": task_type,
                    "due_date": due_date,
                }
            ],
        )

    async def delete(self, user_id: str, task_id: str) -> None:
        await self.store.delete(TABLE, {"user_id": user_id, "id": task_id})
