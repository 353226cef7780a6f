from __future__ import annotations

from typing import Any

from app.infra.storage_gateway import EntityKind, StorageGateway


def get_progress(gateway: StorageGateway, user_id: str) -> list[dict[str, Any]]:
    rows = gateway.query(EntityKind.PROGRESS, filters={"user_id": str(user_id)}, order=["lesson_id"])
    return [{"lesson_id": r["lesson_id"], "completed": bool(r.get("completed"))} for r in rows]


def set_progress(gateway: StorageGateway, *, user_id: str, lesson_id: int, completed: bool) -> None:
    """One row per (user, lesson); the latest call wins."""
    gateway.upsert(
        EntityKind.PROGRESS,
        {"user_id": str(user_id), "lesson_id": int(lesson_id), "completed": bool(completed)},
        key=("user_id", "lesson_id"),
    )
