"""Persistence for materialized checklist items."""
from __future__ import annotations

import sqlite3
from datetime import datetime
from typing import Any, Dict, List, Optional, Protocol, Sequence, Set

from fastapi import HTTPException

from .clock import utc_isoformat
from .db import (
    delete_checklist_rows,
    insert_checklist_rows,
    list_checklist_ids,
    list_checklist_rows,
    update_checklist_completion,
)
from .schemas import ChecklistItem
from .supabase import SupabaseClient

CHECKLIST_TABLE = "checklist_items"


class DuplicateChecklistItemError(Exception):
    """Raised when an insert collides with an id that is already stored."""


class ChecklistStore(Protocol):
    async def list_existing_ids(self, child_id: str) -> Set[str]:
        ...

    async def insert_many(self, items: Sequence[ChecklistItem]) -> None:
        ...

    async def list_items(self, child_id: str) -> List[ChecklistItem]:
        ...

    async def set_completed(self, item_id: str, completed: bool, completed_at: Optional[datetime]) -> ChecklistItem:
        ...

    async def delete_for_child(self, child_id: str) -> int:
        ...


def item_to_row(item: ChecklistItem) -> Dict[str, Any]:
    return {
        "id": item.id,
        "child_id": item.child_id,
        "title": item.title,
        "description": item.description,
        "due_date": item.due_date.isoformat(),
        "category": item.category.value,
        "priority": item.priority.value,
        "is_completed": item.is_completed,
        "completed_at": utc_isoformat(item.completed_at) if item.completed_at else None,
        "metadata": item.metadata.model_dump(exclude_none=True),
    }


def item_from_row(row: Dict[str, Any]) -> ChecklistItem:
    return ChecklistItem.model_validate(
        {
            **row,
            "completed_at": row.get("completed_at") or row.get("completed_date"),
            "metadata": row.get("metadata") or {},
        }
    )


class InMemoryChecklistStore:
    """Dict-backed store with the same uniqueness rule as the database tables."""

    def __init__(self) -> None:
        self.items: Dict[str, ChecklistItem] = {}
        self.insert_calls = 0

    async def list_existing_ids(self, child_id: str) -> Set[str]:
        return {item_id for item_id, item in self.items.items() if item.child_id == child_id}

    async def insert_many(self, items: Sequence[ChecklistItem]) -> None:
        self.insert_calls += 1
        ids = [item.id for item in items]
        collisions = [item_id for item_id in ids if item_id in self.items]
        if collisions or len(set(ids)) != len(ids):
            raise DuplicateChecklistItemError(f"Duplicate checklist ids: {collisions or ids}")
        for item in items:
            self.items[item.id] = item

    async def list_items(self, child_id: str) -> List[ChecklistItem]:
        matches = [item for item in self.items.values() if item.child_id == child_id]
        return sorted(matches, key=lambda item: (item.due_date, item.id))

    async def set_completed(self, item_id: str, completed: bool, completed_at: Optional[datetime]) -> ChecklistItem:
        if item_id not in self.items:
            raise ValueError(f"Checklist item {item_id} not found")
        updated = self.items[item_id].model_copy(
            update={"is_completed": completed, "completed_at": completed_at if completed else None}
        )
        self.items[item_id] = updated
        return updated

    async def delete_for_child(self, child_id: str) -> int:
        doomed = [item_id for item_id, item in self.items.items() if item.child_id == child_id]
        for item_id in doomed:
            del self.items[item_id]
        return len(doomed)


class SqliteChecklistStore:
    async def list_existing_ids(self, child_id: str) -> Set[str]:
        return list_checklist_ids(child_id)

    async def insert_many(self, items: Sequence[ChecklistItem]) -> None:
        if not items:
            return
        try:
            insert_checklist_rows([item_to_row(item) for item in items])
        except sqlite3.IntegrityError as exc:
            raise DuplicateChecklistItemError(str(exc)) from exc

    async def list_items(self, child_id: str) -> List[ChecklistItem]:
        return [item_from_row(row) for row in list_checklist_rows(child_id)]

    async def set_completed(self, item_id: str, completed: bool, completed_at: Optional[datetime]) -> ChecklistItem:
        stamp = utc_isoformat(completed_at) if completed and completed_at else None
        return item_from_row(update_checklist_completion(item_id, completed, stamp))

    async def delete_for_child(self, child_id: str) -> int:
        return delete_checklist_rows(child_id)


class SupabaseChecklistStore:
    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    async def list_existing_ids(self, child_id: str) -> Set[str]:
        rows = await self.client.select(CHECKLIST_TABLE, params={"select": "id", "child_id": f"eq.{child_id}"})
        return {row["id"] for row in rows}

    async def insert_many(self, items: Sequence[ChecklistItem]) -> None:
        if not items:
            return
        try:
            await self.client.insert(CHECKLIST_TABLE, [item_to_row(item) for item in items])
        except HTTPException as exc:
            # PostgREST reports unique_violation as 409.
            if exc.status_code == 409:
                raise DuplicateChecklistItemError(str(exc.detail)) from exc
            raise

    async def list_items(self, child_id: str) -> List[ChecklistItem]:
        rows = await self.client.select(
            CHECKLIST_TABLE,
            params={"select": "*", "child_id": f"eq.{child_id}", "order": "due_date.asc"},
        )
        return [item_from_row(row) for row in rows]

    async def set_completed(self, item_id: str, completed: bool, completed_at: Optional[datetime]) -> ChecklistItem:
        rows = await self.client.update(
            CHECKLIST_TABLE,
            {
                "is_completed": completed,
                "completed_at": utc_isoformat(completed_at) if completed and completed_at else None,
            },
            params={"id": f"eq.{item_id}"},
        )
        if not rows:
            raise ValueError(f"Checklist item {item_id} not found")
        return item_from_row(rows[0])

    async def delete_for_child(self, child_id: str) -> int:
        existing = await self.list_existing_ids(child_id)
        await self.client.delete(CHECKLIST_TABLE, params={"child_id": f"eq.{child_id}"})
        return len(existing)
