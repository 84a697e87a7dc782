"""Adapters that supply activity events for a child over a time window."""
from __future__ import annotations

import logging
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Protocol
from uuid import uuid4

from .clock import ensure_aware, utc_isoformat
from .db import insert_activity_event, list_activity_events
from .schemas import ActivityCategory, ActivityEvent
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

ACTIVITY_TABLE = "simple_activities"


class EventStore(Protocol):
    async def fetch_events(
        self,
        child_id: str,
        category: Optional[ActivityCategory],
        start: datetime,
        end: datetime,
    ) -> List[ActivityEvent]:
        """Return events with ``start <= started_at <= end`` ordered by start time."""
        ...

    async def save(self, event: ActivityEvent) -> ActivityEvent:
        ...


def event_from_row(row: Dict[str, Any]) -> ActivityEvent:
    return ActivityEvent(
        id=str(row["id"]) if row.get("id") is not None else None,
        child_id=str(row["child_id"]),
        category=row.get("activity_type") or row.get("category"),
        subtype=row.get("activity_subtype") or row.get("subtype"),
        started_at=row["started_at"],
        ended_at=row.get("ended_at"),
        duration_minutes=row.get("duration_minutes"),
        amount_ml=row.get("amount_ml"),
        notes=row.get("notes"),
    )


def event_to_row(event: ActivityEvent) -> Dict[str, Any]:
    return {
        "id": event.id,
        "child_id": event.child_id,
        "activity_type": event.category.value,
        "activity_subtype": event.subtype,
        "started_at": utc_isoformat(event.started_at),
        "ended_at": utc_isoformat(event.ended_at) if event.ended_at else None,
        "duration_minutes": event.duration_minutes,
        "amount_ml": event.amount_ml,
        "notes": event.notes,
    }


class InMemoryEventStore:
    """Event list held in memory; used by tests and offline tooling."""

    def __init__(self, events: Optional[Iterable[ActivityEvent]] = None) -> None:
        self._events: List[ActivityEvent] = list(events or [])

    def add(self, event: ActivityEvent) -> ActivityEvent:
        self._events.append(event)
        return event

    async def save(self, event: ActivityEvent) -> ActivityEvent:
        if event.id is None:
            event = event.model_copy(update={"id": str(uuid4())})
        return self.add(event)

    async def fetch_events(
        self,
        child_id: str,
        category: Optional[ActivityCategory],
        start: datetime,
        end: datetime,
    ) -> List[ActivityEvent]:
        start, end = ensure_aware(start), ensure_aware(end)
        matches = [
            event
            for event in self._events
            if event.child_id == child_id
            and (category is None or event.category == category)
            and start <= event.started_at <= end
        ]
        return sorted(matches, key=lambda event: event.started_at)


class SqliteEventStore:
    async def fetch_events(
        self,
        child_id: str,
        category: Optional[ActivityCategory],
        start: datetime,
        end: datetime,
    ) -> List[ActivityEvent]:
        rows = list_activity_events(
            child_id,
            category.value if category else None,
            utc_isoformat(start),
            utc_isoformat(end),
        )
        return [event_from_row(row) for row in rows]

    async def save(self, event: ActivityEvent) -> ActivityEvent:
        return event_from_row(insert_activity_event(event_to_row(event)))


class SupabaseEventStore:
    """Reads and appends ``simple_activities`` rows through the PostgREST API."""

    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    async def fetch_events(
        self,
        child_id: str,
        category: Optional[ActivityCategory],
        start: datetime,
        end: datetime,
    ) -> List[ActivityEvent]:
        params: Dict[str, Any] = {
            "select": "*",
            "child_id": f"eq.{child_id}",
            "and": (
                f"(started_at.gte.{utc_isoformat(start)},"
                f"started_at.lte.{utc_isoformat(end)})"
            ),
            "order": "started_at.asc",
        }
        if category == ActivityCategory.NAPPY:
            params["activity_type"] = "in.(nappy,diaper)"
        elif category is not None:
            params["activity_type"] = f"eq.{category.value}"
        rows = await self.client.select(ACTIVITY_TABLE, params=params)
        logger.info(
            "activity events query",
            extra={"child_id": child_id, "category": category.value if category else None, "count": len(rows)},
        )
        return [event_from_row(row) for row in rows]

    async def save(self, event: ActivityEvent) -> ActivityEvent:
        row = {key: value for key, value in event_to_row(event).items() if value is not None}
        created = await self.client.insert(ACTIVITY_TABLE, row)
        return event_from_row(created[0]) if created else event
