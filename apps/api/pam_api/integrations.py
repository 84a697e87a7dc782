"""Best-effort reminder and calendar fan-out for generated checklist items."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta
from typing import Any, Awaitable, Dict, List, Optional, Protocol, Sequence, Tuple

from .schemas import ChecklistItem
from .supabase import SupabaseClient

logger = logging.getLogger(__name__)

CALENDAR_COLORS = {
    "immunisation": "11",
    "registration": "9",
    "milestone": "10",
    "checkup": "5",
}


class NotificationScheduler(Protocol):
    async def schedule(self, item_id: str, user_id: str, title: str, body: str, due_date: date) -> None:
        ...


class CalendarEventCreator(Protocol):
    async def create_event(self, item: ChecklistItem, user_id: str, child_name: str) -> None:
        ...


@dataclass
class CalendarSettings:
    default_event_duration: int = 60
    reminder_minutes_before: List[int] = field(default_factory=lambda: [1440, 60])
    include_categories: Tuple[str, ...] = ("immunisation", "registration", "milestone", "checkup")


def build_calendar_event(item: ChecklistItem, child_name: str, settings: CalendarSettings) -> Dict[str, Any]:
    """Shape a checklist item as a calendar event starting at 09:00 on its due date."""
    start = datetime.combine(item.due_date, time(9, 0))
    end = start + timedelta(minutes=settings.default_event_duration)
    description = "\n".join(
        [
            item.description,
            "",
            f"Category: {item.category.value}",
            f"Child: {child_name}",
            "",
            f"Checklist Item ID: {item.id}",
        ]
    )
    return {
        "summary": f"{item.title} - {child_name}",
        "description": description,
        "start": {"dateTime": start.isoformat()},
        "end": {"dateTime": end.isoformat()},
        "colorId": CALENDAR_COLORS.get(item.category.value),
        "reminders": {
            "useDefault": False,
            "overrides": [{"method": "popup", "minutes": minutes} for minutes in settings.reminder_minutes_before],
        },
    }


class SupabaseNotificationScheduler:
    def __init__(self, client: SupabaseClient) -> None:
        self.client = client

    async def schedule(self, item_id: str, user_id: str, title: str, body: str, due_date: date) -> None:
        await self.client.rpc(
            "schedule_checklist_notification",
            {
                "p_checklist_item_id": item_id,
                "p_user_id": user_id,
                "p_title": title,
                "p_body": body,
                "p_due_date": due_date.isoformat(),
            },
        )


class SupabaseCalendarQueue:
    """Queues calendar events for the sync worker that owns provider credentials."""

    def __init__(self, client: SupabaseClient, settings: Optional[CalendarSettings] = None) -> None:
        self.client = client
        self.settings = settings or CalendarSettings()

    async def create_event(self, item: ChecklistItem, user_id: str, child_name: str) -> None:
        if item.category.value not in self.settings.include_categories:
            return
        await self.client.insert(
            "calendar_events",
            {
                "user_id": user_id,
                "checklist_item_id": item.id,
                "event_payload": build_calendar_event(item, child_name, self.settings),
                "is_synced": False,
            },
        )


async def schedule_checklist_integrations(
    items: Sequence[ChecklistItem],
    *,
    user_id: str,
    child_name: str,
    notifier: Optional[NotificationScheduler] = None,
    calendar: Optional[CalendarEventCreator] = None,
) -> int:
    """Run every reminder/calendar call concurrently and return how many failed.

    Individual failures are logged and never raised, so checklist generation
    succeeds regardless of downstream availability.
    """
    labels: List[Tuple[str, str]] = []
    calls: List[Awaitable[None]] = []
    for item in items:
        if notifier is not None:
            labels.append((item.id, "notification"))
            calls.append(
                notifier.schedule(
                    item.id,
                    user_id,
                    f"PAM Reminder: {item.title}",
                    f"Don't forget: {item.description}",
                    item.due_date,
                )
            )
        if calendar is not None:
            labels.append((item.id, "calendar"))
            calls.append(calendar.create_event(item, user_id, child_name))

    if not calls:
        return 0

    results = await asyncio.gather(*calls, return_exceptions=True)
    failures = 0
    for (item_id, kind), result in zip(labels, results):
        if isinstance(result, Exception):
            failures += 1
            logger.warning(
                "checklist integration failed",
                extra={"item_id": item_id, "integration": kind, "error": repr(result)},
            )
    return failures
