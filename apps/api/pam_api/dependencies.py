"""FastAPI dependencies that pick the storage backend from configuration."""
from __future__ import annotations

from typing import Optional

from .checklist_store import ChecklistStore, SqliteChecklistStore, SupabaseChecklistStore
from .clock import SYSTEM_CLOCK, Clock
from .config import CONFIG
from .event_store import EventStore, SqliteEventStore, SupabaseEventStore
from .integrations import (
    CalendarEventCreator,
    NotificationScheduler,
    SupabaseCalendarQueue,
    SupabaseNotificationScheduler,
)
from .supabase import get_admin_client


def _use_supabase() -> bool:
    return CONFIG.event_backend == "supabase"


def get_event_store() -> EventStore:
    if _use_supabase():
        return SupabaseEventStore(get_admin_client())
    return SqliteEventStore()


def get_checklist_store() -> ChecklistStore:
    if _use_supabase():
        return SupabaseChecklistStore(get_admin_client())
    return SqliteChecklistStore()


def get_notifier() -> Optional[NotificationScheduler]:
    # Local SQLite deployments have nowhere to deliver reminders.
    if _use_supabase():
        return SupabaseNotificationScheduler(get_admin_client())
    return None


def get_calendar() -> Optional[CalendarEventCreator]:
    if _use_supabase():
        return SupabaseCalendarQueue(get_admin_client())
    return None


def get_clock() -> Clock:
    return SYSTEM_CLOCK
