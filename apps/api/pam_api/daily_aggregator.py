"""Fold raw activity events into one summary per calendar day."""
from __future__ import annotations

from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from .event_store import EventStore
from .schemas import ActivityCategory, ActivityEvent, DailyAnalytics


def aggregate_daily(events: Iterable[ActivityEvent]) -> List[DailyAnalytics]:
    """Return one record per date that has at least one event, oldest first."""

    days: Dict[date, DailyAnalytics] = {}
    for event in events:
        day = event.started_at.date()
        stats = days.get(day)
        if stats is None:
            stats = days[day] = DailyAnalytics(date=day)

        minutes = event.minutes or 0
        if event.category == ActivityCategory.FEEDING:
            stats.feeding_count += 1
            stats.feeding_total_minutes += minutes
            stats.feeding_total_ml += event.amount_ml or 0
        elif event.category == ActivityCategory.SLEEP:
            stats.sleep_count += 1
            stats.sleep_total_minutes += minutes
        elif event.category == ActivityCategory.NAPPY:
            stats.nappy_count += 1
            if event.subtype == "wet":
                stats.wet_nappies += 1
            else:
                stats.dirty_nappies += 1
        elif event.category == ActivityCategory.TUMMY_TIME:
            stats.tummy_time_minutes += minutes

    return [days[key] for key in sorted(days)]


async def get_daily_analytics(
    store: EventStore,
    child_id: str,
    start: datetime,
    end: datetime,
    category: Optional[ActivityCategory] = None,
) -> List[DailyAnalytics]:
    events = await store.fetch_events(child_id, category, start, end)
    return aggregate_daily(events)
