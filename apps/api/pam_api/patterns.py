"""Multi-day pattern statistics for sleep, feeding and nappy events.

Every analyzer works on the raw events of a single category and returns a
zero-valued pattern when fewer than ``MIN_PATTERN_EVENTS`` events are present;
callers read ``sample_count`` to tell "still building" apart from a real zero.
"""
from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from .clock import SYSTEM_CLOCK, Clock
from .event_store import EventStore
from .schemas import ActivityCategory, ActivityEvent, FeedingPattern, NappyPattern, SleepPattern

MIN_PATTERN_EVENTS = 5
MINUTES_PER_DAY = 24 * 60


def _of_category(events: Iterable[ActivityEvent], category: ActivityCategory) -> List[ActivityEvent]:
    return sorted((e for e in events if e.category == category), key=lambda e: e.started_at)


def _distinct_days(events: Sequence[ActivityEvent]) -> int:
    return len({event.started_at.date() for event in events})


def _gaps_minutes(events: Sequence[ActivityEvent]) -> List[float]:
    return [
        (current.started_at - previous.started_at).total_seconds() / 60
        for previous, current in zip(events, events[1:])
    ]


def _top_hours(events: Sequence[ActivityEvent], limit: int) -> List[int]:
    # Counter.most_common keeps first-seen order for ties.
    counts = Counter(event.started_at.hour for event in events)
    return [hour for hour, _ in counts.most_common(limit)]


def is_night_hour(hour: int) -> bool:
    return hour >= 18 or hour <= 6


def fold_evening_hour(hour: float) -> float:
    """Shift early-morning hours past midnight so 23:00 and 01:00 average to 00:00."""
    return hour + 24 if hour < 12 else hour


def fold_morning_hour(hour: float) -> float:
    """Shift late-evening wake hours before midnight so 23:00 and 05:00 average to 02:00."""
    return hour - 24 if hour > 12 else hour


def format_clock(hour: float) -> str:
    whole = int(hour) % 24
    minutes = round((hour % 1) * 60)
    if minutes == 60:
        whole, minutes = (whole + 1) % 24, 0
    return f"{whole}:{minutes:02d}"


def analyze_sleep(events: Iterable[ActivityEvent]) -> SleepPattern:
    sessions = _of_category(events, ActivityCategory.SLEEP)
    if len(sessions) < MIN_PATTERN_EVENTS:
        return SleepPattern()

    durations = [session.minutes or 0 for session in sessions]
    total_minutes = sum(durations)
    days = _distinct_days(sessions)
    total_per_day = total_minutes / days

    night_sessions = [s for s in sessions if is_night_hour(s.started_at.hour)]
    night_minutes = sum(s.minutes or 0 for s in night_sessions)
    night_start = None
    morning_wake = None
    if night_sessions:
        folded = [fold_evening_hour(s.started_at.hour) for s in night_sessions]
        night_start = format_clock((sum(folded) / len(folded)) % 24)
        wake_hours = [
            fold_morning_hour(s.ended_at.hour) for s in night_sessions if s.ended_at is not None
        ]
        if wake_hours:
            morning_wake = format_clock((sum(wake_hours) / len(wake_hours)) % 24)

    return SleepPattern(
        sample_count=len(sessions),
        average_sleep_duration=round(total_minutes / len(sessions)),
        average_naps_per_day=round(len(sessions) / days, 1),
        longest_sleep_stretch=max(durations),
        total_sleep_per_day=round(total_per_day),
        average_night_sleep=round(night_minutes / days),
        average_day_sleep=round((total_minutes - night_minutes) / days),
        night_sleep_start=night_start,
        morning_wake_time=morning_wake,
        sleep_efficiency=round(total_per_day / MINUTES_PER_DAY * 100),
    )


def analyze_feeding(events: Iterable[ActivityEvent]) -> FeedingPattern:
    feeds = _of_category(events, ActivityCategory.FEEDING)
    if len(feeds) < MIN_PATTERN_EVENTS:
        return FeedingPattern()

    intervals = _gaps_minutes(feeds)
    durations = [feed.minutes for feed in feeds if feed.minutes]
    amounts = [feed.amount_ml for feed in feeds if feed.amount_ml]
    breast = sum(1 for feed in feeds if feed.subtype == "breast")
    bottle = sum(1 for feed in feeds if feed.subtype == "bottle")
    ratio = breast / bottle if bottle else float(breast)

    return FeedingPattern(
        sample_count=len(feeds),
        average_feeding_interval=round(sum(intervals) / len(intervals)) if intervals else 0,
        average_feeding_duration=round(sum(durations) / len(durations)) if durations else 0,
        average_bottle_amount=round(sum(amounts) / len(amounts)) if amounts else 0,
        feedings_per_day=round(len(feeds) / _distinct_days(feeds), 1),
        preferred_feeding_times=[f"{hour}:00" for hour in _top_hours(feeds, 3)],
        breast_vs_bottle_ratio=round(ratio, 2),
    )


def analyze_nappy(events: Iterable[ActivityEvent]) -> NappyPattern:
    changes = _of_category(events, ActivityCategory.NAPPY)
    if len(changes) < MIN_PATTERN_EVENTS:
        return NappyPattern()

    wet = sum(1 for change in changes if change.subtype == "wet")
    dirty = sum(1 for change in changes if change.subtype == "dirty")
    ratio = wet / dirty if dirty else float(wet)
    gaps = _gaps_minutes(changes)

    return NappyPattern(
        sample_count=len(changes),
        average_nappies_per_day=round(len(changes) / _distinct_days(changes), 1),
        wet_vs_dirty_ratio=round(ratio, 1),
        longest_dry_stretch=round(max(gaps) / 60, 1) if gaps else 0,
        typical_change_hours=[f"{hour}:00" for hour in sorted(_top_hours(changes, 4))],
    )


def trailing_window(clock: Clock, days: int) -> tuple[datetime, datetime]:
    end = clock.now()
    return end - timedelta(days=days), end


async def _fetch_category(
    store: EventStore,
    child_id: str,
    category: ActivityCategory,
    days: int,
    clock: Optional[Clock],
) -> List[ActivityEvent]:
    start, end = trailing_window(clock or SYSTEM_CLOCK, days)
    return await store.fetch_events(child_id, category, start, end)


async def fetch_sleep_pattern(
    store: EventStore, child_id: str, days: int = 7, clock: Optional[Clock] = None
) -> SleepPattern:
    return analyze_sleep(await _fetch_category(store, child_id, ActivityCategory.SLEEP, days, clock))


async def fetch_feeding_pattern(
    store: EventStore, child_id: str, days: int = 7, clock: Optional[Clock] = None
) -> FeedingPattern:
    return analyze_feeding(await _fetch_category(store, child_id, ActivityCategory.FEEDING, days, clock))


async def fetch_nappy_pattern(
    store: EventStore, child_id: str, days: int = 7, clock: Optional[Clock] = None
) -> NappyPattern:
    return analyze_nappy(await _fetch_category(store, child_id, ActivityCategory.NAPPY, days, clock))
