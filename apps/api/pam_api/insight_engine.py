"""Rule engine that turns a window of activity events into insights and alerts."""
from __future__ import annotations

import logging
from collections import Counter
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from .clock import SYSTEM_CLOCK, Clock, ensure_aware
from .event_store import EventStore
from .patterns import MIN_PATTERN_EVENTS, fold_evening_hour, is_night_hour
from .schemas import (
    ActivityCategory,
    ActivityEvent,
    AlertAction,
    AlertType,
    Insight,
    InsightReport,
    InsightType,
    Priority,
    SmartAlert,
    TrendDirection,
)
from .trends import detect_trend

logger = logging.getLogger(__name__)

CLUSTER_GAP_MINUTES = 90
CLUSTER_SHARE = 0.3
ROUTINE_MIN_HOURS = 3
ROUTINE_MIN_FEEDS_PER_HOUR = 3
SLEEP_SWING_PERCENT = 20
BEDTIME_MAX_VARIANCE = 2.0
STALE_LOG_HOURS = 12
GROWTH_SPURT_FEEDS = 12

InsightRule = Callable[[Sequence[ActivityEvent], str], Optional[Insight]]
AlertRule = Callable[[Sequence[ActivityEvent], str, datetime], Optional[SmartAlert]]


def _category(events: Sequence[ActivityEvent], category: ActivityCategory) -> List[ActivityEvent]:
    return sorted((e for e in events if e.category == category), key=lambda e: e.started_at)


def cluster_feeding_rule(events: Sequence[ActivityEvent], child_name: str) -> Optional[Insight]:
    feeds = _category(events, ActivityCategory.FEEDING)
    if len(feeds) < MIN_PATTERN_EVENTS:
        return None
    gaps = [
        (current.started_at - previous.started_at).total_seconds() / 60
        for previous, current in zip(feeds, feeds[1:])
    ]
    close = sum(1 for gap in gaps if gap < CLUSTER_GAP_MINUTES)
    if close / len(gaps) <= CLUSTER_SHARE:
        return None
    return Insight(
        type=InsightType.FEEDING_CLUSTER,
        title="Cluster Feeding Detected",
        description=(
            f"{child_name} has been cluster feeding, with {close} feeds very close together. "
            "This is normal for growth spurts or comfort feeding."
        ),
        confidence=85,
        actionable=True,
        recommendation=(
            "This is normal behaviour. Stay hydrated and consider comfort measures for yourself "
            "during these intensive feeding periods."
        ),
    )


def feeding_routine_rule(events: Sequence[ActivityEvent], child_name: str) -> Optional[Insight]:
    feeds = _category(events, ActivityCategory.FEEDING)
    if len(feeds) < MIN_PATTERN_EVENTS:
        return None
    counts = Counter(feed.started_at.hour for feed in feeds)
    common_hours = sorted(hour for hour, count in counts.items() if count >= ROUTINE_MIN_FEEDS_PER_HOUR)
    if len(common_hours) < ROUTINE_MIN_HOURS:
        return None
    return Insight(
        type=InsightType.FEEDING_ROUTINE,
        title="Feeding Routine Emerging",
        description=(
            f"{child_name} is developing a feeding routine around "
            f"{', '.join(str(hour) for hour in common_hours)} o'clock. "
            "This consistency is great for planning your day!"
        ),
        confidence=75,
        actionable=True,
        recommendation="Consider building other activities around these predictable feeding times.",
    )


def sleep_trend_rule(events: Sequence[ActivityEvent], child_name: str) -> Optional[Insight]:
    sessions = [s for s in _category(events, ActivityCategory.SLEEP) if s.minutes]
    if len(sessions) < MIN_PATTERN_EVENTS:
        return None
    durations = [s.minutes or 0 for s in sessions]
    trend = detect_trend(durations, "sleep_duration")
    if abs(trend.percentage) <= SLEEP_SWING_PERCENT:
        return None

    recent = durations[len(durations) // 2:]
    recent_average = round(sum(recent) / len(recent))
    if trend.direction == TrendDirection.IMPROVING:
        return Insight(
            type=InsightType.SLEEP_IMPROVEMENT,
            title="Sleep Duration Improving",
            description=(
                f"{child_name}'s sleep has improved by {round(abs(trend.percentage))}% this week. "
                f"Average sleep sessions are now {recent_average} minutes."
            ),
            confidence=80,
            actionable=True,
            recommendation="Keep maintaining your current bedtime routine - it's working well!",
        )
    return Insight(
        type=InsightType.SLEEP_REGRESSION,
        title="Sleep Pattern Changes",
        description=(
            f"{child_name}'s sleep duration has decreased by {round(abs(trend.percentage))}% this week. "
            "This could be temporary due to growth spurts or developmental leaps."
        ),
        confidence=75,
        actionable=True,
        recommendation=(
            "Sleep regressions are normal. Try to maintain consistent routines and consider whether "
            "any recent changes might be affecting sleep."
        ),
    )


def consistent_bedtime_rule(events: Sequence[ActivityEvent], child_name: str) -> Optional[Insight]:
    night = [
        s
        for s in _category(events, ActivityCategory.SLEEP)
        if s.minutes and is_night_hour(s.started_at.hour)
    ]
    if len(night) < MIN_PATTERN_EVENTS:
        return None
    bedtimes = [fold_evening_hour(s.started_at.hour) for s in night]
    average = sum(bedtimes) / len(bedtimes)
    variance = sum((hour - average) ** 2 for hour in bedtimes) / len(bedtimes)
    if variance >= BEDTIME_MAX_VARIANCE:
        return None
    return Insight(
        type=InsightType.SLEEP_SCHEDULE,
        title="Consistent Bedtime Established",
        description=(
            f"{child_name} has a consistent bedtime around {round(average) % 24}:00. "
            "This routine stability is excellent for sleep quality."
        ),
        confidence=90,
        actionable=False,
    )


def stale_logging_rule(events: Sequence[ActivityEvent], child_name: str, now: datetime) -> Optional[SmartAlert]:
    if not events:
        return None
    latest = max(event.started_at for event in events)
    hours_since = (now - latest).total_seconds() / 3600
    if hours_since <= STALE_LOG_HOURS:
        return None
    return SmartAlert(
        id="no_recent_activity",
        type=AlertType.ROUTINE_SUGGESTION,
        title="No Recent Activity Logged",
        message=(
            f"It's been {round(hours_since)} hours since the last logged activity for {child_name}. "
            "Consider logging recent feeds or sleep."
        ),
        priority=Priority.MEDIUM,
        created_at=now,
        action=AlertAction(label="Log Activity", url="/dashboard/tracker"),
    )


def growth_spurt_rule(events: Sequence[ActivityEvent], child_name: str, now: datetime) -> Optional[SmartAlert]:
    since = now - timedelta(hours=24)
    recent = [
        event
        for event in events
        if event.category == ActivityCategory.FEEDING and since < event.started_at <= now
    ]
    if len(recent) < GROWTH_SPURT_FEEDS:
        return None
    return SmartAlert(
        id="growth_spurt_indicator",
        type=AlertType.PATTERN_CHANGE,
        title="Possible Growth Spurt",
        message=(
            f"{child_name} has had {len(recent)} feeds in the last 24 hours, which might indicate a "
            "growth spurt. This is normal and usually lasts 2-3 days."
        ),
        priority=Priority.LOW,
        created_at=now,
        action=AlertAction(label="Learn More", url="/dashboard/info"),
    )


INSIGHT_RULES: List[InsightRule] = [
    cluster_feeding_rule,
    feeding_routine_rule,
    sleep_trend_rule,
    consistent_bedtime_rule,
]
ALERT_RULES: List[AlertRule] = [stale_logging_rule, growth_spurt_rule]


def generate_insights(
    events: Sequence[ActivityEvent],
    *,
    now: datetime,
    child_name: str = "Your baby",
) -> InsightReport:
    now = ensure_aware(now)
    report = InsightReport()
    for rule in INSIGHT_RULES:
        insight = rule(events, child_name)
        if insight is not None:
            report.insights.append(insight)
    for alert_rule in ALERT_RULES:
        alert = alert_rule(events, child_name, now)
        if alert is not None:
            report.alerts.append(alert)
    return report


async def fetch_insights(
    store: EventStore,
    child_id: str,
    *,
    child_name: str = "Your baby",
    days: int = 7,
    clock: Optional[Clock] = None,
) -> InsightReport:
    now = (clock or SYSTEM_CLOCK).now()
    events = await store.fetch_events(child_id, None, now - timedelta(days=days), now)
    report = generate_insights(events, now=now, child_name=child_name)
    logger.info(
        "insights generated",
        extra={
            "child_id": child_id,
            "events": len(events),
            "insights": len(report.insights),
            "alerts": len(report.alerts),
        },
    )
    return report
