"""Weekly observations and the clinician-facing summary built on pattern stats."""
from __future__ import annotations

import asyncio
from datetime import datetime, timedelta
from typing import List, Optional, Sequence

from .clock import SYSTEM_CLOCK, Clock
from .daily_aggregator import get_daily_analytics
from .event_store import EventStore
from .patterns import fetch_feeding_pattern, fetch_nappy_pattern, fetch_sleep_pattern
from .schemas import (
    DailyAnalytics,
    FeedingPattern,
    HealthcareReport,
    NappyPattern,
    ReportSummary,
    ReportTrend,
    SleepPattern,
    WeeklyInsight,
)
from .trends import daily_trend


def build_weekly_insights(
    sleep: SleepPattern,
    feeding: FeedingPattern,
    nappy: NappyPattern,
    week: int,
) -> List[WeeklyInsight]:
    insights: List[WeeklyInsight] = []
    hours = round(sleep.total_sleep_per_day / 60)

    if sleep.has_sufficient_data:
        if sleep.total_sleep_per_day > 14 * 60:
            insights.append(
                WeeklyInsight(
                    week=week,
                    insight=f"Great sleep this week! {hours} hours average per day",
                    category="sleep",
                    is_positive=True,
                )
            )
        elif sleep.total_sleep_per_day < 10 * 60:
            insights.append(
                WeeklyInsight(
                    week=week,
                    insight=f"Less sleep than usual - only {hours} hours per day",
                    category="sleep",
                    is_positive=False,
                )
            )

    if feeding.has_sufficient_data:
        if feeding.feedings_per_day >= 8:
            insights.append(
                WeeklyInsight(
                    week=week,
                    insight=f"Frequent feeder! Averaging {feeding.feedings_per_day} feeds per day",
                    category="feeding",
                    is_positive=True,
                )
            )
        if 0 < feeding.average_feeding_interval < 150:
            insights.append(
                WeeklyInsight(
                    week=week,
                    insight=(
                        "Cluster feeding detected - feeds roughly every "
                        f"{feeding.average_feeding_interval} minutes"
                    ),
                    category="feeding",
                    is_positive=True,
                )
            )

    if nappy.has_sufficient_data and nappy.average_nappies_per_day >= 6:
        insights.append(
            WeeklyInsight(
                week=week,
                insight=f"Healthy nappy output! {nappy.average_nappies_per_day} changes per day",
                category="nappy",
                is_positive=True,
            )
        )
    return insights


def _identify_concerns(sleep: SleepPattern, feeding: FeedingPattern, nappy: NappyPattern) -> List[str]:
    concerns: List[str] = []
    if sleep.has_sufficient_data and sleep.total_sleep_per_day / 60 < 10:
        concerns.append("Below average sleep duration")
    if feeding.has_sufficient_data and feeding.feedings_per_day < 6:
        concerns.append("Lower than typical feeding frequency")
    if nappy.has_sufficient_data:
        if nappy.average_nappies_per_day < 4:
            concerns.append("Lower than typical nappy output")
        if nappy.longest_dry_stretch > 6:
            concerns.append(f"Long dry stretches noted (up to {round(nappy.longest_dry_stretch)} hours)")
    return concerns


GENERAL_RECOMMENDATIONS = (
    "Remember to discuss these patterns with your GP at next visit",
    "Consider using the Red Nose safe sleeping guidelines for better sleep",
)


def _recommendations(sleep: SleepPattern, feeding: FeedingPattern, nappy: NappyPattern) -> List[str]:
    recommendations: List[str] = []
    if feeding.has_sufficient_data:
        if feeding.average_feeding_interval > 240:
            recommendations.append(
                "Consider more frequent feeding - intervals longer than 4 hours may indicate inadequate nutrition"
            )
        if 0 < feeding.average_feeding_interval < 90:
            recommendations.append(
                "Very frequent feeding pattern - consider cluster feeding or comfort nursing"
            )
    if sleep.has_sufficient_data:
        if sleep.total_sleep_per_day < 12 * 60:
            recommendations.append("Baby may need more sleep - most babies need 14-17 hours per day")
        if sleep.longest_sleep_stretch < 180:
            recommendations.append(
                "Work on extending sleep stretches - consistent bedtime routine may help"
            )
    if nappy.has_sufficient_data and nappy.average_nappies_per_day < 6:
        recommendations.append(
            "Low nappy change frequency - ensure adequate feeding and consult healthcare provider"
        )
    recommendations.extend(GENERAL_RECOMMENDATIONS)
    return recommendations


def _report_trends(sleep: SleepPattern, daily: Sequence[DailyAnalytics]) -> List[ReportTrend]:
    feeding = daily_trend([day for day in daily if day.feeding_count], "feeding")
    sleeping = daily_trend([day for day in daily if day.sleep_count], "sleep")
    total_feeds = sum(day.feeding_count for day in daily)
    return [
        ReportTrend(
            metric="Feeding Pattern",
            direction=feeding.direction,
            percentage=feeding.percentage,
            description=f"Feeding {feeding.direction.value} with {total_feeds} feeds tracked",
        ),
        ReportTrend(
            metric="Sleep Quality",
            direction=sleeping.direction,
            percentage=sleeping.percentage,
            description=f"Average {round(sleep.total_sleep_per_day / 60)} hours sleep per day",
        ),
    ]


def _growth_notes(sleep: SleepPattern, feeding: FeedingPattern) -> List[str]:
    notes: List[str] = []
    if sleep.night_sleep_start and sleep.morning_wake_time:
        notes.append(f"Typical sleep schedule: {sleep.night_sleep_start} to {sleep.morning_wake_time}")
    if feeding.preferred_feeding_times:
        notes.append(f"Preferred feeding times: {', '.join(feeding.preferred_feeding_times)}")
    if feeding.breast_vs_bottle_ratio > 0:
        ratio = feeding.breast_vs_bottle_ratio
        notes.append(f"Feeding method: {round(ratio / (1 + ratio) * 100)}% breastfeeding")
    return notes


def _pattern_milestones(
    sleep: SleepPattern,
    feeding: FeedingPattern,
    daily: Sequence[DailyAnalytics],
) -> List[str]:
    milestones: List[str] = []
    if sleep.longest_sleep_stretch > 360:
        milestones.append("Sleeping through the night (6+ hour stretches)")
    if feeding.average_feeding_interval > 180:
        milestones.append("Extended feeding intervals (3+ hours)")
    tummy_minutes = sum(day.tummy_time_minutes for day in daily)
    if tummy_minutes > 0:
        milestones.append(f"Active tummy time: {round(tummy_minutes)} minutes total")
    return milestones


def build_healthcare_report(
    child_name: str,
    start: datetime,
    end: datetime,
    sleep: SleepPattern,
    feeding: FeedingPattern,
    nappy: NappyPattern,
    daily: Sequence[DailyAnalytics],
) -> HealthcareReport:
    return HealthcareReport(
        child_name=child_name,
        start=start,
        end=end,
        summary=ReportSummary(
            total_days=len(daily),
            avg_feedings_per_day=feeding.feedings_per_day,
            avg_sleep_hours_per_day=round(sleep.total_sleep_per_day / 60, 1),
            avg_nappies_per_day=nappy.average_nappies_per_day,
            growth_notes=_growth_notes(sleep, feeding),
        ),
        sleep=sleep,
        feeding=feeding,
        nappy=nappy,
        trends=_report_trends(sleep, daily),
        concerns=_identify_concerns(sleep, feeding, nappy),
        recommendations=_recommendations(sleep, feeding, nappy),
        milestones=_pattern_milestones(sleep, feeding, daily),
    )


async def fetch_healthcare_report(
    store: EventStore,
    child_id: str,
    child_name: str,
    days: int = 30,
    clock: Optional[Clock] = None,
) -> HealthcareReport:
    clock = clock or SYSTEM_CLOCK
    end = clock.now()
    start = end - timedelta(days=days)
    sleep, feeding, nappy, daily = await asyncio.gather(
        fetch_sleep_pattern(store, child_id, days, clock),
        fetch_feeding_pattern(store, child_id, days, clock),
        fetch_nappy_pattern(store, child_id, days, clock),
        get_daily_analytics(store, child_id, start, end),
    )
    return build_healthcare_report(child_name, start, end, sleep, feeding, nappy, daily)
