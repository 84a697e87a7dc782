import asyncio
from datetime import date, timedelta

from pam_api.clock import FixedClock
from pam_api.reports import (
    GENERAL_RECOMMENDATIONS,
    build_healthcare_report,
    build_weekly_insights,
    fetch_healthcare_report,
)
from pam_api.schemas import DailyAnalytics, FeedingPattern, NappyPattern, SleepPattern, TrendDirection

from activity_helpers import CHILD_ID, at, feed, nappy, sleep, store_with, tummy


def test_weekly_positive_observations():
    insights = build_weekly_insights(
        SleepPattern(sample_count=10, total_sleep_per_day=900),
        FeedingPattern(sample_count=40, feedings_per_day=9, average_feeding_interval=120),
        NappyPattern(sample_count=30, average_nappies_per_day=7),
        week=3,
    )
    texts = [insight.insight for insight in insights]
    assert texts[0] == "Great sleep this week! 15 hours average per day"
    assert any("Frequent feeder" in text for text in texts)
    assert any("Cluster feeding detected" in text for text in texts)
    assert any("Healthy nappy output" in text for text in texts)
    assert all(insight.week == 3 and insight.is_positive for insight in insights)


def test_weekly_low_sleep_is_negative():
    insights = build_weekly_insights(
        SleepPattern(sample_count=10, total_sleep_per_day=500),
        FeedingPattern(),
        NappyPattern(),
        week=1,
    )
    assert len(insights) == 1
    assert insights[0].category == "sleep"
    assert insights[0].is_positive is False
    assert "only 8 hours" in insights[0].insight


def test_weekly_without_data_is_empty():
    assert build_weekly_insights(SleepPattern(), FeedingPattern(), NappyPattern(), week=1) == []


def test_healthcare_report_flags_concerns_and_milestones():
    daily = [
        DailyAnalytics(date=date(2024, 6, 1), tummy_time_minutes=10),
        DailyAnalytics(date=date(2024, 6, 2), tummy_time_minutes=15),
    ]
    report = build_healthcare_report(
        "Mia",
        at(1, 0),
        at(3, 0),
        SleepPattern(
            sample_count=8,
            total_sleep_per_day=540,
            longest_sleep_stretch=400,
            night_sleep_start="19:30",
            morning_wake_time="6:00",
        ),
        FeedingPattern(
            sample_count=10,
            feedings_per_day=5,
            average_feeding_interval=200,
            preferred_feeding_times=["6:00", "10:00"],
            breast_vs_bottle_ratio=3,
        ),
        NappyPattern(sample_count=6, average_nappies_per_day=3, longest_dry_stretch=7.2),
        daily,
    )

    assert report.summary.total_days == 2
    assert report.summary.avg_sleep_hours_per_day == 9.0
    assert report.concerns == [
        "Below average sleep duration",
        "Lower than typical feeding frequency",
        "Lower than typical nappy output",
        "Long dry stretches noted (up to 7 hours)",
    ]
    assert report.milestones == [
        "Sleeping through the night (6+ hour stretches)",
        "Extended feeding intervals (3+ hours)",
        "Active tummy time: 25 minutes total",
    ]
    assert "Typical sleep schedule: 19:30 to 6:00" in report.summary.growth_notes
    assert "Feeding method: 75% breastfeeding" in report.summary.growth_notes
    assert report.recommendations == [
        "Baby may need more sleep - most babies need 14-17 hours per day",
        "Low nappy change frequency - ensure adequate feeding and consult healthcare provider",
        *GENERAL_RECOMMENDATIONS,
    ]


def test_recommendations_for_feeding_interval_and_short_stretches():
    def recommend(interval):
        return build_healthcare_report(
            "Mia",
            at(1, 0),
            at(8, 0),
            SleepPattern(sample_count=8, total_sleep_per_day=900, longest_sleep_stretch=150),
            FeedingPattern(sample_count=10, average_feeding_interval=interval),
            NappyPattern(sample_count=6, average_nappies_per_day=7),
            [],
        ).recommendations

    long_gaps = recommend(260)
    assert long_gaps[0].startswith("Consider more frequent feeding")
    assert long_gaps[1].startswith("Work on extending sleep stretches")
    assert recommend(80)[0].startswith("Very frequent feeding pattern")
    assert recommend(150)[0].startswith("Work on extending sleep stretches")


def test_report_trends_use_daily_series():
    daily = [
        DailyAnalytics(date=date(2024, 6, day), feeding_count=feeds, sleep_count=3, sleep_total_minutes=minutes)
        for day, feeds, minutes in [(1, 10, 600), (2, 10, 600), (3, 6, 780), (4, 6, 780)]
    ]
    report = build_healthcare_report(
        "Mia",
        at(1, 0),
        at(5, 0),
        SleepPattern(sample_count=12, total_sleep_per_day=690),
        FeedingPattern(sample_count=32, feedings_per_day=8),
        NappyPattern(),
        daily,
    )
    feeding, sleeping = report.trends
    assert feeding.metric == "Feeding Pattern"
    assert feeding.direction == TrendDirection.CONCERNING
    assert feeding.percentage == -40.0
    assert feeding.description == "Feeding concerning with 32 feeds tracked"
    assert sleeping.metric == "Sleep Quality"
    assert sleeping.direction == TrendDirection.IMPROVING
    assert sleeping.percentage == 30.0
    assert sleeping.description == "Average 12 hours sleep per day"


def test_insufficient_patterns_raise_no_concerns():
    report = build_healthcare_report("Mia", at(1, 0), at(2, 0), SleepPattern(), FeedingPattern(), NappyPattern(), [])
    assert report.concerns == []
    assert report.milestones == []
    assert report.summary.total_days == 0
    assert report.recommendations == list(GENERAL_RECOMMENDATIONS)
    assert [trend.direction for trend in report.trends] == [TrendDirection.STABLE, TrendDirection.STABLE]


def test_fetch_healthcare_report():
    clock = FixedClock(at(20, 12))
    events = []
    for offset in range(5):
        day_start = at(15, 0) + timedelta(days=offset)
        events.append(sleep(day_start + timedelta(hours=20), 420))
        events.append(feed(day_start + timedelta(hours=8)))
        events.append(nappy(day_start + timedelta(hours=9)))
    events.append(tummy(at(16, 10), 12))

    report = asyncio.run(fetch_healthcare_report(store_with(events), CHILD_ID, "Mia", 30, clock))
    assert report.child_name == "Mia"
    assert report.end == clock.now()
    assert report.summary.total_days == 5
    assert report.sleep.sample_count == 5
    assert report.feeding.sample_count == 5
    assert "Sleeping through the night (6+ hour stretches)" in report.milestones
    assert "Active tummy time: 12 minutes total" in report.milestones
