import asyncio
import unittest
from datetime import timedelta

from pam_api.clock import FixedClock
from pam_api.insight_engine import (
    INSIGHT_RULES,
    cluster_feeding_rule,
    consistent_bedtime_rule,
    fetch_insights,
    generate_insights,
    growth_spurt_rule,
    sleep_trend_rule,
    stale_logging_rule,
)
from pam_api.schemas import AlertType, InsightType, Priority

from activity_helpers import CHILD_ID, at, feed, feeds_with_gaps, sleep, store_with


def _types(report):
    return [insight.type for insight in report.insights]


class ClusterFeedingTests(unittest.TestCase):
    def test_four_short_gaps_out_of_ten(self):
        feeds = feeds_with_gaps(at(1, 6), [60, 60, 60, 60, 180, 180, 180, 180, 180, 180])
        insight = cluster_feeding_rule(feeds, "Mia")
        self.assertIsNotNone(insight)
        self.assertEqual(insight.type, InsightType.FEEDING_CLUSTER)
        self.assertEqual(insight.confidence, 85)
        self.assertIn("Mia", insight.description)
        self.assertTrue(insight.actionable)

    def test_two_short_gaps_out_of_ten(self):
        feeds = feeds_with_gaps(at(1, 6), [60, 60, 180, 180, 180, 180, 180, 180, 180, 180])
        self.assertIsNone(cluster_feeding_rule(feeds, "Mia"))

    def test_exactly_thirty_percent_is_not_cluster(self):
        feeds = feeds_with_gaps(at(1, 6), [60, 60, 60, 180, 180, 180, 180, 180, 180, 180])
        self.assertIsNone(cluster_feeding_rule(feeds, "Mia"))

    def test_needs_five_feeds(self):
        feeds = feeds_with_gaps(at(1, 6), [30, 30, 30])
        self.assertIsNone(cluster_feeding_rule(feeds, "Mia"))


def test_feeding_routine_emerges():
    feeds = [feed(at(day, hour)) for day in (1, 2, 3) for hour in (6, 10, 14)]
    report = generate_insights(feeds, now=at(3, 15))
    routine = [i for i in report.insights if i.type == InsightType.FEEDING_ROUTINE]
    assert len(routine) == 1
    assert routine[0].confidence == 75
    assert "6, 10, 14" in routine[0].description


def test_sleep_improvement_and_regression():
    longer = [sleep(at(day, 13), minutes) for day, minutes in zip(range(1, 7), [60, 60, 60, 90, 90, 90])]
    improving = sleep_trend_rule(longer, "Mia")
    assert improving.type == InsightType.SLEEP_IMPROVEMENT
    assert improving.confidence == 80
    assert "50%" in improving.description
    assert "90 minutes" in improving.description

    shorter = [sleep(at(day, 13), minutes) for day, minutes in zip(range(1, 7), [90, 90, 90, 60, 60, 60])]
    regressing = sleep_trend_rule(shorter, "Mia")
    assert regressing.type == InsightType.SLEEP_REGRESSION
    assert regressing.confidence == 75
    assert regressing.recommendation


def test_sleep_change_of_twenty_percent_is_not_reported():
    sessions = [sleep(at(day, 13), minutes) for day, minutes in zip(range(1, 7), [100, 100, 100, 120, 120, 120])]
    assert sleep_trend_rule(sessions, "Mia") is None


def test_consistent_bedtime():
    sessions = [sleep(at(day, hour), 480) for day, hour in zip(range(1, 6), [19, 20, 20, 21, 20])]
    insight = consistent_bedtime_rule(sessions, "Mia")
    assert insight.type == InsightType.SLEEP_SCHEDULE
    assert insight.confidence == 90
    assert insight.actionable is False
    assert "20:00" in insight.description


def test_bedtime_around_midnight_is_consistent():
    sessions = [sleep(at(day, hour), 420) for day, hour in zip(range(1, 6), [23, 0, 1, 23, 0])]
    insight = consistent_bedtime_rule(sessions, "Mia")
    assert insight is not None
    assert "0:00" in insight.description


def test_scattered_bedtimes():
    sessions = [sleep(at(day, hour), 300) for day, hour in zip(range(1, 6), [18, 23, 2, 19, 4])]
    assert consistent_bedtime_rule(sessions, "Mia") is None


def test_stale_logging_alert():
    now = at(2, 9)
    alert = stale_logging_rule([feed(now - timedelta(hours=13))], "Mia", now)
    assert alert.id == "no_recent_activity"
    assert alert.type == AlertType.ROUTINE_SUGGESTION
    assert alert.priority == Priority.MEDIUM
    assert alert.action.label == "Log Activity"
    assert "13 hours" in alert.message
    assert alert.actionable

    assert stale_logging_rule([feed(now - timedelta(hours=12))], "Mia", now) is None
    assert stale_logging_rule([], "Mia", now) is None


def test_twelve_feeds_in_a_day_raise_one_growth_spurt_alert():
    now = at(2, 20)
    feeds = [feed(now - timedelta(hours=hours)) for hours in range(12)]
    report = generate_insights(feeds, now=now, child_name="Mia")

    assert [alert.id for alert in report.alerts] == ["growth_spurt_indicator"]
    alert = report.alerts[0]
    assert alert.priority == Priority.LOW
    assert alert.type == AlertType.PATTERN_CHANGE
    assert alert.action.label == "Learn More"
    assert "12 feeds" in alert.message


def test_growth_spurt_window_is_trailing_day():
    now = at(2, 20)
    feeds = [feed(now - timedelta(hours=hours)) for hours in range(11)]
    feeds.append(feed(now - timedelta(hours=24)))
    assert growth_spurt_rule(feeds, "Mia", now) is None


def test_rules_emit_in_declared_order():
    now = at(2, 20)
    feeds = [feed(now - timedelta(hours=hours)) for hours in range(12)]
    bedtimes = [sleep(at(day, 20), 600) for day in range(1, 6)]
    report = generate_insights(feeds + bedtimes, now=now)
    order = [rule.__name__ for rule in INSIGHT_RULES]
    assert order.index("cluster_feeding_rule") < order.index("consistent_bedtime_rule")
    assert _types(report) == [InsightType.FEEDING_CLUSTER, InsightType.SLEEP_SCHEDULE]


def test_empty_window_has_nothing_to_say():
    report = generate_insights([], now=at(1, 0))
    assert report.insights == []
    assert report.alerts == []


def test_fetch_insights_reads_trailing_week():
    clock = FixedClock(at(10, 12))
    old = feeds_with_gaps(at(1, 6), [30] * 10)
    store = store_with(old)
    report = asyncio.run(fetch_insights(store, CHILD_ID, child_name="Mia", clock=clock))
    assert report.insights == []
    assert report.alerts == []
