import asyncio
import unittest
from datetime import timedelta, timezone

from pam_api.clock import FixedClock
from pam_api.patterns import (
    MIN_PATTERN_EVENTS,
    analyze_feeding,
    analyze_nappy,
    analyze_sleep,
    fetch_sleep_pattern,
    format_clock,
)
from pam_api.schemas import SleepPattern

from activity_helpers import CHILD_ID, at, feed, nappy, sleep, store_with


class SleepPatternTests(unittest.TestCase):
    def setUp(self):
        self.sessions = [
            sleep(at(1, 20), 300),
            sleep(at(1, 13), 60),
            sleep(at(2, 2), 180),
            sleep(at(2, 14), 90),
            sleep(at(2, 22), 240),
        ]

    def test_sleep_statistics(self):
        pattern = analyze_sleep(self.sessions)
        self.assertEqual(pattern.sample_count, 5)
        self.assertEqual(pattern.average_sleep_duration, 174)
        self.assertEqual(pattern.average_naps_per_day, 2.5)
        self.assertEqual(pattern.longest_sleep_stretch, 300)
        self.assertEqual(pattern.total_sleep_per_day, 435)
        self.assertEqual(pattern.sleep_efficiency, 30)

    def test_night_start_folds_past_midnight(self):
        pattern = analyze_sleep(self.sessions)
        # 20:00, 02:00 and 22:00 average to 22:40, not to 14:40.
        self.assertEqual(pattern.night_sleep_start, "22:40")
        self.assertEqual(pattern.morning_wake_time, "2:40")

    def test_night_and_day_sleep_split(self):
        pattern = analyze_sleep(self.sessions)
        self.assertEqual(pattern.average_night_sleep, 360)
        self.assertEqual(pattern.average_day_sleep, 75)
        self.assertEqual(pattern.average_night_sleep + pattern.average_day_sleep, pattern.total_sleep_per_day)

    def test_wake_time_folds_evening_ends(self):
        # Ends at 23:00, 05:00, 23:00, 05:00, 23:00 average to 01:24.
        sessions = [sleep(at(day, 19), 240 if day % 2 else 600) for day in range(1, 6)]
        pattern = analyze_sleep(sessions)
        self.assertEqual(pattern.morning_wake_time, "1:24")
        self.assertEqual(pattern.night_sleep_start, "19:00")

    def test_below_minimum_is_zero_structure(self):
        pattern = analyze_sleep(self.sessions[: MIN_PATTERN_EVENTS - 1])
        self.assertEqual(pattern, SleepPattern())
        self.assertFalse(pattern.has_sufficient_data)

    def test_ignores_other_categories(self):
        pattern = analyze_sleep(self.sessions[:4] + [feed(at(1, 5))])
        self.assertEqual(pattern.sample_count, 0)


def test_feeding_pattern():
    feeds = [
        feed(at(1, 6), minutes=20),
        feed(at(1, 9), subtype="bottle", minutes=15, amount_ml=120),
        feed(at(1, 12), minutes=25),
        feed(at(2, 6), minutes=20),
        feed(at(2, 9), subtype="bottle", amount_ml=150),
        feed(at(2, 12, 30)),
    ]
    pattern = analyze_feeding(feeds)

    assert pattern.sample_count == 6
    assert pattern.average_feeding_interval == 366
    assert pattern.average_feeding_duration == 20
    assert pattern.average_bottle_amount == 135
    assert pattern.feedings_per_day == 3.0
    assert pattern.preferred_feeding_times == ["6:00", "9:00", "12:00"]
    assert pattern.breast_vs_bottle_ratio == 2.0


def test_feeding_ratio_without_bottle_uses_breast_count():
    feeds = [feed(at(1, hour)) for hour in (1, 4, 7, 10, 13)]
    assert analyze_feeding(feeds).breast_vs_bottle_ratio == 5.0


def test_preferred_times_break_ties_by_first_seen():
    feeds = [feed(at(1, 15)), feed(at(1, 3)), feed(at(2, 3)), feed(at(2, 15)), feed(at(2, 8)), feed(at(3, 1))]
    # Chronological order: 03:00 is seen before 15:00.
    assert analyze_feeding(feeds).preferred_feeding_times == ["3:00", "15:00", "8:00"]


def test_feeding_hours_do_not_depend_on_caller_offset():
    utc_feeds = [feed(at(1, hour)) for hour in range(2, 20, 3)]
    plus_ten = timezone(timedelta(hours=10))
    local_feeds = [feed(event.started_at.astimezone(plus_ten)) for event in utc_feeds]

    expected = analyze_feeding(utc_feeds)
    assert expected.preferred_feeding_times == ["2:00", "5:00", "8:00"]
    assert expected.feedings_per_day == 6.0
    assert analyze_feeding(local_feeds) == expected


def test_nappy_pattern():
    changes = [
        nappy(at(1, 7), "wet"),
        nappy(at(1, 10), "dirty"),
        nappy(at(1, 14), "wet"),
        nappy(at(1, 22), "wet"),
        nappy(at(2, 7), "wet"),
        nappy(at(2, 8), "dirty"),
    ]
    pattern = analyze_nappy(changes)

    assert pattern.average_nappies_per_day == 3.0
    assert pattern.wet_vs_dirty_ratio == 2.0
    assert pattern.longest_dry_stretch == 9.0
    assert pattern.typical_change_hours == ["7:00", "10:00", "14:00", "22:00"]


def test_nappy_below_minimum():
    pattern = analyze_nappy([nappy(at(1, hour)) for hour in range(4)])
    assert pattern.sample_count == 0
    assert pattern.typical_change_hours == []


def test_format_clock():
    assert format_clock(7.5) == "7:30"
    assert format_clock(23.999) == "0:00"


def test_fetch_uses_trailing_window():
    clock = FixedClock(at(10, 12))
    recent = [sleep(at(10, 12) - timedelta(days=day, hours=2), 60) for day in range(5)]
    stale = [sleep(at(1, 1), 60)]
    store = store_with(recent + stale)

    pattern = asyncio.run(fetch_sleep_pattern(store, CHILD_ID, 7, clock))
    assert pattern.sample_count == 5
    assert pattern.longest_sleep_stretch == 60
