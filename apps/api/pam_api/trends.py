"""Half-window trend classification for daily and per-session metrics."""
from __future__ import annotations

from datetime import timedelta
from typing import Callable, Dict, List, Optional, Sequence

from .clock import SYSTEM_CLOCK, Clock
from .daily_aggregator import get_daily_analytics
from .event_store import EventStore
from .schemas import ActivityCategory, DailyAnalytics, TrendDirection, TrendResult

MIN_TREND_POINTS = 3
NOISE_THRESHOLD_PERCENT = 5.0

# +1: a rise is good news; -1: a rise is worth a closer look.
METRIC_POLARITY: Dict[str, int] = {
    "sleep": 1,
    "sleep_duration": 1,
    "sleep_sessions": 1,
    "feeding": 1,
    "feeding_ml": 1,
    "nappy": 1,
    "wet_nappies": 1,
    "tummy_time": 1,
    "night_wakings": -1,
    "feeding_interval": 1,
}

DAILY_METRICS: Dict[str, Callable[[DailyAnalytics], float]] = {
    "sleep": lambda day: day.sleep_total_minutes,
    "sleep_sessions": lambda day: day.sleep_count,
    "feeding": lambda day: day.feeding_count,
    "feeding_ml": lambda day: day.feeding_total_ml,
    "nappy": lambda day: day.nappy_count,
    "wet_nappies": lambda day: day.wet_nappies,
    "tummy_time": lambda day: day.tummy_time_minutes,
}

# Days are counted only when the metric's own category was logged.
METRIC_CATEGORY: Dict[str, ActivityCategory] = {
    "sleep": ActivityCategory.SLEEP,
    "sleep_sessions": ActivityCategory.SLEEP,
    "feeding": ActivityCategory.FEEDING,
    "feeding_ml": ActivityCategory.FEEDING,
    "nappy": ActivityCategory.NAPPY,
    "wet_nappies": ActivityCategory.NAPPY,
    "tummy_time": ActivityCategory.TUMMY_TIME,
}


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def percentage_change(values: Sequence[float]) -> Optional[float]:
    """Change of the second half's mean relative to the first; None when undefined."""
    if len(values) < MIN_TREND_POINTS:
        return None
    midpoint = len(values) // 2
    first_mean = _mean(values[:midpoint])
    if first_mean == 0:
        return None
    return (_mean(values[midpoint:]) - first_mean) / first_mean * 100


def detect_trend(values: Sequence[float], metric: str, polarity: Optional[int] = None) -> TrendResult:
    if polarity is None:
        if metric not in METRIC_POLARITY:
            raise ValueError(f"No polarity configured for metric {metric!r}")
        polarity = METRIC_POLARITY[metric]
    if polarity not in (1, -1):
        raise ValueError("polarity must be 1 or -1")

    change = percentage_change(values)
    if change is None or abs(change) < NOISE_THRESHOLD_PERCENT:
        return TrendResult(metric=metric)

    improving = (change > 0) == (polarity > 0)
    return TrendResult(
        metric=metric,
        direction=TrendDirection.IMPROVING if improving else TrendDirection.CONCERNING,
        percentage=round(change, 1),
    )


def daily_series(daily: Sequence[DailyAnalytics], metric: str) -> List[float]:
    try:
        extract = DAILY_METRICS[metric]
    except KeyError as exc:
        raise ValueError(f"Unknown daily metric {metric!r}") from exc
    return [float(extract(day)) for day in sorted(daily, key=lambda day: day.date)]


def daily_trend(daily: Sequence[DailyAnalytics], metric: str, polarity: Optional[int] = None) -> TrendResult:
    return detect_trend(daily_series(daily, metric), metric, polarity)


async def fetch_trend(
    store: EventStore,
    child_id: str,
    metric: str,
    days: int = 14,
    clock: Optional[Clock] = None,
) -> TrendResult:
    if metric not in METRIC_CATEGORY:
        raise ValueError(f"Unknown daily metric {metric!r}")
    end = (clock or SYSTEM_CLOCK).now()
    daily = await get_daily_analytics(
        store, child_id, end - timedelta(days=days), end, METRIC_CATEGORY[metric]
    )
    return daily_trend(daily, metric)
