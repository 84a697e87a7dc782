import asyncio
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from ..clock import Clock, ensure_aware
from ..config import CONFIG
from ..daily_aggregator import get_daily_analytics
from ..dependencies import get_clock, get_event_store
from ..event_store import EventStore
from ..insight_engine import fetch_insights
from ..patterns import fetch_feeding_pattern, fetch_nappy_pattern, fetch_sleep_pattern
from ..reports import build_weekly_insights, fetch_healthcare_report
from ..schemas import DailyAnalytics, HealthcareReport, InsightReport, TrendResult, WeeklyInsight
from ..trends import fetch_trend
from .common import call_store

router = APIRouter(prefix="/api/v1/analytics", tags=["analytics"])
logger = logging.getLogger(__name__)


@router.get("/daily", response_model=List[DailyAnalytics])
async def daily_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    start: datetime = Query(..., description="Start of range"),
    end: datetime = Query(..., description="End of range"),
    store: EventStore = Depends(get_event_store),
) -> List[DailyAnalytics]:
    start, end = ensure_aware(start), ensure_aware(end)
    if end < start:
        raise HTTPException(status_code=400, detail="end must not be before start")
    return await call_store(
        get_daily_analytics(store, child_id, start, end), child_id=child_id, operation="daily"
    )


@router.get("/patterns")
async def patterns_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    days: int = Query(CONFIG.pattern_window_days, ge=1, le=90),
    store: EventStore = Depends(get_event_store),
    clock: Clock = Depends(get_clock),
) -> Dict[str, Any]:
    """Sleep, feeding and nappy patterns for the trailing window, fetched concurrently."""

    sleep, feeding, nappy = await call_store(
        asyncio.gather(
            fetch_sleep_pattern(store, child_id, days, clock),
            fetch_feeding_pattern(store, child_id, days, clock),
            fetch_nappy_pattern(store, child_id, days, clock),
        ),
        child_id=child_id,
        operation="patterns",
    )
    ready = any(pattern.has_sufficient_data for pattern in (sleep, feeding, nappy))
    logger.info(
        "child-scoped request",
        extra={"path": "/analytics/patterns", "child_id": child_id, "ready": ready},
    )
    return {
        "status": "ready" if ready else "building",
        "days": days,
        "sleep": sleep,
        "feeding": feeding,
        "nappy": nappy,
    }


@router.get("/trends", response_model=TrendResult)
async def trends_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    metric: str = Query("sleep", description="sleep | feeding | nappy | wet_nappies | tummy_time | ..."),
    days: int = Query(CONFIG.trend_window_days, ge=3, le=90),
    store: EventStore = Depends(get_event_store),
    clock: Clock = Depends(get_clock),
) -> TrendResult:
    try:
        return await call_store(
            fetch_trend(store, child_id, metric, days, clock), child_id=child_id, operation="trends"
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc


@router.get("/insights", response_model=InsightReport)
async def insights_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    child_name: str = Query("Your baby"),
    days: int = Query(CONFIG.insight_window_days, ge=1, le=30),
    store: EventStore = Depends(get_event_store),
    clock: Clock = Depends(get_clock),
) -> InsightReport:
    return await call_store(
        fetch_insights(store, child_id, child_name=child_name, days=days, clock=clock),
        child_id=child_id,
        operation="insights",
    )


@router.get("/weekly", response_model=List[WeeklyInsight])
async def weekly_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    week: int = Query(1, ge=1, description="Week number shown alongside each observation"),
    store: EventStore = Depends(get_event_store),
    clock: Clock = Depends(get_clock),
) -> List[WeeklyInsight]:
    sleep, feeding, nappy = await call_store(
        asyncio.gather(
            fetch_sleep_pattern(store, child_id, 7, clock),
            fetch_feeding_pattern(store, child_id, 7, clock),
            fetch_nappy_pattern(store, child_id, 7, clock),
        ),
        child_id=child_id,
        operation="weekly",
    )
    return build_weekly_insights(sleep, feeding, nappy, week)


@router.get("/report", response_model=HealthcareReport)
async def report_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    child_name: str = Query("Your baby"),
    days: Optional[int] = Query(None, ge=3, le=365),
    store: EventStore = Depends(get_event_store),
    clock: Clock = Depends(get_clock),
) -> HealthcareReport:
    window = days or CONFIG.report_window_days
    return await call_store(
        fetch_healthcare_report(store, child_id, child_name, window, clock),
        child_id=child_id,
        operation="report",
    )
