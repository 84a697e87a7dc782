from datetime import datetime
from typing import List, Optional

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, ValidationError

from ..clock import ensure_aware
from ..dependencies import get_event_store
from ..event_store import EventStore
from ..schemas import ActivityCategory, ActivityEvent
from .common import call_store

router = APIRouter(prefix="/api/v1", tags=["events"])
logger = logging.getLogger(__name__)


class CreateEventPayload(BaseModel):
    child_id: str = Field(min_length=1)
    category: str = Field(description="feeding | sleep | nappy | tummy_time (diaper accepted)")
    subtype: Optional[str] = None
    started_at: datetime
    ended_at: Optional[datetime] = None
    duration_minutes: Optional[float] = None
    amount_ml: Optional[float] = None
    notes: Optional[str] = None


@router.post("/events", response_model=ActivityEvent, status_code=201)
async def create_event(
    payload: CreateEventPayload,
    store: EventStore = Depends(get_event_store),
) -> ActivityEvent:
    """Log a single activity for a child."""

    try:
        event = ActivityEvent(**payload.model_dump())
    except ValidationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    logger.info(
        "child-scoped request",
        extra={"method": "POST", "path": "/events", "child_id": event.child_id, "category": event.category.value},
    )
    return await call_store(store.save(event), child_id=event.child_id, operation="log event")


@router.get("/events", response_model=List[ActivityEvent])
async def list_events(
    child_id: Optional[str] = Query(None, description="Child identifier"),
    start: datetime = Query(..., description="Start of range"),
    end: datetime = Query(..., description="End of range"),
    category: Optional[ActivityCategory] = Query(None, description="Optional category filter"),
    store: EventStore = Depends(get_event_store),
) -> List[ActivityEvent]:
    """Return logged activity events for the selected child within a date window."""

    if not child_id:
        raise HTTPException(
            status_code=400,
            detail="child_id is required for activity events.",
        )

    logger.info(
        "child-scoped request",
        extra={"method": "GET", "path": "/events", "child_id": child_id},
    )
    return await call_store(
        store.fetch_events(child_id, category, ensure_aware(start), ensure_aware(end)),
        child_id=child_id,
        operation="list events",
    )
