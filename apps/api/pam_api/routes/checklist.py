from datetime import date
from typing import Dict, List, Optional

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..checklist import (
    dashboard_stats,
    delete_checklist_for_child,
    items_by_category,
    materialize_checklist,
    overdue_items,
    set_item_completed,
    upcoming_items,
)
from ..checklist_store import ChecklistStore
from ..clock import Clock
from ..config import CONFIG
from ..dependencies import get_calendar, get_checklist_store, get_clock, get_notifier
from ..integrations import CalendarEventCreator, NotificationScheduler
from ..schemas import ChecklistCategory, ChecklistItem, ChecklistSyncResult, DashboardStats
from .common import call_store

router = APIRouter(prefix="/api/v1/checklist", tags=["checklist"])
logger = logging.getLogger(__name__)


class GenerateChecklistPayload(BaseModel):
    child_id: str = Field(min_length=1)
    date_of_birth: date
    jurisdiction: Optional[str] = Field(default=None, description="State or territory code, e.g. NSW")
    user_id: Optional[str] = None
    child_name: str = "Your baby"


class CompletionPayload(BaseModel):
    is_completed: bool


@router.post("/generate", response_model=ChecklistSyncResult)
async def generate_checklist_endpoint(
    payload: GenerateChecklistPayload,
    store: ChecklistStore = Depends(get_checklist_store),
    notifier: Optional[NotificationScheduler] = Depends(get_notifier),
    calendar: Optional[CalendarEventCreator] = Depends(get_calendar),
) -> ChecklistSyncResult:
    jurisdiction = (payload.jurisdiction or CONFIG.default_jurisdiction or "").strip().upper() or None
    logger.info(
        "child-scoped request",
        extra={"method": "POST", "path": "/checklist/generate", "child_id": payload.child_id},
    )
    return await call_store(
        materialize_checklist(
            store,
            payload.child_id,
            payload.date_of_birth,
            jurisdiction,
            user_id=payload.user_id,
            child_name=payload.child_name,
            notifier=notifier,
            calendar_creator=calendar,
        ),
        child_id=payload.child_id,
        operation="generate",
    )


async def _load_items(store: ChecklistStore, child_id: str) -> List[ChecklistItem]:
    return await call_store(store.list_items(child_id), child_id=child_id, operation="list")


@router.get("", response_model=List[ChecklistItem])
async def list_checklist_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    category: Optional[ChecklistCategory] = Query(None, description="Optional category filter"),
    store: ChecklistStore = Depends(get_checklist_store),
) -> List[ChecklistItem]:
    items = await _load_items(store, child_id)
    if category is not None:
        return items_by_category(items, category)
    return items


@router.get("/upcoming", response_model=List[ChecklistItem])
async def upcoming_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    days_ahead: int = Query(CONFIG.upcoming_days_ahead, ge=1, le=365),
    store: ChecklistStore = Depends(get_checklist_store),
    clock: Clock = Depends(get_clock),
) -> List[ChecklistItem]:
    return upcoming_items(await _load_items(store, child_id), days_ahead, clock.now())


@router.get("/overdue", response_model=List[ChecklistItem])
async def overdue_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    store: ChecklistStore = Depends(get_checklist_store),
    clock: Clock = Depends(get_clock),
) -> List[ChecklistItem]:
    return overdue_items(await _load_items(store, child_id), clock.now())


@router.get("/stats", response_model=DashboardStats)
async def stats_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    store: ChecklistStore = Depends(get_checklist_store),
    clock: Clock = Depends(get_clock),
) -> DashboardStats:
    items = await _load_items(store, child_id)
    return dashboard_stats(items, clock.now(), CONFIG.upcoming_days_ahead)


@router.patch("/items/{item_id}", response_model=ChecklistItem)
async def update_item_endpoint(
    item_id: str,
    payload: CompletionPayload,
    store: ChecklistStore = Depends(get_checklist_store),
    clock: Clock = Depends(get_clock),
) -> ChecklistItem:
    try:
        return await call_store(
            set_item_completed(store, item_id, payload.is_completed, clock),
            operation="complete",
        )
    except ValueError as exc:
        raise HTTPException(status_code=404, detail=str(exc)) from exc


@router.delete("")
async def delete_checklist_endpoint(
    child_id: str = Query(..., description="Child identifier"),
    store: ChecklistStore = Depends(get_checklist_store),
) -> Dict[str, int]:
    removed = await call_store(
        delete_checklist_for_child(store, child_id), child_id=child_id, operation="delete"
    )
    return {"deleted": removed}
