"""Dated checklist generation from the reference schedules, plus dashboard queries."""
from __future__ import annotations

import calendar
import logging
import math
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence

from .checklist_store import ChecklistStore, DuplicateChecklistItemError
from .clock import SYSTEM_CLOCK, Clock
from .integrations import CalendarEventCreator, NotificationScheduler, schedule_checklist_integrations
from .reference_data import DEFAULT_TABLES, ReferenceTables
from .schemas import (
    ChecklistCategory,
    ChecklistItem,
    ChecklistMetadata,
    ChecklistSyncResult,
    DashboardStats,
    Priority,
)

logger = logging.getLogger(__name__)


def add_months(start: date, months: int) -> date:
    """Calendar-month addition; the day clamps to the last day of the target month."""
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    day = min(start.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def checklist_item_id(child_id: str, category: ChecklistCategory, reference_id: str) -> str:
    return f"{child_id}-{category.value}-{reference_id}"


def _as_date(value) -> date:
    return value.date() if isinstance(value, datetime) else value


def _immunisation_items(child_id: str, dob: date, tables: ReferenceTables) -> List[ChecklistItem]:
    return [
        ChecklistItem(
            id=checklist_item_id(child_id, ChecklistCategory.IMMUNISATION, entry.id),
            child_id=child_id,
            title=entry.title,
            description=entry.description,
            due_date=dob + timedelta(weeks=entry.age_in_weeks),
            category=ChecklistCategory.IMMUNISATION,
            priority=Priority.HIGH if entry.is_required else Priority.MEDIUM,
            metadata=ChecklistMetadata(vaccines=list(entry.vaccines), is_optional=not entry.is_required),
        )
        for entry in tables.immunisations
    ]


def _registration_items(
    child_id: str,
    dob: date,
    jurisdiction: Optional[str],
    tables: ReferenceTables,
) -> List[ChecklistItem]:
    items: List[ChecklistItem] = []
    for task in tables.registrations:
        if jurisdiction and jurisdiction in task.links:
            links = {jurisdiction: task.links[jurisdiction]}
        else:
            links = dict(task.links)
        items.append(
            ChecklistItem(
                id=checklist_item_id(child_id, ChecklistCategory.REGISTRATION, task.id),
                child_id=child_id,
                title=task.title,
                description=task.description,
                due_date=dob + timedelta(days=task.days_after_birth),
                category=ChecklistCategory.REGISTRATION,
                priority=task.priority,
                metadata=ChecklistMetadata(requirements=list(task.requirements), links=links),
            )
        )
    return items


def _milestone_items(child_id: str, dob: date, tables: ReferenceTables) -> List[ChecklistItem]:
    return [
        ChecklistItem(
            id=checklist_item_id(child_id, ChecklistCategory.MILESTONE, entry.id),
            child_id=child_id,
            title=entry.title,
            description=entry.description,
            due_date=add_months(dob, entry.age_in_months),
            category=ChecklistCategory.MILESTONE,
            priority=Priority.LOW if entry.is_optional else Priority.MEDIUM,
            metadata=ChecklistMetadata(milestone_type=entry.milestone_type, is_optional=entry.is_optional),
        )
        for entry in tables.milestones
    ]


def _checkup_items(child_id: str, dob: date, tables: ReferenceTables) -> List[ChecklistItem]:
    items: List[ChecklistItem] = []
    for entry in tables.checkups:
        if entry.weeks is not None:
            due = dob + timedelta(weeks=entry.weeks)
        else:
            due = add_months(dob, entry.months or 0)
        items.append(
            ChecklistItem(
                id=checklist_item_id(child_id, ChecklistCategory.CHECKUP, entry.id),
                child_id=child_id,
                title=entry.title,
                description=entry.description,
                due_date=due,
                category=ChecklistCategory.CHECKUP,
                priority=Priority.MEDIUM,
            )
        )
    return items


def generate_checklist(
    child_id: str,
    date_of_birth: date,
    jurisdiction: Optional[str] = None,
    tables: ReferenceTables = DEFAULT_TABLES,
) -> List[ChecklistItem]:
    """Build every dated item for a child, oldest due date first.

    The output depends only on the arguments, so regenerating for the same
    child yields the same ids and lets the store deduplicate.
    """
    dob = _as_date(date_of_birth)
    items = (
        _immunisation_items(child_id, dob, tables)
        + _registration_items(child_id, dob, jurisdiction, tables)
        + _milestone_items(child_id, dob, tables)
        + _checkup_items(child_id, dob, tables)
    )
    return sorted(items, key=lambda item: item.due_date)


def upcoming_items(
    items: Iterable[ChecklistItem],
    days_ahead: int = 30,
    now: Optional[datetime] = None,
) -> List[ChecklistItem]:
    today = _as_date(now or SYSTEM_CLOCK.now())
    horizon = today + timedelta(days=days_ahead)
    return [item for item in items if not item.is_completed and today <= item.due_date <= horizon]


def overdue_items(items: Iterable[ChecklistItem], now: Optional[datetime] = None) -> List[ChecklistItem]:
    today = _as_date(now or SYSTEM_CLOCK.now())
    return [item for item in items if not item.is_completed and item.due_date < today]


def items_by_category(
    items: Iterable[ChecklistItem], category: ChecklistCategory
) -> List[ChecklistItem]:
    return [item for item in items if item.category == category]


def completion_percentage(items: Sequence[ChecklistItem]) -> int:
    if not items:
        return 0
    completed = sum(1 for item in items if item.is_completed)
    # Half-up, so 1 of 8 reads as 13%.
    return math.floor(completed * 100 / len(items) + 0.5)


def dashboard_stats(
    items: Sequence[ChecklistItem],
    now: Optional[datetime] = None,
    days_ahead: int = 30,
) -> DashboardStats:
    now = now or SYSTEM_CLOCK.now()
    return DashboardStats(
        total_items=len(items),
        completed_items=sum(1 for item in items if item.is_completed),
        upcoming_items=len(upcoming_items(items, days_ahead, now)),
        overdue_items=len(overdue_items(items, now)),
        completion_percentage=completion_percentage(items),
    )


async def _insert_missing(
    store: ChecklistStore, child_id: str, generated: Sequence[ChecklistItem]
) -> List[ChecklistItem]:
    existing = await store.list_existing_ids(child_id)
    missing = [item for item in generated if item.id not in existing]
    if missing:
        await store.insert_many(missing)
    return missing


async def materialize_checklist(
    store: ChecklistStore,
    child_id: str,
    date_of_birth: date,
    jurisdiction: Optional[str] = None,
    *,
    user_id: Optional[str] = None,
    child_name: str = "Your baby",
    notifier: Optional[NotificationScheduler] = None,
    calendar_creator: Optional[CalendarEventCreator] = None,
    tables: ReferenceTables = DEFAULT_TABLES,
) -> ChecklistSyncResult:
    """Persist the items a child does not have yet; safe to call repeatedly.

    A concurrent writer can insert the same ids between our read and our
    write. The store then raises ``DuplicateChecklistItemError``; we re-read
    once and insert whatever is still missing, and a second collision means
    the other writer has finished the job.
    """
    generated = generate_checklist(child_id, date_of_birth, jurisdiction, tables)
    try:
        inserted = await _insert_missing(store, child_id, generated)
    except DuplicateChecklistItemError:
        logger.info("checklist insert collided, retrying", extra={"child_id": child_id})
        try:
            inserted = await _insert_missing(store, child_id, generated)
        except DuplicateChecklistItemError:
            logger.info("checklist already materialized elsewhere", extra={"child_id": child_id})
            inserted = []

    failures = 0
    if inserted and user_id and (notifier is not None or calendar_creator is not None):
        failures = await schedule_checklist_integrations(
            inserted,
            user_id=user_id,
            child_name=child_name,
            notifier=notifier,
            calendar=calendar_creator,
        )

    result = ChecklistSyncResult(
        child_id=child_id,
        generated=len(generated),
        inserted=len(inserted),
        skipped=len(generated) - len(inserted),
        integration_failures=failures,
    )
    logger.info("checklist materialized", extra=result.model_dump())
    return result


async def set_item_completed(
    store: ChecklistStore,
    item_id: str,
    completed: bool,
    clock: Optional[Clock] = None,
) -> ChecklistItem:
    completed_at = (clock or SYSTEM_CLOCK).now() if completed else None
    return await store.set_completed(item_id, completed, completed_at)


async def delete_checklist_for_child(store: ChecklistStore, child_id: str) -> int:
    removed = await store.delete_for_child(child_id)
    logger.info("checklist deleted", extra={"child_id": child_id, "removed": removed})
    return removed
