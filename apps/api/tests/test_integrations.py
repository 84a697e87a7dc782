import asyncio
import logging
from datetime import date

from pam_api.checklist import generate_checklist
from pam_api.integrations import (
    CalendarSettings,
    SupabaseCalendarQueue,
    SupabaseNotificationScheduler,
    build_calendar_event,
    schedule_checklist_integrations,
)

ITEMS = generate_checklist("c1", date(2024, 1, 1))


class FakeSupabase:
    def __init__(self):
        self.calls = []

    async def rpc(self, fn, payload=None):
        self.calls.append(("rpc", fn, payload))
        return None

    async def insert(self, table, payload, *, params=None):
        self.calls.append(("insert", table, payload))
        return [payload]


class ExplodingNotifier:
    async def schedule(self, item_id, user_id, title, body, due_date):
        raise TimeoutError(item_id)


def test_calendar_event_starts_at_nine():
    item = next(i for i in ITEMS if i.id == "c1-immunisation-6-weeks")
    event = build_calendar_event(item, "Mia", CalendarSettings())
    assert event["summary"] == "6 Week Immunisations - Mia"
    assert event["start"]["dateTime"] == "2024-02-12T09:00:00"
    assert event["end"]["dateTime"] == "2024-02-12T10:00:00"
    assert event["colorId"] == "11"
    assert [o["minutes"] for o in event["reminders"]["overrides"]] == [1440, 60]
    assert "Checklist Item ID: c1-immunisation-6-weeks" in event["description"]


def test_notification_scheduler_calls_rpc():
    fake = FakeSupabase()
    asyncio.run(SupabaseNotificationScheduler(fake).schedule("c1-x", "u1", "Title", "Body", date(2024, 2, 12)))
    assert fake.calls == [
        (
            "rpc",
            "schedule_checklist_notification",
            {
                "p_checklist_item_id": "c1-x",
                "p_user_id": "u1",
                "p_title": "Title",
                "p_body": "Body",
                "p_due_date": "2024-02-12",
            },
        )
    ]


def test_calendar_queue_respects_categories():
    fake = FakeSupabase()
    queue = SupabaseCalendarQueue(fake, CalendarSettings(include_categories=("checkup",)))
    checkup = next(i for i in ITEMS if i.category.value == "checkup")
    milestone = next(i for i in ITEMS if i.category.value == "milestone")

    asyncio.run(queue.create_event(checkup, "u1", "Mia"))
    asyncio.run(queue.create_event(milestone, "u1", "Mia"))

    assert len(fake.calls) == 1
    _, table, payload = fake.calls[0]
    assert table == "calendar_events"
    assert payload["checklist_item_id"] == checkup.id
    assert payload["is_synced"] is False


def test_failures_are_counted_and_logged(caplog):
    with caplog.at_level(logging.WARNING, logger="pam_api.integrations"):
        failures = asyncio.run(
            schedule_checklist_integrations(ITEMS[:3], user_id="u1", child_name="Mia", notifier=ExplodingNotifier())
        )
    assert failures == 3
    assert sum(1 for record in caplog.records if record.getMessage() == "checklist integration failed") == 3


def test_nothing_configured_is_a_no_op():
    assert asyncio.run(schedule_checklist_integrations(ITEMS, user_id="u1", child_name="Mia")) == 0
