"""Integration tests against the real EventKit store.

These tests require macOS with Reminders access granted in System Settings.
They create a test list called __EVENTS_TEST__ and clean up after each test.
"""

import sys
import uuid

import pytest

pytestmark = [
    pytest.mark.anyio,
    pytest.mark.integration,
    pytest.mark.skipif(sys.platform != "darwin", reason="EventKit is macOS only"),
]

# Test list name
TEST_LIST_NAME = "__EVENTS_TEST__"


@pytest.fixture
async def eventkit_manager():
    pytest.importorskip("EventKit")
    from reminder_events import AuthorizationStatus, RemindersManager
    from reminder_events.eventkit import EventKitStore

    async with RemindersManager(EventKitStore()) as manager:
        if await manager.request_authorization() != AuthorizationStatus.AUTHORIZED:
            pytest.skip(
                "Reminders access not granted. Enable in System Settings > "
                "Privacy & Security > Reminders"
            )
        yield manager


@pytest.fixture
async def test_list(eventkit_manager):
    """Create a test list and clean it up after the test."""
    suffix = uuid.uuid4().hex[:8]
    calendar, error = await eventkit_manager.create_calendar(
        f"{TEST_LIST_NAME}_{suffix}"
    )
    assert error is None

    yield calendar

    await eventkit_manager.remove_calendar(calendar.id)


async def test_fetch_calendars_includes_test_list(eventkit_manager, test_list):
    calendars = await eventkit_manager.fetch_calendars()

    assert test_list.id in [c.id for c in calendars]


async def test_create_fetch_and_remove_reminder(eventkit_manager, test_list):
    from reminder_events import Priority

    reminder, error = await eventkit_manager.create_reminder(
        "Test Reminder", test_list, priority=Priority.MEDIUM, notes="Test notes"
    )

    assert error is None
    assert reminder.priority == Priority.MEDIUM

    fetched = await eventkit_manager.fetch_reminders_in([test_list])
    assert reminder.id in [r.id for r in fetched]

    success, error = await eventkit_manager.remove_reminder(reminder.id)
    assert success is True
    assert reminder.id not in eventkit_manager.reminder_cache


async def test_remove_unknown_calendar(eventkit_manager):
    success, error = await eventkit_manager.remove_calendar("not-a-calendar")

    assert success is False
    assert error.code == 1
