"""Tests for the in-memory store and calendar model."""

import pytest
from pydantic import ValidationError

from reminder_events import Calendar, InMemoryEventStore, Reminder, StoreError


def test_calendar_color_is_normalized():
    assert Calendar(title="Home", color="f53").color == "#FF5533"


def test_calendar_rejects_bad_color():
    with pytest.raises(ValidationError):
        Calendar(title="Home", color="#GGGGGG")


def test_store_assigns_identifiers():
    store = InMemoryEventStore()

    calendar = store.save_calendar(Calendar(title="Inbox", source="local"), True)
    reminder = store.save_reminder(
        Reminder(title="Ping", calendar_id=calendar.id), True
    )

    assert calendar.id and calendar.id == calendar.id.upper()
    assert reminder.id != calendar.id
    assert reminder.creation_date is not None


def test_store_returns_snapshots():
    """Test that mutating a returned model does not change the store."""
    store = InMemoryEventStore()
    calendar = store.save_calendar(Calendar(title="Inbox", source="local"), True)

    calendar.title = "Changed"

    assert store.calendar_with_identifier(calendar.id).title == "Inbox"


def test_removing_calendar_removes_its_reminders():
    store = InMemoryEventStore()
    calendar = store.save_calendar(Calendar(title="Inbox", source="local"), True)
    reminder = store.save_reminder(
        Reminder(title="Ping", calendar_id=calendar.id), True
    )

    store.remove_calendar(calendar, True)

    assert store.reminder_with_identifier(reminder.id) is None


def test_store_rejects_unknown_removal():
    store = InMemoryEventStore()

    with pytest.raises(StoreError):
        store.remove_reminder(Reminder(id="x", title="Ghost", calendar_id="y"), True)


def test_empty_fetch_reports_none():
    store = InMemoryEventStore()
    results = []

    token = store.fetch_reminders(store.predicate_for_reminders(None), results.append)

    assert results == [None]
    assert token is not None


def test_reopening_a_reminder_clears_completion_date():
    store = InMemoryEventStore()
    calendar = store.save_calendar(Calendar(title="Inbox", source="local"), True)
    reminder = store.save_reminder(
        Reminder(title="Ping", calendar_id=calendar.id, is_completed=True), True
    )
    assert reminder.completion_date is not None

    reminder.is_completed = False
    reopened = store.save_reminder(reminder, True)

    assert reopened.completion_date is None
