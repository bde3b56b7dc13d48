"""Pytest configuration and fixtures for reminder events tests."""

import sys
import threading
from pathlib import Path
from typing import Any

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from reminder_events import InMemoryEventStore, RemindersDelegate, RemindersManager  # noqa: E402


class RecordingDelegate(RemindersDelegate):
    """Delegate that records every hook call as ``(hook, args)``."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, tuple[Any, ...]]] = []
        self.refreshed = threading.Event()

    def hooks(self) -> list[str]:
        return [hook for hook, _ in self.calls]

    def authorization_status_changed(self, manager, status):
        self.calls.append(("authorization_status_changed", (status,)))

    def should_refresh(self, manager):
        self.calls.append(("should_refresh", ()))
        self.refreshed.set()

    def authorized_for_reminders(self, manager):
        self.calls.append(("authorized_for_reminders", ()))

    def denied_for_reminders(self, manager):
        self.calls.append(("denied_for_reminders", ()))

    def calendar_created(self, manager, calendar, error):
        self.calls.append(("calendar_created", (calendar, error)))

    def calendar_updated(self, manager, calendar, error):
        self.calls.append(("calendar_updated", (calendar, error)))

    def calendar_removed(self, manager, calendar, error):
        self.calls.append(("calendar_removed", (calendar, error)))

    def reminder_created(self, manager, reminder, error):
        self.calls.append(("reminder_created", (reminder, error)))

    def reminder_updated(self, manager, reminder, error):
        self.calls.append(("reminder_updated", (reminder, error)))

    def reminder_removed(self, manager, reminder, error):
        self.calls.append(("reminder_removed", (reminder, error)))


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def store() -> InMemoryEventStore:
    """Provide an empty in-memory store that grants access."""
    return InMemoryEventStore()


@pytest.fixture
def delegate() -> RecordingDelegate:
    return RecordingDelegate()


@pytest.fixture
async def manager(store, delegate):
    """Provide a running manager over the in-memory store."""
    async with RemindersManager(store, delegate, request_timeout=5) as manager:
        yield manager
