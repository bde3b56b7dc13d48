"""Async facade over the macOS Reminders store."""

from .alarms import alarm_at, alarm_from_now, alarm_with_relative_offset
from .delegate import RemindersDelegate
from .exceptions import (
    CalendarNotFoundError,
    EventKitError,
    FetchCancelledError,
    InvalidAlarmError,
    NotFoundError,
    NotInitializedError,
    NoWritableSourceError,
    PermissionTimeoutError,
    ReminderNotFoundError,
    RemindersError,
    StoreError,
)
from .manager import FetchRequest, RemindersManager
from .memory import InMemoryEventStore, ReminderQuery
from .models import (
    Alarm,
    AuthorizationStatus,
    Calendar,
    DateComponents,
    Priority,
    Reminder,
)
from .store import EventStore
from .utils import configure_logging

__version__ = "0.1.0"

__all__ = [
    "__version__",
    "configure_logging",
    # Manager
    "RemindersManager",
    "RemindersDelegate",
    "FetchRequest",
    # Stores
    "EventStore",
    "InMemoryEventStore",
    "ReminderQuery",
    # Models
    "Priority",
    "AuthorizationStatus",
    "DateComponents",
    "Alarm",
    "Calendar",
    "Reminder",
    # Alarms
    "alarm_from_now",
    "alarm_at",
    "alarm_with_relative_offset",
    # Exceptions
    "RemindersError",
    "NotInitializedError",
    "PermissionTimeoutError",
    "NotFoundError",
    "CalendarNotFoundError",
    "ReminderNotFoundError",
    "NoWritableSourceError",
    "StoreError",
    "EventKitError",
    "InvalidAlarmError",
    "FetchCancelledError",
]
