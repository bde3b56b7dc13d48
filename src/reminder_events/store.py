"""Interface of the reminder store wrapped by the manager.

The store owns all authoritative state. ``RemindersManager`` only calls
these methods, caches what they return and relays the outcome. Two
implementations ship with the package: ``EventKitStore`` for macOS and
``InMemoryEventStore`` for everything else.
"""

from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, Protocol

from .models import AuthorizationStatus, Calendar, Reminder

AccessHandler = Callable[[bool, Any], None]
FetchHandler = Callable[[list[Reminder] | None], None]
ChangeCallback = Callable[[], None]


class EventStore(Protocol):
    """Reminder and calendar store as consumed by the manager.

    Blocking methods are called from worker threads. ``request_access`` and
    ``fetch_reminders`` return immediately and report through their handler,
    which may run on any thread. Failed saves, removals and commits raise.
    """

    # Authorization

    def authorization_status(self) -> AuthorizationStatus: ...

    def request_access(self, handler: AccessHandler) -> None: ...

    # Change notifications

    def add_change_observer(self, callback: ChangeCallback) -> Any: ...

    def remove_change_observer(self, observer: Any) -> None: ...

    # Calendars

    def default_reminders_source(self) -> str | None: ...

    def calendars_for_reminders(self) -> list[Calendar]: ...

    def calendar_with_identifier(self, identifier: str) -> Calendar | None: ...

    def save_calendar(self, calendar: Calendar, commit: bool) -> Calendar: ...

    def remove_calendar(self, calendar: Calendar, commit: bool) -> None: ...

    # Reminders

    def reminder_with_identifier(self, identifier: str) -> Reminder | None: ...

    def save_reminder(self, reminder: Reminder, commit: bool) -> Reminder: ...

    def remove_reminder(self, reminder: Reminder, commit: bool) -> None: ...

    # Queries

    def predicate_for_reminders(self, calendars: Sequence[Calendar] | None) -> Any: ...

    def predicate_for_incomplete_reminders(
        self,
        starting: datetime | None,
        ending: datetime | None,
        calendars: Sequence[Calendar] | None,
    ) -> Any: ...

    def predicate_for_completed_reminders(
        self,
        starting: datetime | None,
        ending: datetime | None,
        calendars: Sequence[Calendar] | None,
    ) -> Any: ...

    def fetch_reminders(self, predicate: Any, handler: FetchHandler) -> Any: ...

    def cancel_fetch(self, token: Any) -> None: ...

    # Transactions

    def commit(self) -> None: ...
