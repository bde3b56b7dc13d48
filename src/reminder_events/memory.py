"""In-process reminder store.

Implements the ``EventStore`` interface without EventKit, so the manager
can run on any platform and in tests.
"""

import itertools
import logging
import threading
import uuid
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from .exceptions import StoreError
from .models import AuthorizationStatus, Calendar, Reminder
from .store import AccessHandler, ChangeCallback, FetchHandler

logger = logging.getLogger(__name__)


def _new_identifier() -> str:
    return str(uuid.uuid4()).upper()


def _in_range(
    moment: datetime | None, starting: datetime | None, ending: datetime | None
) -> bool:
    if starting is None and ending is None:
        return True
    if moment is None:
        return False
    if starting is not None and moment < starting:
        return False
    if ending is not None and moment >= ending:
        return False
    return True


class ReminderQuery(BaseModel):
    """Predicate understood by ``InMemoryEventStore.fetch_reminders``."""

    kind: Literal["all", "incomplete", "completed"] = "all"
    starting: datetime | None = None
    ending: datetime | None = None
    calendar_ids: list[str] | None = Field(
        default=None, description="Limit to these lists; None means all lists"
    )

    def matches(self, reminder: Reminder) -> bool:
        """Whether ``reminder`` satisfies this query."""
        if self.calendar_ids is not None and reminder.calendar_id not in self.calendar_ids:
            return False
        if self.kind == "incomplete":
            if reminder.is_completed:
                return False
            due = (
                reminder.due_date_components.to_datetime()
                if reminder.due_date_components
                else None
            )
            return _in_range(due, self.starting, self.ending)
        if self.kind == "completed":
            if not reminder.is_completed:
                return False
            return _in_range(reminder.completion_date, self.starting, self.ending)
        return True


class InMemoryEventStore:
    """Thread-safe in-memory implementation of ``EventStore``.

    Changes are visible as soon as they are saved. The ``commit`` flag only
    decides whether a save counts as flushed right away or stays pending
    until ``commit()``, which is what ``flush_count`` and
    ``pending_changes`` report.

    Args:
        granted: Answer given to access requests
        source: Identifier of the account new lists are created in
    """

    def __init__(self, granted: bool = True, source: str | None = "local") -> None:
        self._lock = threading.RLock()
        self._granted = granted
        self._status = AuthorizationStatus.DENIED
        self._source = source
        self._calendars: dict[str, Calendar] = {}
        self._reminders: dict[str, Reminder] = {}
        self._observers: dict[int, ChangeCallback] = {}
        self._observer_ids = itertools.count(1)
        self._fetch_tokens = itertools.count(1)
        self.flush_count = 0
        self.pending_changes = 0
        self.cancelled_fetches: list[Any] = []

    # Authorization

    def authorization_status(self) -> AuthorizationStatus:
        return self._status

    def request_access(self, handler: AccessHandler) -> None:
        self._status = (
            AuthorizationStatus.AUTHORIZED if self._granted else AuthorizationStatus.DENIED
        )
        handler(self._granted, None)

    # Change notifications

    def add_change_observer(self, callback: ChangeCallback) -> int:
        with self._lock:
            observer = next(self._observer_ids)
            self._observers[observer] = callback
        return observer

    def remove_change_observer(self, observer: int) -> None:
        with self._lock:
            self._observers.pop(observer, None)

    @property
    def observer_count(self) -> int:
        """Number of registered change observers."""
        return len(self._observers)

    def notify_external_change(self) -> None:
        """Tell observers the store was changed by someone else.

        Observers are called on the calling thread.
        """
        with self._lock:
            callbacks = list(self._observers.values())
        logger.debug(f"Notifying {len(callbacks)} observer(s) of external change")
        for callback in callbacks:
            callback()

    # Calendars

    def default_reminders_source(self) -> str | None:
        return self._source

    def calendars_for_reminders(self) -> list[Calendar]:
        with self._lock:
            return [c.model_copy(deep=True) for c in self._calendars.values()]

    def calendar_with_identifier(self, identifier: str) -> Calendar | None:
        with self._lock:
            calendar = self._calendars.get(identifier)
            return calendar.model_copy(deep=True) if calendar else None

    def save_calendar(self, calendar: Calendar, commit: bool) -> Calendar:
        with self._lock:
            if calendar.source is None:
                raise StoreError(f"Calendar has no source: {calendar.title}")
            if calendar.id is not None and calendar.id not in self._calendars:
                raise StoreError(f"Calendar does not exist: {calendar.id}")
            saved = calendar.model_copy(
                update={"id": calendar.id or _new_identifier()}, deep=True
            )
            self._calendars[saved.id] = saved
            self._record_change(commit)
            return saved.model_copy(deep=True)

    def remove_calendar(self, calendar: Calendar, commit: bool) -> None:
        with self._lock:
            if self._calendars.pop(calendar.id, None) is None:
                raise StoreError(f"Calendar does not exist: {calendar.id}")
            # Removing a list removes the reminders in it
            for reminder_id in [
                r.id for r in self._reminders.values() if r.calendar_id == calendar.id
            ]:
                del self._reminders[reminder_id]
            self._record_change(commit)

    # Reminders

    def reminder_with_identifier(self, identifier: str) -> Reminder | None:
        with self._lock:
            reminder = self._reminders.get(identifier)
            return reminder.model_copy(deep=True) if reminder else None

    def save_reminder(self, reminder: Reminder, commit: bool) -> Reminder:
        with self._lock:
            if reminder.calendar_id not in self._calendars:
                raise StoreError(f"Calendar does not exist: {reminder.calendar_id}")
            now = datetime.now()
            previous = self._reminders.get(reminder.id) if reminder.id else None
            if reminder.id is not None and previous is None:
                raise StoreError(f"Reminder does not exist: {reminder.id}")

            completion_date = reminder.completion_date
            if reminder.is_completed and completion_date is None:
                completion_date = now
            elif not reminder.is_completed:
                completion_date = None

            saved = reminder.model_copy(
                update={
                    "id": reminder.id or _new_identifier(),
                    "completion_date": completion_date,
                    "creation_date": previous.creation_date if previous else now,
                    "last_modified_date": now,
                },
                deep=True,
            )
            self._reminders[saved.id] = saved
            self._record_change(commit)
            return saved.model_copy(deep=True)

    def remove_reminder(self, reminder: Reminder, commit: bool) -> None:
        with self._lock:
            if self._reminders.pop(reminder.id, None) is None:
                raise StoreError(f"Reminder does not exist: {reminder.id}")
            self._record_change(commit)

    # Queries

    def predicate_for_reminders(
        self, calendars: Sequence[Calendar] | None
    ) -> ReminderQuery:
        return ReminderQuery(calendar_ids=self._calendar_ids(calendars))

    def predicate_for_incomplete_reminders(
        self,
        starting: datetime | None,
        ending: datetime | None,
        calendars: Sequence[Calendar] | None,
    ) -> ReminderQuery:
        return ReminderQuery(
            kind="incomplete",
            starting=starting,
            ending=ending,
            calendar_ids=self._calendar_ids(calendars),
        )

    def predicate_for_completed_reminders(
        self,
        starting: datetime | None,
        ending: datetime | None,
        calendars: Sequence[Calendar] | None,
    ) -> ReminderQuery:
        return ReminderQuery(
            kind="completed",
            starting=starting,
            ending=ending,
            calendar_ids=self._calendar_ids(calendars),
        )

    def fetch_reminders(self, predicate: ReminderQuery, handler: FetchHandler) -> int:
        """Run ``predicate`` and hand the matches to ``handler``.

        Like EventKit, an empty result is reported as None.
        """
        token = next(self._fetch_tokens)
        with self._lock:
            matches = [
                r.model_copy(deep=True)
                for r in self._reminders.values()
                if predicate.matches(r)
            ]
        handler(matches or None)
        return token

    def cancel_fetch(self, token: Any) -> None:
        self.cancelled_fetches.append(token)

    # Transactions

    def commit(self) -> None:
        with self._lock:
            self.flush_count += 1
            self.pending_changes = 0

    # Private Helpers

    def _record_change(self, commit: bool) -> None:
        if commit:
            self.flush_count += 1
        else:
            self.pending_changes += 1

    @staticmethod
    def _calendar_ids(calendars: Sequence[Calendar] | None) -> list[str] | None:
        if calendars is None:
            return None
        return [c.id for c in calendars if c.id is not None]
