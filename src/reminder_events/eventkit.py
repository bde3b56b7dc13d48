"""EventKit-backed reminder store for macOS.

Requires the pyobjc EventKit, Cocoa and Quartz frameworks. The manager
imports this module only when it is created without an explicit store.
"""

import functools
import logging
from collections.abc import Callable, Sequence
from datetime import datetime
from typing import Any, TypeVar

import objc
from EventKit import (
    EKAuthorizationStatusAuthorized,
    EKCalendar,
    EKEntityTypeReminder,
    EKEventStore,
    EKEventStoreChangedNotification,
    EKReminder,
    EKSourceTypeCalDAV,
    EKSourceTypeLocal,
)
from Foundation import NSURL, NSNotificationCenter

from .converters import (
    alarm_to_ek_alarm,
    components_to_nscomponents,
    datetime_to_nsdate,
    ek_calendar_to_calendar,
    ek_reminder_to_reminder,
    hex_to_cgcolor,
)
from .exceptions import EventKitError, NoWritableSourceError
from .models import AuthorizationStatus, Calendar, Reminder
from .store import AccessHandler, ChangeCallback, FetchHandler

logger = logging.getLogger(__name__)

T = TypeVar("T")


def autoreleased(fn: Callable[..., T]) -> Callable[..., T]:
    """Run an EventKit call inside its own autorelease pool."""

    @functools.wraps(fn)
    def wrapper(*args: Any, **kwargs: Any) -> T:
        with objc.autorelease_pool():
            return fn(*args, **kwargs)

    return wrapper


def _check_result(result: Any, message: str) -> None:
    """Raise EventKitError unless a ``...:error:`` call succeeded.

    PyObjC returns ``(success, NSError)`` for methods with an error
    out-parameter.
    """
    if isinstance(result, tuple):
        success, error = result[0], result[1] if len(result) > 1 else None
    else:
        success, error = bool(result), None

    if not success:
        if error is not None:
            raise EventKitError.from_nserror(error)
        raise EventKitError(message)


class EventKitStore:
    """``EventStore`` implementation wrapping one EKEventStore."""

    def __init__(self) -> None:
        self._store: EKEventStore = EKEventStore.alloc().init()

    # Authorization

    def authorization_status(self) -> AuthorizationStatus:
        status = EKEventStore.authorizationStatusForEntityType_(EKEntityTypeReminder)
        if status == EKAuthorizationStatusAuthorized:
            return AuthorizationStatus.AUTHORIZED
        return AuthorizationStatus.DENIED

    def request_access(self, handler: AccessHandler) -> None:
        self._store.requestFullAccessToRemindersWithCompletion_(handler)

    # Change notifications

    def add_change_observer(self, callback: ChangeCallback) -> Any:
        def on_change(notification: Any) -> None:
            callback()

        return NSNotificationCenter.defaultCenter().addObserverForName_object_queue_usingBlock_(
            EKEventStoreChangedNotification, self._store, None, on_change
        )

    def remove_change_observer(self, observer: Any) -> None:
        NSNotificationCenter.defaultCenter().removeObserver_(observer)

    # Calendars

    @autoreleased
    def default_reminders_source(self) -> str | None:
        source = self._find_writable_source()
        return str(source.sourceIdentifier()) if source else None

    @autoreleased
    def calendars_for_reminders(self) -> list[Calendar]:
        calendars = self._store.calendarsForEntityType_(EKEntityTypeReminder)
        return [ek_calendar_to_calendar(cal) for cal in calendars or []]

    @autoreleased
    def calendar_with_identifier(self, identifier: str) -> Calendar | None:
        calendar = self._store.calendarWithIdentifier_(identifier)
        return ek_calendar_to_calendar(calendar) if calendar else None

    @autoreleased
    def save_calendar(self, calendar: Calendar, commit: bool) -> Calendar:
        """Create or update a reminder list.

        Raises:
            EventKitError: If the list is unknown or the save fails
            NoWritableSourceError: If a new list has no usable source
        """
        if calendar.id:
            ek_calendar = self._store.calendarWithIdentifier_(calendar.id)
            if not ek_calendar:
                raise EventKitError(f"Calendar does not exist: {calendar.id}")
        else:
            ek_calendar = EKCalendar.calendarForEntityType_eventStore_(
                EKEntityTypeReminder, self._store
            )
            source = self._source_with_identifier(calendar.source)
            if source is None:
                raise NoWritableSourceError()
            ek_calendar.setSource_(source)

        ek_calendar.setTitle_(calendar.title)
        if calendar.color:
            ek_calendar.setCGColor_(hex_to_cgcolor(calendar.color))

        _check_result(
            self._store.saveCalendar_commit_error_(ek_calendar, commit, None),
            f"Failed to save list: {calendar.title}",
        )
        return ek_calendar_to_calendar(ek_calendar)

    @autoreleased
    def remove_calendar(self, calendar: Calendar, commit: bool) -> None:
        ek_calendar = self._store.calendarWithIdentifier_(calendar.id)
        if not ek_calendar:
            raise EventKitError(f"Calendar does not exist: {calendar.id}")
        _check_result(
            self._store.removeCalendar_commit_error_(ek_calendar, commit, None),
            f"Failed to delete list: {calendar.id}",
        )

    # Reminders

    @autoreleased
    def reminder_with_identifier(self, identifier: str) -> Reminder | None:
        reminder = self._ek_reminder(identifier)
        return ek_reminder_to_reminder(reminder) if reminder else None

    @autoreleased
    def save_reminder(self, reminder: Reminder, commit: bool) -> Reminder:
        """Create or update a reminder from its model.

        Raises:
            EventKitError: If the reminder or its list is unknown, or the save fails
        """
        if reminder.id:
            ek_reminder = self._ek_reminder(reminder.id)
            if ek_reminder is None:
                raise EventKitError(f"Reminder does not exist: {reminder.id}")
        else:
            ek_reminder = EKReminder.reminderWithEventStore_(self._store)

        ek_calendar = self._store.calendarWithIdentifier_(reminder.calendar_id)
        if not ek_calendar:
            raise EventKitError(f"Calendar does not exist: {reminder.calendar_id}")

        ek_reminder.setTitle_(reminder.title)
        ek_reminder.setCalendar_(ek_calendar)
        ek_reminder.setNotes_(reminder.notes)
        ek_reminder.setURL_(NSURL.URLWithString_(reminder.url) if reminder.url else None)
        ek_reminder.setStartDateComponents_(
            components_to_nscomponents(reminder.start_date_components)
        )
        ek_reminder.setDueDateComponents_(
            components_to_nscomponents(reminder.due_date_components)
        )
        ek_reminder.setPriority_(int(reminder.priority))
        ek_reminder.setCompleted_(reminder.is_completed)
        ek_reminder.setAlarms_([alarm_to_ek_alarm(a) for a in reminder.alarms] or None)

        _check_result(
            self._store.saveReminder_commit_error_(ek_reminder, commit, None),
            f"Failed to save reminder: {reminder.title}",
        )
        return ek_reminder_to_reminder(ek_reminder)

    @autoreleased
    def remove_reminder(self, reminder: Reminder, commit: bool) -> None:
        ek_reminder = self._ek_reminder(reminder.id)
        if ek_reminder is None:
            raise EventKitError(f"Reminder does not exist: {reminder.id}")
        _check_result(
            self._store.removeReminder_commit_error_(ek_reminder, commit, None),
            f"Failed to delete reminder: {reminder.id}",
        )

    # Queries

    def predicate_for_reminders(self, calendars: Sequence[Calendar] | None) -> Any:
        return self._store.predicateForRemindersInCalendars_(
            self._ek_calendars(calendars)
        )

    def predicate_for_incomplete_reminders(
        self,
        starting: datetime | None,
        ending: datetime | None,
        calendars: Sequence[Calendar] | None,
    ) -> Any:
        return self._store.predicateForIncompleteRemindersWithDueDateStarting_ending_calendars_(
            datetime_to_nsdate(starting) if starting else None,
            datetime_to_nsdate(ending) if ending else None,
            self._ek_calendars(calendars),
        )

    def predicate_for_completed_reminders(
        self,
        starting: datetime | None,
        ending: datetime | None,
        calendars: Sequence[Calendar] | None,
    ) -> Any:
        return self._store.predicateForCompletedRemindersWithCompletionDateStarting_ending_calendars_(
            datetime_to_nsdate(starting) if starting else None,
            datetime_to_nsdate(ending) if ending else None,
            self._ek_calendars(calendars),
        )

    def fetch_reminders(self, predicate: Any, handler: FetchHandler) -> Any:
        def completion(reminders: Any) -> None:
            # Convert INSIDE the EventKit callback thread
            with objc.autorelease_pool():
                if reminders is None:
                    handler(None)
                else:
                    handler([ek_reminder_to_reminder(r) for r in reminders])

        return self._store.fetchRemindersMatchingPredicate_completion_(
            predicate, completion
        )

    def cancel_fetch(self, token: Any) -> None:
        self._store.cancelFetchRequest_(token)

    # Transactions

    @autoreleased
    def commit(self) -> None:
        _check_result(self._store.commit_(None), "Failed to commit changes")

    # Private Helpers

    def _ek_reminder(self, identifier: str) -> Any:
        item = self._store.calendarItemWithIdentifier_(identifier)
        if item and isinstance(item, EKReminder):
            return item
        return None

    def _ek_calendars(self, calendars: Sequence[Calendar] | None) -> list[Any] | None:
        """Look up EKCalendars for models; None means all calendars."""
        if calendars is None:
            return None
        found = []
        for calendar in calendars:
            ek_calendar = self._store.calendarWithIdentifier_(calendar.id)
            if ek_calendar:
                found.append(ek_calendar)
            else:
                logger.debug(f"Skipping unknown calendar in predicate: {calendar.id}")
        return found

    def _source_with_identifier(self, identifier: str | None) -> Any:
        if identifier is None:
            return self._find_writable_source()
        for source in self._store.sources():
            if source.sourceIdentifier() == identifier:
                return source
        return None

    def _find_writable_source(self) -> Any:
        """Get a writable source for creating new calendars.

        Priority: default calendar's source > iCloud/CalDAV > Local > any

        Returns:
            EKSource instance, or None if no writable source is available
        """
        default_cal = self._store.defaultCalendarForNewReminders()
        if default_cal and default_cal.allowsContentModifications():
            return default_cal.source()

        def writable(source: Any) -> bool:
            cals = source.calendarsForEntityType_(EKEntityTypeReminder)
            return bool(cals) and any(c.allowsContentModifications() for c in cals)

        sources = list(self._store.sources())
        for source_type in (EKSourceTypeCalDAV, EKSourceTypeLocal):
            for source in sources:
                if source.sourceType() == source_type and writable(source):
                    return source

        for source in sources:
            if writable(source):
                return source

        return None
