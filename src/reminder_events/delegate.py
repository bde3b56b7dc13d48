"""Delegate hooks fired by ``RemindersManager``.

Subclass ``RemindersDelegate`` and override only the hooks you care about.
Any object works as a delegate; hooks it does not define are skipped.
Every hook runs on the event loop thread and receives the manager first.

The manager holds its delegate through a weak reference, so keep the
delegate alive yourself. Classes with ``__slots__`` must list
``__weakref__``.
"""

from typing import TYPE_CHECKING

from .models import AuthorizationStatus, Calendar, Reminder

if TYPE_CHECKING:
    from .manager import RemindersManager


class RemindersDelegate:
    """No-op base class for manager delegates."""

    def authorization_status_changed(
        self, manager: "RemindersManager", status: AuthorizationStatus
    ) -> None:
        """Authorization was requested and resolved to ``status``."""

    def should_refresh(self, manager: "RemindersManager") -> None:
        """The store changed outside this manager; cached entities may be stale."""

    def authorized_for_reminders(self, manager: "RemindersManager") -> None:
        pass

    def denied_for_reminders(self, manager: "RemindersManager") -> None:
        pass

    def calendar_created(
        self,
        manager: "RemindersManager",
        calendar: Calendar | None,
        error: Exception | None,
    ) -> None:
        pass

    def calendar_updated(
        self, manager: "RemindersManager", calendar: Calendar, error: Exception | None
    ) -> None:
        """Fired on success and on failure; ``calendar`` is what was saved."""

    def calendar_removed(
        self, manager: "RemindersManager", calendar: Calendar, error: Exception | None
    ) -> None:
        pass

    def reminder_created(
        self,
        manager: "RemindersManager",
        reminder: Reminder | None,
        error: Exception | None,
    ) -> None:
        pass

    def reminder_updated(
        self, manager: "RemindersManager", reminder: Reminder, error: Exception | None
    ) -> None:
        """Fired on success and on failure; ``reminder`` is what was saved."""

    def reminder_removed(
        self, manager: "RemindersManager", reminder: Reminder, error: Exception | None
    ) -> None:
        pass
