"""Exceptions for the reminder events facade."""

from .constants import CALENDAR_NOT_FOUND_CODE, ERROR_DOMAIN, REMINDER_NOT_FOUND_CODE


class RemindersError(Exception):
    """Base exception for reminder events operations."""

    pass


class NotInitializedError(RemindersError):
    """Raised when the manager is used outside of ``async with``."""

    def __init__(self) -> None:
        super().__init__(
            "RemindersManager is not running. Use it as an async context manager."
        )


class PermissionTimeoutError(RemindersError):
    """Permission request timed out waiting for user response."""

    def __init__(self, timeout_seconds: float = 60) -> None:
        super().__init__(
            f"Permission request timed out after {timeout_seconds} seconds. "
            "Please respond to the permission dialog and try again."
        )
        self.timeout_seconds = timeout_seconds


class NotFoundError(RemindersError):
    """A calendar or reminder identifier has no entity in the store.

    Attributes:
        resource_type: Kind of entity that was looked up
        resource_id: The identifier that was not found
        domain: Error domain shared by all facade-raised errors
        code: Numeric code distinguishing the entity kind
    """

    domain = ERROR_DOMAIN
    code = 0

    def __init__(self, resource_type: str, resource_id: str) -> None:
        super().__init__(
            f"Cannot remove {resource_type.lower()} with identifier {resource_id}."
        )
        self.resource_type = resource_type
        self.resource_id = resource_id


class CalendarNotFoundError(NotFoundError):
    """Calendar (reminder list) not found."""

    code = CALENDAR_NOT_FOUND_CODE

    def __init__(self, resource_id: str) -> None:
        super().__init__("Calendar", resource_id)


class ReminderNotFoundError(NotFoundError):
    """Reminder not found."""

    code = REMINDER_NOT_FOUND_CODE

    def __init__(self, resource_id: str) -> None:
        super().__init__("Reminder", resource_id)


class NoWritableSourceError(RemindersError):
    """No writable calendar source available for reminders.

    This can happen if all calendar accounts are read-only or
    if no reminder accounts are configured.
    """

    def __init__(self) -> None:
        super().__init__(
            "No writable source available for reminders. "
            "Please configure a reminder account in System Settings > Internet Accounts."
        )


class StoreError(RemindersError):
    """A save, remove or commit was rejected by the underlying store."""

    def __init__(
        self,
        message: str,
        domain: str | None = None,
        code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.domain = domain
        self.code = code


class EventKitError(StoreError):
    """General EventKit operation error with NSError details."""

    @classmethod
    def from_nserror(cls, error: object) -> "EventKitError":
        """Create from an NSError object."""
        if error is None:
            return cls("Unknown EventKit error")

        try:
            domain = str(error.domain()) if hasattr(error, "domain") else None
            code = int(error.code()) if hasattr(error, "code") else None
            description = (
                str(error.localizedDescription())
                if hasattr(error, "localizedDescription")
                else str(error)
            )
        except Exception:
            return cls(str(error))

        return cls(description, domain=domain, code=code)


class InvalidAlarmError(RemindersError, ValueError):
    """Alarm date components do not resolve to a real date."""

    pass


class FetchCancelledError(RemindersError):
    """The fetch request was cancelled before its results were delivered."""

    pass
