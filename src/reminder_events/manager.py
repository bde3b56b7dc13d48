"""RemindersManager: async facade over a reminder store.

Store calls run on worker threads. Caches are updated and delegates are
called back on the event loop thread that entered the manager.

Usage:
    async with RemindersManager(delegate=my_delegate) as manager:
        if await manager.request_authorization() == AuthorizationStatus.AUTHORIZED:
            calendar, error = await manager.create_calendar("Groceries")
"""

import logging
import threading
import weakref
from collections.abc import Callable, Mapping, Sequence
from contextlib import AsyncExitStack
from datetime import datetime
from types import MappingProxyType
from typing import Any, TypeVar

import anyio
from anyio.abc import TaskGroup
from anyio.from_thread import BlockingPortal

from .alarms import alarm_at, alarm_from_now, alarm_with_relative_offset
from .constants import REQUEST_TIMEOUT, WORKER_THREADS
from .exceptions import (
    CalendarNotFoundError,
    FetchCancelledError,
    NotInitializedError,
    PermissionTimeoutError,
    ReminderNotFoundError,
)
from .models import (
    Alarm,
    AuthorizationStatus,
    Calendar,
    DateComponents,
    Priority,
    Reminder,
)
from .store import EventStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

FetchCompletion = Callable[[list[Reminder]], Any]


class FetchRequest:
    """Handle for an in-flight reminder fetch.

    Await it to get the matching reminders, or pass it to
    ``RemindersManager.cancel_fetch``.

    Attributes:
        predicate: Query the fetch was started with
        token: Identifier the store returned for the fetch
        cancelled: Whether the fetch was cancelled before delivery
        timed_out: Whether the store never answered within the request
            timeout; the fetch then resolves with no reminders
    """

    def __init__(self, predicate: Any) -> None:
        self.predicate = predicate
        self.token: Any = None
        self.cancelled = False
        self.timed_out = False
        self._lock = threading.Lock()
        self._arrived = threading.Event()
        self._reminders: list[Reminder] = []
        self._delivered = anyio.Event()

    def _receive(self, reminders: list[Reminder] | None) -> None:
        """Store handler; runs on any thread. Only the first batch counts."""
        with self._lock:
            if self._arrived.is_set():
                return
            self._reminders = list(reminders or [])
            self._arrived.set()

    def _expire(self) -> bool:
        """Close the request to late batches. False if one got in first."""
        with self._lock:
            if self._arrived.is_set():
                return False
            self.timed_out = True
            self._arrived.set()
            return True

    def _abandon(self) -> None:
        # A delivered result stays delivered
        if self._delivered.is_set():
            return
        with self._lock:
            self.cancelled = True
            self._arrived.set()

    @property
    def done(self) -> bool:
        """Whether the fetch was delivered or cancelled."""
        return self._delivered.is_set()

    async def result(self) -> list[Reminder]:
        """Wait for the fetched reminders.

        Raises:
            FetchCancelledError: If the fetch was cancelled first
        """
        await self._delivered.wait()
        if self.cancelled:
            raise FetchCancelledError(f"Fetch {self.token!r} was cancelled")
        return self._reminders

    def __await__(self):
        return self.result().__await__()


class RemindersManager:
    """Facade over an ``EventStore`` with identifier caches and delegate fan-out.

    Use as an async context manager. Entering it binds result delivery to
    the current event loop thread; leaving it stops change notifications,
    abandons in-flight fetches and silences the delegate.

    Mutations never raise for store failures. They return ``(result, error)``
    and report the same pair to the delegate.

    Args:
        store: Store to wrap. Defaults to a new ``EventKitStore`` (macOS only).
        delegate: Receiver of ``RemindersDelegate`` hooks. Held weakly.
        worker_threads: Maximum concurrent store calls
        request_timeout: Seconds to wait for authorization and fetch handlers
    """

    alarm_from_now = staticmethod(alarm_from_now)
    alarm_at = staticmethod(alarm_at)
    alarm_with_relative_offset = staticmethod(alarm_with_relative_offset)

    def __init__(
        self,
        store: EventStore | None = None,
        delegate: Any = None,
        *,
        worker_threads: int = WORKER_THREADS,
        request_timeout: float = REQUEST_TIMEOUT,
    ) -> None:
        if store is None:
            from .eventkit import EventKitStore

            store = EventKitStore()
        self._store = store
        self._delegate_ref: weakref.ref | None = None
        self.delegate = delegate
        self._worker_threads = worker_threads
        self._request_timeout = request_timeout
        self._limiter: anyio.CapacityLimiter | None = None

        self._calendars: dict[str, Calendar] = {}
        self._reminders: dict[str, Reminder] = {}
        self._commit_immediately = True

        self._observer: Any = None
        self._fetches: set[FetchRequest] = set()
        self._exit_stack: AsyncExitStack | None = None
        self._portal: BlockingPortal | None = None
        self._task_group: TaskGroup | None = None
        self._loop_thread: int | None = None
        self._running = False

    # Lifecycle

    async def __aenter__(self) -> "RemindersManager":
        if self._running:
            raise RuntimeError("RemindersManager is already running")
        async with AsyncExitStack() as stack:
            self._portal = await stack.enter_async_context(BlockingPortal())
            self._task_group = await stack.enter_async_context(
                anyio.create_task_group()
            )
            self._exit_stack = stack.pop_all()
        self._loop_thread = threading.get_ident()
        self._running = True
        logger.debug("RemindersManager started")
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        """Tear down: unsubscribe from the store and drop pending deliveries."""
        if not self._running:
            return
        self._running = False

        if self._observer is not None:
            self._store.remove_change_observer(self._observer)
            self._observer = None

        abandoned = list(self._fetches)
        for request in abandoned:
            request._abandon()

        self._task_group.cancel_scope.cancel()
        await self._exit_stack.aclose()
        # Delivery tasks cancelled before they started never mark themselves
        for request in abandoned:
            request._delivered.set()
        self._fetches.clear()
        self._exit_stack = None
        self._task_group = None
        self._portal = None
        logger.debug("RemindersManager stopped")

    # Delegate and caches

    @property
    def delegate(self) -> Any:
        """Current delegate, or None if unset or already garbage collected."""
        return self._delegate_ref() if self._delegate_ref is not None else None

    @delegate.setter
    def delegate(self, delegate: Any) -> None:
        if delegate is None:
            self._delegate_ref = None
            return
        try:
            self._delegate_ref = weakref.ref(delegate)
        except TypeError:
            raise TypeError(
                f"Delegate must support weak references; add '__weakref__' to the "
                f"__slots__ of {type(delegate).__name__}"
            ) from None

    @property
    def calendar_cache(self) -> Mapping[str, Calendar]:
        """Calendars seen by this manager, by identifier (read-only view)."""
        return MappingProxyType(self._calendars)

    @property
    def reminder_cache(self) -> Mapping[str, Reminder]:
        """Reminders seen by this manager, by identifier (read-only view)."""
        return MappingProxyType(self._reminders)

    # Authorization

    @property
    def authorization_status(self) -> AuthorizationStatus:
        """Live authorization status from the store; not cached."""
        return self._store.authorization_status()

    async def request_authorization(self) -> AuthorizationStatus:
        """Ask the store for reminders access.

        On success, starts relaying store change notifications to the
        delegate's ``should_refresh`` hook.

        Returns:
            AUTHORIZED or DENIED. A request that is never answered within
            the request timeout counts as DENIED.
        """
        self._ensure_running()
        try:
            granted = await anyio.to_thread.run_sync(self._request_access_sync)
        except PermissionTimeoutError as e:
            logger.warning(str(e))
            granted = False

        if not granted:
            logger.info("Reminders access denied")
            self._notify("authorization_status_changed", AuthorizationStatus.DENIED)
            self._notify("denied_for_reminders")
            return AuthorizationStatus.DENIED

        logger.info("Reminders access granted")
        self._observe_store_changes()
        self._notify("authorization_status_changed", AuthorizationStatus.AUTHORIZED)
        self._notify("authorized_for_reminders")
        return AuthorizationStatus.AUTHORIZED

    def _request_access_sync(self) -> bool:
        """Request access and block until the store answers or timeout."""
        event = threading.Event()
        result: dict[str, Any] = {"granted": False, "error": None}

        def handler(granted: bool, error: Any) -> None:
            result["granted"] = granted
            result["error"] = error
            event.set()

        self._store.request_access(handler)

        if not event.wait(timeout=self._request_timeout):
            raise PermissionTimeoutError(self._request_timeout)

        if result["error"] is not None:
            logger.warning(f"Access request reported an error: {result['error']}")

        return bool(result["granted"])

    # Change notifications

    def _observe_store_changes(self) -> None:
        if self._observer is None and self._running:
            self._observer = self._store.add_change_observer(self._handle_store_change)
            logger.debug("Observing external store changes")

    def _handle_store_change(self) -> None:
        """Store change callback; runs on whichever thread posted the change."""
        if not self._running:
            return
        if threading.get_ident() == self._loop_thread:
            self._notify("should_refresh")
            return

        portal = self._portal
        if portal is None:
            return
        try:
            portal.start_task_soon(self._relay_store_change)
        except RuntimeError:
            # Portal stopped between the running check and the call
            logger.debug("Dropped store change notification after shutdown")

    async def _relay_store_change(self) -> None:
        self._notify("should_refresh")

    # Transactions

    @property
    def is_committing(self) -> bool:
        """Whether mutations are committed to the store immediately."""
        return self._commit_immediately

    def begin(self) -> None:
        """Defer commits until ``commit()``."""
        self._commit_immediately = False

    def reset(self) -> None:
        """Go back to committing every mutation immediately."""
        self._commit_immediately = True

    async def commit(self) -> tuple[bool, Exception | None]:
        """Leave deferred mode and flush pending changes to the store.

        No rollback happens on failure; already-sent changes stay pending
        in the store.
        """
        self._ensure_running()
        self.reset()
        _, error = await self._attempt("commit changes", self._store.commit)
        return error is None, error

    # Predicates

    def predicate_for_reminders(self, calendars: Sequence[Calendar] | None = None) -> Any:
        return self._store.predicate_for_reminders(calendars)

    def predicate_for_incomplete_reminders(
        self,
        starting: datetime | None = None,
        ending: datetime | None = None,
        calendars: Sequence[Calendar] | None = None,
    ) -> Any:
        """Incomplete reminders due in ``[starting, ending)``."""
        return self._store.predicate_for_incomplete_reminders(starting, ending, calendars)

    def predicate_for_completed_reminders(
        self,
        starting: datetime | None = None,
        ending: datetime | None = None,
        calendars: Sequence[Calendar] | None = None,
    ) -> Any:
        """Completed reminders finished in ``[starting, ending)``."""
        return self._store.predicate_for_completed_reminders(starting, ending, calendars)

    # Fetching

    async def fetch_calendars(self) -> list[Calendar]:
        """Get all reminder lists sorted by title and cache each of them."""
        self._ensure_running()
        calendars = await self._run(self._store.calendars_for_reminders)
        calendars.sort(key=lambda c: c.title)
        for calendar in calendars:
            self._calendars[calendar.id] = calendar
        return calendars

    def fetch_reminders(
        self, predicate: Any, completion: FetchCompletion | None = None
    ) -> FetchRequest:
        """Start fetching reminders matching ``predicate``.

        Returns immediately. The results are merged into the reminder cache
        and passed to ``completion`` on the event loop thread; the returned
        request can also be awaited. A store reporting no results yields an
        empty list.

        Args:
            predicate: Query built by one of the ``predicate_for_*`` methods
            completion: Optional callable receiving the list of reminders

        Returns:
            FetchRequest usable with ``cancel_fetch``
        """
        self._ensure_running()
        request = FetchRequest(predicate)
        self._fetches.add(request)
        request.token = self._store.fetch_reminders(predicate, request._receive)
        self._task_group.start_soon(self._deliver_fetch, request, completion)
        return request

    def fetch_reminders_in(
        self,
        calendars: Sequence[Calendar] | None = None,
        completion: FetchCompletion | None = None,
    ) -> FetchRequest:
        return self.fetch_reminders(self.predicate_for_reminders(calendars), completion)

    def fetch_incomplete_reminders(
        self,
        starting: datetime | None = None,
        ending: datetime | None = None,
        calendars: Sequence[Calendar] | None = None,
        completion: FetchCompletion | None = None,
    ) -> FetchRequest:
        return self.fetch_reminders(
            self.predicate_for_incomplete_reminders(starting, ending, calendars),
            completion,
        )

    def fetch_completed_reminders(
        self,
        starting: datetime | None = None,
        ending: datetime | None = None,
        calendars: Sequence[Calendar] | None = None,
        completion: FetchCompletion | None = None,
    ) -> FetchRequest:
        return self.fetch_reminders(
            self.predicate_for_completed_reminders(starting, ending, calendars),
            completion,
        )

    def cancel_fetch(self, request: FetchRequest) -> None:
        """Cancel a fetch at the store and drop its pending delivery.

        A fetch that was already delivered keeps its result.
        """
        self._store.cancel_fetch(request.token)
        request._abandon()

    async def _deliver_fetch(
        self, request: FetchRequest, completion: FetchCompletion | None
    ) -> None:
        try:
            arrived = request._arrived.is_set() or await anyio.to_thread.run_sync(
                request._arrived.wait, self._request_timeout, abandon_on_cancel=True
            )
            if not arrived and request._expire():
                logger.warning(
                    f"Fetch {request.token!r} got no results within "
                    f"{self._request_timeout} seconds"
                )
            if not request.cancelled:
                for reminder in request._reminders:
                    self._reminders[reminder.id] = reminder
        finally:
            self._fetches.discard(request)
            request._delivered.set()

        if not request.cancelled and completion is not None and self._running:
            try:
                completion(request._reminders)
            except Exception:
                logger.exception(f"Completion for fetch {request.token!r} raised")

    # Calendar mutations

    async def create_calendar(
        self, title: str
    ) -> tuple[Calendar | None, Exception | None]:
        """Create a reminder list in the store's default reminders source.

        Returns:
            (calendar, None) on success, (None, error) on failure
        """
        self._ensure_running()
        commit = self._commit_immediately

        def save() -> Calendar:
            calendar = Calendar(title=title, source=self._store.default_reminders_source())
            return self._store.save_calendar(calendar, commit)

        calendar, error = await self._attempt(f"create calendar {title!r}", save)
        if calendar is not None:
            self._calendars[calendar.id] = calendar
        self._notify("calendar_created", calendar, error)
        return calendar, error

    async def update_calendar(self, calendar: Calendar) -> tuple[bool, Exception | None]:
        """Save changes made to ``calendar``.

        The delegate receives the calendar whether or not the save worked.
        """
        self._ensure_running()
        saved, error = await self._attempt(
            f"update calendar {calendar.id}",
            self._store.save_calendar,
            calendar,
            self._commit_immediately,
        )
        if error is None:
            self._calendars[saved.id] = saved
        self._notify("calendar_updated", saved if error is None else calendar, error)
        return error is None, error

    async def remove_calendar(self, identifier: str) -> tuple[bool, Exception | None]:
        """Remove a reminder list by identifier.

        An unknown identifier returns ``(False, CalendarNotFoundError)``
        straight away, without a worker hop or a delegate call.
        """
        self._ensure_running()
        calendar = self._store.calendar_with_identifier(identifier)
        if calendar is None:
            error = CalendarNotFoundError(identifier)
            logger.warning(str(error))
            return False, error

        _, error = await self._attempt(
            f"remove calendar {identifier}",
            self._store.remove_calendar,
            calendar,
            self._commit_immediately,
        )
        if error is None:
            self._calendars.pop(calendar.id, None)
        self._notify("calendar_removed", calendar, error)
        return error is None, error

    # Reminder mutations

    async def create_reminder(
        self,
        title: str,
        calendar: Calendar,
        start_date_components: DateComponents | None = None,
        due_date_components: DateComponents | None = None,
        priority: Priority | int = Priority.NONE,
        notes: str | None = None,
        alarms: Sequence[Alarm] | None = None,
    ) -> tuple[Reminder | None, Exception | None]:
        """Create a reminder in ``calendar``.

        The store assigns the reminder's identifier on its first save.

        Args:
            title: The title/name of the reminder
            calendar: List the reminder belongs to
            start_date_components: When work on the reminder starts
            due_date_components: When the reminder is due
            priority: Priority level (NONE=0, HIGH=1, MEDIUM=5, LOW=9)
            notes: Additional notes
            alarms: Alarms to attach

        Returns:
            (reminder, None) on success, (None, error) on failure
        """
        self._ensure_running()
        commit = self._commit_immediately

        def save() -> Reminder:
            reminder = Reminder(
                title=title,
                calendar_id=calendar.id,
                start_date_components=start_date_components,
                due_date_components=due_date_components,
                priority=Priority(priority),
                notes=notes,
                alarms=list(alarms or []),
            )
            return self._store.save_reminder(reminder, commit)

        reminder, error = await self._attempt(f"create reminder {title!r}", save)
        if reminder is not None:
            self._reminders[reminder.id] = reminder
        self._notify("reminder_created", reminder, error)
        return reminder, error

    async def update_reminder(self, reminder: Reminder) -> tuple[bool, Exception | None]:
        """Save changes made to ``reminder``.

        The delegate receives the reminder whether or not the save worked.
        """
        self._ensure_running()
        saved, error = await self._attempt(
            f"update reminder {reminder.id}",
            self._store.save_reminder,
            reminder,
            self._commit_immediately,
        )
        if error is None:
            self._reminders[saved.id] = saved
        self._notify("reminder_updated", saved if error is None else reminder, error)
        return error is None, error

    async def remove_reminder(self, identifier: str) -> tuple[bool, Exception | None]:
        """Remove a reminder by identifier.

        An unknown identifier returns ``(False, ReminderNotFoundError)``
        straight away, without a worker hop or a delegate call.
        """
        self._ensure_running()
        reminder = self._store.reminder_with_identifier(identifier)
        if reminder is None:
            error = ReminderNotFoundError(identifier)
            logger.warning(str(error))
            return False, error

        _, error = await self._attempt(
            f"remove reminder {identifier}",
            self._store.remove_reminder,
            reminder,
            self._commit_immediately,
        )
        if error is None:
            self._reminders.pop(reminder.id, None)
        self._notify("reminder_removed", reminder, error)
        return error is None, error

    # Private Helpers

    def _ensure_running(self) -> None:
        if not self._running:
            raise NotInitializedError()

    def _get_limiter(self) -> anyio.CapacityLimiter:
        """Get the capacity limiter, creating if needed.

        Calendar listing, mutations and commits go through the limiter.
        The authorization status query, identifier lookups before a removal,
        predicate building and starting or cancelling a fetch call the store
        directly on the event loop thread. EventKit answers those from its
        own cache without blocking.
        """
        if self._limiter is None:
            self._limiter = anyio.CapacityLimiter(self._worker_threads)
        return self._limiter

    async def _run(self, fn: Callable[..., T], *args: Any) -> T:
        """Run a blocking store call on a worker thread."""
        return await anyio.to_thread.run_sync(fn, *args, limiter=self._get_limiter())

    async def _attempt(
        self, action: str, fn: Callable[..., T], *args: Any
    ) -> tuple[T | None, Exception | None]:
        """Run a store call; failures are returned, not raised."""
        try:
            return await self._run(fn, *args), None
        except Exception as e:
            logger.warning(f"Failed to {action}: {e}")
            return None, e

    def _notify(self, hook: str, *args: Any) -> None:
        """Call a delegate hook if the manager and delegate are still around."""
        if not self._running:
            return
        delegate = self.delegate
        if delegate is None:
            return
        method = getattr(delegate, hook, None)
        if method is not None:
            method(self, *args)
