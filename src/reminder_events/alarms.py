"""Alarm constructors."""

from datetime import datetime, timedelta

from pydantic import ValidationError

from .exceptions import InvalidAlarmError
from .models import Alarm, DateComponents


def _as_timedelta(offset: float | timedelta) -> timedelta:
    if isinstance(offset, timedelta):
        return offset
    return timedelta(seconds=offset)


def alarm_from_now(offset: float | timedelta) -> Alarm:
    """Create an alarm firing ``offset`` (seconds or timedelta) from now."""
    return Alarm(absolute_date=datetime.now() + _as_timedelta(offset))


def alarm_at(
    day: int | None = None,
    month: int | None = None,
    year: int | None = None,
    hour: int | None = None,
    minute: int | None = None,
    second: int | None = None,
    reference: datetime | None = None,
) -> Alarm:
    """Create an alarm at an absolute date given as components.

    Any subset of components may be given. Missing date fields come from
    ``reference`` (now, by default) and missing time fields are 0.

    Args:
        day: Day of month
        month: Month of year
        year: Calendar year
        hour: Hour of day
        minute: Minute
        second: Second
        reference: Moment that supplies missing date fields

    Returns:
        Alarm with an absolute date

    Raises:
        InvalidAlarmError: If the components do not resolve to a real date
    """
    try:
        components = DateComponents(
            year=year, month=month, day=day, hour=hour, minute=minute, second=second
        )
        fire_date = components.resolve(reference)
    except (ValidationError, ValueError) as e:
        raise InvalidAlarmError(f"Date components do not form a valid date: {e}") from e
    return Alarm(absolute_date=fire_date)


def alarm_with_relative_offset(offset: float | timedelta) -> Alarm:
    """Create an alarm relative to the owning reminder's start date.

    Negative offsets fire before the start.
    """
    return Alarm(relative_offset=_as_timedelta(offset))
