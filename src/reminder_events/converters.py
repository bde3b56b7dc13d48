"""Converter functions for EventKit <-> model types."""

from datetime import datetime, timedelta
from typing import Any

from AppKit import NSColor
from EventKit import EKAlarm
from Foundation import NSDate, NSDateComponents
from Quartz import CGColorGetComponents, CGColorGetNumberOfComponents

from .models import Alarm, Calendar, DateComponents, Priority, Reminder

# Magic constant for "not set" in NSDateComponents
NSUndefinedDateComponent = 0x7FFFFFFF  # NSIntegerMax


# Date/Time Conversions


def datetime_to_nsdate(dt: datetime) -> NSDate:
    """Convert Python datetime to NSDate."""
    return NSDate.dateWithTimeIntervalSince1970_(dt.timestamp())


def nsdate_to_datetime(nsdate: Any) -> datetime | None:
    """Convert NSDate to Python datetime."""
    if nsdate is None:
        return None
    return datetime.fromtimestamp(nsdate.timeIntervalSince1970())


def components_to_nscomponents(components: DateComponents | None) -> Any:
    """Convert DateComponents to NSDateComponents, leaving unset fields undefined."""
    if components is None:
        return None
    ns_components = NSDateComponents.alloc().init()
    if components.year is not None:
        ns_components.setYear_(components.year)
    if components.month is not None:
        ns_components.setMonth_(components.month)
    if components.day is not None:
        ns_components.setDay_(components.day)
    if components.hour is not None:
        ns_components.setHour_(components.hour)
    if components.minute is not None:
        ns_components.setMinute_(components.minute)
    if components.second is not None:
        ns_components.setSecond_(components.second)
    return ns_components


def nscomponents_to_components(ns_components: Any) -> DateComponents | None:
    """Convert NSDateComponents to DateComponents.

    Fields equal to NSUndefinedDateComponent become None.
    """
    if ns_components is None:
        return None

    def defined(value: int) -> int | None:
        return None if value == NSUndefinedDateComponent else int(value)

    return DateComponents(
        year=defined(ns_components.year()),
        month=defined(ns_components.month()),
        day=defined(ns_components.day()),
        hour=defined(ns_components.hour()),
        minute=defined(ns_components.minute()),
        second=defined(ns_components.second()),
    )


# Color Conversions


def hex_to_cgcolor(hex_string: str) -> Any:
    """Convert hex color string to CGColor for EKCalendar.

    Args:
        hex_string: Hex color like "#FF5733" or "FF5733"

    Returns:
        CGColor object suitable for EKCalendar.CGColor
    """
    hex_string = hex_string.lstrip("#")
    if len(hex_string) == 3:
        hex_string = "".join(c * 2 for c in hex_string)

    r = int(hex_string[0:2], 16) / 255.0
    g = int(hex_string[2:4], 16) / 255.0
    b = int(hex_string[4:6], 16) / 255.0

    nscolor = NSColor.colorWithCalibratedRed_green_blue_alpha_(r, g, b, 1.0)
    return nscolor.CGColor()


def cgcolor_to_hex(cgcolor: Any) -> str | None:
    """Convert CGColor back to hex string.

    Note: Colors may shift ~30 units per RGB channel during iCloud sync
    due to color space conversion.
    """
    if cgcolor is None:
        return None

    num_components = CGColorGetNumberOfComponents(cgcolor)
    components = CGColorGetComponents(cgcolor)

    if num_components >= 3:
        r, g, b = (int(c * 255) for c in components[:3])
        return f"#{r:02X}{g:02X}{b:02X}"
    if num_components == 2:
        gray = int(components[0] * 255)
        return f"#{gray:02X}{gray:02X}{gray:02X}"

    return None


# Alarm Conversions


def alarm_to_ek_alarm(alarm: Alarm) -> Any:
    """Convert an Alarm to an EKAlarm."""
    if alarm.absolute_date is not None:
        return EKAlarm.alarmWithAbsoluteDate_(datetime_to_nsdate(alarm.absolute_date))
    return EKAlarm.alarmWithRelativeOffset_(alarm.relative_offset.total_seconds())


def ek_alarm_to_alarm(ek_alarm: Any) -> Alarm:
    """Convert an EKAlarm to an Alarm."""
    absolute_date = ek_alarm.absoluteDate()
    if absolute_date is not None:
        return Alarm(absolute_date=nsdate_to_datetime(absolute_date))
    return Alarm(relative_offset=timedelta(seconds=ek_alarm.relativeOffset()))


# EventKit object -> model conversion


def ek_calendar_to_calendar(calendar: Any) -> Calendar:
    """Convert EKCalendar (reminder list) to a Calendar.

    IMPORTANT: Call this on the thread that obtained the object to prevent
    thread-affinity issues with ObjC proxies.
    """
    source = calendar.source()
    return Calendar(
        id=str(calendar.calendarIdentifier()),
        title=str(calendar.title()) if calendar.title() else "",
        source=str(source.sourceIdentifier()) if source else None,
        color=cgcolor_to_hex(calendar.CGColor()),
    )


def ek_reminder_to_reminder(reminder: Any) -> Reminder:
    """Convert EKReminder to a Reminder.

    IMPORTANT: Call this on the thread that obtained the object to prevent
    thread-affinity issues with ObjC proxies.
    """
    url = reminder.URL()

    try:
        priority = Priority(reminder.priority())
    except ValueError:
        priority = Priority.NONE

    return Reminder(
        id=str(reminder.calendarItemIdentifier()),
        title=str(reminder.title()) if reminder.title() else "",
        calendar_id=str(reminder.calendar().calendarIdentifier()),
        notes=str(reminder.notes()) if reminder.notes() else None,
        url=str(url.absoluteString()) if url else None,
        start_date_components=nscomponents_to_components(
            reminder.startDateComponents()
        ),
        due_date_components=nscomponents_to_components(reminder.dueDateComponents()),
        priority=priority,
        alarms=[ek_alarm_to_alarm(a) for a in (reminder.alarms() or [])],
        is_completed=bool(reminder.isCompleted()),
        completion_date=nsdate_to_datetime(reminder.completionDate()),
        creation_date=nsdate_to_datetime(reminder.creationDate()),
        last_modified_date=nsdate_to_datetime(reminder.lastModifiedDate()),
    )
