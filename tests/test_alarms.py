"""Tests for alarm constructors and date components."""

import logging
from datetime import datetime, timedelta

import pytest
from pydantic import ValidationError

from reminder_events import (
    Alarm,
    DateComponents,
    InvalidAlarmError,
    RemindersManager,
    alarm_at,
    alarm_from_now,
    alarm_with_relative_offset,
    configure_logging,
)

REFERENCE = datetime(2031, 6, 15, 8, 30)


def test_alarm_from_now():
    before = datetime.now()
    alarm = alarm_from_now(3600)
    after = datetime.now()

    assert alarm.relative_offset is None
    assert before + timedelta(hours=1) <= alarm.absolute_date <= after + timedelta(hours=1)


def test_alarm_from_now_accepts_timedelta():
    alarm = alarm_from_now(timedelta(days=-1))

    assert alarm.absolute_date < datetime.now()


def test_alarm_at_full_components():
    alarm = alarm_at(day=3, month=2, year=2032, hour=14, minute=5, second=9)

    assert alarm.absolute_date == datetime(2032, 2, 3, 14, 5, 9)


def test_alarm_at_fills_missing_fields():
    """Test that missing date fields come from the reference and time fields are 0."""
    alarm = alarm_at(day=20, hour=18, reference=REFERENCE)

    assert alarm.absolute_date == datetime(2031, 6, 20, 18, 0, 0)


@pytest.mark.parametrize(
    "components",
    [
        {"month": 13},
        {"day": 31, "month": 2, "year": 2031},
        {"hour": 24},
    ],
)
def test_alarm_at_rejects_invalid_dates(components):
    with pytest.raises(InvalidAlarmError):
        alarm_at(reference=REFERENCE, **components)


def test_invalid_alarm_error_is_value_error():
    with pytest.raises(ValueError):
        alarm_at(month=13)


def test_alarm_with_relative_offset():
    alarm = alarm_with_relative_offset(-900)

    assert alarm.absolute_date is None
    assert alarm.relative_offset == timedelta(minutes=-15)


def test_manager_exposes_alarm_builders():
    assert RemindersManager.alarm_with_relative_offset(60).relative_offset == timedelta(
        minutes=1
    )


def test_alarm_needs_exactly_one_trigger():
    with pytest.raises(ValidationError):
        Alarm()
    with pytest.raises(ValidationError):
        Alarm(absolute_date=REFERENCE, relative_offset=timedelta(0))


def test_date_components_round_trip():
    components = DateComponents.from_datetime(REFERENCE)

    assert components.to_datetime() == REFERENCE


def test_partial_date_components_have_no_datetime():
    assert DateComponents(month=4, day=1).to_datetime() is None


def test_configure_logging_uses_level(monkeypatch):
    calls = {}
    monkeypatch.setattr(logging, "basicConfig", lambda **kwargs: calls.update(kwargs))

    configure_logging("DEBUG")

    assert calls["level"] == "DEBUG"
    assert "%(levelname)s" in calls["format"]
