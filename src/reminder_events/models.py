"""Pydantic models for calendars, reminders and alarms."""

from datetime import datetime, timedelta
from enum import Enum, IntEnum

from pydantic import BaseModel, Field, field_validator, model_validator


class Priority(IntEnum):
    """Reminder priority levels matching Apple's EKReminderPriority.

    Values match the Apple Reminders app UI:
    - NONE (0): No priority flag
    - HIGH (1): !!! in UI
    - MEDIUM (5): !! in UI
    - LOW (9): ! in UI
    """

    NONE = 0
    HIGH = 1
    MEDIUM = 5
    LOW = 9


class AuthorizationStatus(str, Enum):
    """Whether the process may read and write reminders."""

    AUTHORIZED = "authorized"
    DENIED = "denied"


class DateComponents(BaseModel):
    """A calendar date broken into optional fields.

    Reminders keep their start and due dates as components rather than
    timestamps, so a reminder can be due on a day without a time.
    """

    year: int | None = Field(default=None, description="Calendar year")
    month: int | None = Field(default=None, description="Month of year (1-12)")
    day: int | None = Field(default=None, description="Day of month (1-31)")
    hour: int | None = Field(default=None, description="Hour of day (0-23)")
    minute: int | None = Field(default=None, description="Minute (0-59)")
    second: int | None = Field(default=None, description="Second (0-59)")

    @field_validator("month")
    @classmethod
    def validate_month(cls, v: int | None) -> int | None:
        """Validate month is in valid range."""
        if v is not None and not 1 <= v <= 12:
            raise ValueError("Month must be between 1 and 12")
        return v

    @field_validator("day")
    @classmethod
    def validate_day(cls, v: int | None) -> int | None:
        """Validate day is in valid range."""
        if v is not None and not 1 <= v <= 31:
            raise ValueError("Day must be between 1 and 31")
        return v

    @field_validator("hour")
    @classmethod
    def validate_hour(cls, v: int | None) -> int | None:
        """Validate hour is in valid range."""
        if v is not None and not 0 <= v <= 23:
            raise ValueError("Hour must be between 0 and 23")
        return v

    @field_validator("minute", "second")
    @classmethod
    def validate_minute_second(cls, v: int | None) -> int | None:
        """Validate minute and second are in valid range."""
        if v is not None and not 0 <= v <= 59:
            raise ValueError("Minute and second must be between 0 and 59")
        return v

    @classmethod
    def from_datetime(cls, dt: datetime) -> "DateComponents":
        """Build fully specified components from a datetime."""
        return cls(
            year=dt.year,
            month=dt.month,
            day=dt.day,
            hour=dt.hour,
            minute=dt.minute,
            second=dt.second,
        )

    def to_datetime(self) -> datetime | None:
        """Convert to a datetime.

        Returns None if year, month or day is missing. Missing time
        fields default to 0.
        """
        if self.year is None or self.month is None or self.day is None:
            return None
        return datetime(
            year=self.year,
            month=self.month,
            day=self.day,
            hour=self.hour or 0,
            minute=self.minute or 0,
            second=self.second or 0,
        )

    def resolve(self, reference: datetime | None = None) -> datetime:
        """Resolve to a datetime against a reference moment.

        Missing date fields are taken from ``reference`` (now, by default);
        missing time fields are 0.

        Raises:
            ValueError: If the combined fields do not form a real date
        """
        reference = reference or datetime.now()
        return datetime(
            year=self.year if self.year is not None else reference.year,
            month=self.month if self.month is not None else reference.month,
            day=self.day if self.day is not None else reference.day,
            hour=self.hour or 0,
            minute=self.minute or 0,
            second=self.second or 0,
        )


class Alarm(BaseModel):
    """A trigger attached to a reminder.

    Either fires at an absolute moment or at an offset from the owning
    reminder's start, which the store interprets.
    """

    absolute_date: datetime | None = Field(
        default=None, description="Moment the alarm fires"
    )
    relative_offset: timedelta | None = Field(
        default=None, description="Offset from the reminder's start date"
    )

    @model_validator(mode="after")
    def validate_single_trigger(self) -> "Alarm":
        """Validate exactly one trigger is set."""
        if (self.absolute_date is None) == (self.relative_offset is None):
            raise ValueError(
                "Alarm needs exactly one of absolute_date or relative_offset"
            )
        return self


class Calendar(BaseModel):
    """A Reminders list (calendar in EventKit terms)."""

    id: str | None = Field(
        default=None, description="Identifier assigned by the store on first save"
    )
    title: str = Field(description="Display title of the list")
    source: str | None = Field(
        default=None, description="Identifier of the account that owns the list"
    )
    color: str | None = Field(
        default=None, description="Hex color code (e.g., #FF5733)"
    )

    @field_validator("color")
    @classmethod
    def validate_hex_color(cls, v: str | None) -> str | None:
        """Validate hex color format."""
        if v is None:
            return None
        v = v.strip()
        if not v.startswith("#"):
            v = f"#{v}"
        hex_part = v[1:]
        if len(hex_part) not in (3, 6):
            raise ValueError("Color must be 3 or 6 hex digits")
        try:
            int(hex_part, 16)
        except ValueError as e:
            raise ValueError("Color must contain valid hex digits") from e
        # Normalize to 6 digits uppercase
        if len(hex_part) == 3:
            hex_part = "".join(c * 2 for c in hex_part)
        return f"#{hex_part.upper()}"


class Reminder(BaseModel):
    """A reminder item."""

    id: str | None = Field(
        default=None, description="Identifier assigned by the store on first save"
    )
    title: str = Field(description="Title/name of the reminder")
    calendar_id: str = Field(description="ID of the list this reminder belongs to")
    notes: str | None = Field(default=None, description="Additional notes/description")
    url: str | None = Field(default=None, description="Associated URL")
    start_date_components: DateComponents | None = Field(
        default=None, description="When work on the reminder starts"
    )
    due_date_components: DateComponents | None = Field(
        default=None, description="When the reminder is due"
    )
    priority: Priority = Field(
        default=Priority.NONE,
        description="Priority level (0=none, 1=high, 5=medium, 9=low)",
    )
    alarms: list[Alarm] = Field(default_factory=list, description="Alarms to fire")
    is_completed: bool = Field(
        default=False, description="Whether the reminder is done"
    )
    completion_date: datetime | None = Field(
        default=None, description="When the reminder was completed"
    )
    creation_date: datetime | None = Field(
        default=None, description="When the reminder was created"
    )
    last_modified_date: datetime | None = Field(
        default=None, description="When the reminder was last modified"
    )
