"""
Domain models for working hours, recurrence rules and lesson bookings.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, List, Optional, Tuple

import pendulum
from pendulum import Date, DateTime

from .time_of_day import format_time_of_day

WEEKDAY_NAMES: Tuple[str, ...] = (
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
)


def weekday_name(day: Date) -> str:
    """Return the English weekday name of a date, e.g. "Monday"."""
    return WEEKDAY_NAMES[day.weekday()]


def combine_local(day: Date, minute_of_day: int) -> DateTime:
    """
    Build a naive wall-clock DateTime from a calendar day and a minute of day.

    No timezone is attached, so the value reads the same on any host.
    """
    hour, minute = divmod(minute_of_day, 60)
    return pendulum.naive(day.year, day.month, day.day, hour, minute)


@dataclass(frozen=True)
class WorkingHoursConfig:
    """
    A coach's bookable window, as stored on the coach profile.

    Times are 12-hour wall-clock strings ("9:00 AM"); they are parsed lazily
    so that a malformed profile value can fall back to default slots.
    """
    start_time: str
    end_time: str
    slot_interval_minutes: int = 60
    working_days: FrozenSet[str] = field(default_factory=lambda: frozenset(WEEKDAY_NAMES))

    def __post_init__(self):
        if self.slot_interval_minutes <= 0:
            raise ValueError(
                f"slot_interval_minutes must be greater than zero, got {self.slot_interval_minutes}"
            )
        unknown = set(self.working_days) - set(WEEKDAY_NAMES)
        if unknown:
            raise ValueError(f"Unknown weekday name(s): {', '.join(sorted(unknown))}")
        # Accept any iterable of names but store an immutable set
        object.__setattr__(self, "working_days", frozenset(self.working_days))

    def is_working_day(self, day: Date) -> bool:
        """Check if a given date falls on a working day."""
        return weekday_name(day) in self.working_days


@dataclass(frozen=True)
class TimeSlot:
    """One bookable lesson start time."""
    minute_of_day: int

    @property
    def label(self) -> str:
        return format_time_of_day(self.minute_of_day)

    def __str__(self) -> str:
        return self.label


@dataclass(frozen=True)
class SlotAvailability:
    """A slot annotated with whether it is still free on a given day."""
    slot: TimeSlot
    available: bool


class RecurrencePattern(str, Enum):
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    TRIWEEKLY = "triweekly"
    MONTHLY = "monthly"


class BookingSource(str, Enum):
    SINGLE = "single"
    RECURRING_MEMBER = "recurring-member"
    REPLACEMENT = "replacement"


@dataclass(frozen=True)
class RecurrenceRequest:
    """
    A recurrence rule anchored at the first lesson.

    The anchor's time of day is carried to every occurrence; ``end_date`` is
    an inclusive calendar bound.
    """
    anchor: DateTime
    end_date: Date
    pattern: RecurrencePattern = RecurrencePattern.WEEKLY
    interval: int = 1

    @property
    def anchor_date(self) -> Date:
        return pendulum.date(self.anchor.year, self.anchor.month, self.anchor.day)

    @property
    def anchor_minute(self) -> int:
        return self.anchor.hour * 60 + self.anchor.minute


@dataclass(frozen=True)
class Occurrence:
    """One concrete lesson date produced by expanding a recurrence rule."""
    date: Date
    minute_of_day: int

    @property
    def local_datetime(self) -> DateTime:
        return combine_local(self.date, self.minute_of_day)


@dataclass(frozen=True)
class LessonBooking:
    """
    A lesson on a coach's calendar.

    ``local_datetime`` is the coach's wall-clock start time and carries no
    UTC offset.
    """
    coach_id: str
    client_id: str
    local_datetime: DateTime
    source: BookingSource = BookingSource.SINGLE
    series_id: Optional[str] = None
    title: str = "Lesson"

    def is_on(self, day: Date) -> bool:
        """Check if the lesson falls on the given calendar day."""
        start = self.local_datetime
        return (start.year, start.month, start.day) == (day.year, day.month, day.day)


@dataclass(frozen=True)
class ExistingSchedule:
    """Snapshot of a coach's booked lessons for one query window."""
    bookings: Tuple[LessonBooking, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "bookings", tuple(self.bookings))

    def __iter__(self):
        return iter(self.bookings)

    def __len__(self) -> int:
        return len(self.bookings)

    def bookings_on(self, day: Date) -> List[LessonBooking]:
        """Return the lessons booked on a given day, in start order."""
        return sorted(
            (booking for booking in self.bookings if booking.is_on(day)),
            key=lambda booking: booking.local_datetime,
        )


@dataclass(frozen=True)
class LessonData:
    """Lesson details for replacing a scheduled workout."""
    time: str
    title: str
    description: str = ""


@dataclass(frozen=True)
class RecurrenceOptions:
    """Recurrence part of a schedule request."""
    end_date: Optional[Date]
    pattern: RecurrencePattern = RecurrencePattern.WEEKLY
    interval: int = 1


@dataclass(frozen=True)
class ReplacementTarget:
    """Workout-replacement part of a schedule request."""
    program_id: str
    title: str = "Lesson"
    description: str = ""


@dataclass(frozen=True)
class ScheduleRequest:
    """
    A booking request as submitted by the scheduling form.

    Exactly one operation is performed: a replacement when ``replacement`` is
    set, a recurring series when ``recurrence`` is set, otherwise a single
    lesson.
    """
    coach_id: str
    client_id: str
    selected_date: Optional[Date] = None
    selected_time: Optional[str] = None
    client_name: Optional[str] = None
    recurrence: Optional[RecurrenceOptions] = None
    replacement: Optional[ReplacementTarget] = None
    send_email: bool = True
    timezone: str = "America/New_York"
    override_working_days: bool = False


@dataclass(frozen=True)
class RecurringScheduleResult:
    """What the persistence layer confirmed for a recurring batch."""
    total_lessons: int
    series_id: str
    skipped: Tuple[DateTime, ...] = ()
