"""
Domain layer - Pure scheduling logic without external dependencies.
"""

from .availability import AvailabilityChecker
from .exceptions import (
    InvalidRecurrence,
    ParseError,
    RecurrenceTooLarge,
    SchedulingError,
    SchedulingFailed,
    ValidationError,
)
from .models import (
    BookingSource,
    ExistingSchedule,
    LessonBooking,
    LessonData,
    Occurrence,
    RecurrenceOptions,
    RecurrencePattern,
    RecurrenceRequest,
    RecurringScheduleResult,
    ReplacementTarget,
    ScheduleRequest,
    SlotAvailability,
    TimeSlot,
    WorkingHoursConfig,
)
from .recurrence import RecurrenceExpander
from .slot_generator import SlotGenerator
from .time_of_day import format_time_of_day, parse_time_of_day

__all__ = [
    "AvailabilityChecker",
    "BookingSource",
    "ExistingSchedule",
    "InvalidRecurrence",
    "LessonBooking",
    "LessonData",
    "Occurrence",
    "ParseError",
    "RecurrenceExpander",
    "RecurrenceOptions",
    "RecurrencePattern",
    "RecurrenceRequest",
    "RecurrenceTooLarge",
    "RecurringScheduleResult",
    "ReplacementTarget",
    "ScheduleRequest",
    "SchedulingError",
    "SchedulingFailed",
    "SlotAvailability",
    "SlotGenerator",
    "TimeSlot",
    "ValidationError",
    "WorkingHoursConfig",
    "format_time_of_day",
    "parse_time_of_day",
]
