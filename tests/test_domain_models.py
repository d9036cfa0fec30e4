"""
Tests for domain models.
"""

import pendulum
import pytest

from lessonscheduler.domain.models import (
    ExistingSchedule,
    LessonBooking,
    Occurrence,
    RecurrencePattern,
    RecurrenceRequest,
    TimeSlot,
    WorkingHoursConfig,
    combine_local,
    weekday_name,
)


class TestHelpers:
    """Tests for the date helpers."""

    def test_weekday_name(self):
        assert weekday_name(pendulum.date(2024, 1, 1)) == "Monday"
        assert weekday_name(pendulum.date(2024, 3, 10)) == "Sunday"

    def test_combine_local_is_naive(self):
        """Combined values carry no timezone."""
        result = combine_local(pendulum.date(2024, 3, 10), 870)

        assert result.tzinfo is None
        assert (result.year, result.month, result.day, result.hour, result.minute) == (2024, 3, 10, 14, 30)


class TestWorkingHoursConfig:
    """Tests for WorkingHoursConfig model."""

    def test_defaults_to_every_day(self):
        config = WorkingHoursConfig(start_time="9:00 AM", end_time="5:00 PM")

        assert config.slot_interval_minutes == 60
        assert len(config.working_days) == 7
        assert config.is_working_day(pendulum.date(2024, 3, 10))

    def test_working_days_stored_as_frozenset(self):
        config = WorkingHoursConfig(
            start_time="9:00 AM",
            end_time="5:00 PM",
            working_days=["Monday", "Wednesday"],
        )

        assert config.working_days == frozenset({"Monday", "Wednesday"})
        assert config.is_working_day(pendulum.date(2024, 1, 3))
        assert not config.is_working_day(pendulum.date(2024, 1, 2))

    def test_invalid_interval_raises_error(self):
        with pytest.raises(ValueError, match="greater than zero"):
            WorkingHoursConfig(start_time="9:00 AM", end_time="5:00 PM", slot_interval_minutes=0)

    def test_unknown_weekday_raises_error(self):
        with pytest.raises(ValueError, match="Funday"):
            WorkingHoursConfig(start_time="9:00 AM", end_time="5:00 PM", working_days={"Funday"})


class TestTimeSlot:
    """Tests for TimeSlot model."""

    def test_label(self):
        slot = TimeSlot(minute_of_day=870)

        assert slot.label == "2:30 PM"
        assert str(slot) == "2:30 PM"


class TestRecurrenceRequest:
    """Tests for RecurrenceRequest model."""

    def test_anchor_parts(self):
        request = RecurrenceRequest(
            anchor=pendulum.naive(2024, 3, 10, 14, 30),
            end_date=pendulum.date(2024, 6, 1),
            pattern=RecurrencePattern.BIWEEKLY,
        )

        assert request.anchor_date == pendulum.date(2024, 3, 10)
        assert request.anchor_minute == 870
        assert request.interval == 1

    def test_pattern_values(self):
        assert RecurrencePattern("monthly") is RecurrencePattern.MONTHLY
        assert [pattern.value for pattern in RecurrencePattern] == [
            "weekly",
            "biweekly",
            "triweekly",
            "monthly",
        ]


class TestOccurrence:
    """Tests for Occurrence model."""

    def test_local_datetime(self):
        occurrence = Occurrence(date=pendulum.date(2024, 2, 29), minute_of_day=16 * 60)

        assert occurrence.local_datetime == pendulum.naive(2024, 2, 29, 16, 0)


class TestExistingSchedule:
    """Tests for ExistingSchedule model."""

    def test_bookings_on_day_sorted(self):
        late = LessonBooking("coach-1", "client-1", pendulum.naive(2024, 3, 10, 16, 0))
        early = LessonBooking("coach-1", "client-2", pendulum.naive(2024, 3, 10, 9, 0))
        other = LessonBooking("coach-1", "client-3", pendulum.naive(2024, 3, 11, 9, 0))
        schedule = ExistingSchedule(bookings=[late, other, early])

        assert schedule.bookings_on(pendulum.date(2024, 3, 10)) == [early, late]
        assert len(schedule) == 3
        assert isinstance(schedule.bookings, tuple)

    def test_is_on_uses_wall_clock_date(self):
        booking = LessonBooking("coach-1", "client-1", pendulum.naive(2024, 3, 10, 23, 30))

        assert booking.is_on(pendulum.date(2024, 3, 10))
        assert not booking.is_on(pendulum.date(2024, 3, 11))
