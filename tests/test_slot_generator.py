"""
Tests for slot generation.
"""

import logging

import pytest

from lessonscheduler.domain.models import WorkingHoursConfig
from lessonscheduler.domain.slot_generator import SlotGenerator
from lessonscheduler.domain.time_of_day import parse_time_of_day


class TestSlotGenerator:
    """Tests for SlotGenerator."""

    def test_hourly_slots(self):
        """A 9-5 day with hourly slots has eight start times."""
        config = WorkingHoursConfig(start_time="9:00 AM", end_time="5:00 PM")

        slots = SlotGenerator().generate(config)

        assert len(slots) == 8
        assert slots[0].label == "9:00 AM"
        assert slots[-1].label == "4:00 PM"

    def test_end_time_is_exclusive(self):
        """The end of working hours is never offered as a start time."""
        config = WorkingHoursConfig(
            start_time="9:00 AM",
            end_time="11:00 AM",
            slot_interval_minutes=30,
        )

        slots = SlotGenerator().generate(config)

        assert [slot.label for slot in slots] == ["9:00 AM", "9:30 AM", "10:00 AM", "10:30 AM"]

    def test_interval_not_dividing_window(self):
        """The last slot may start less than one interval before the end."""
        config = WorkingHoursConfig(
            start_time="9:00 AM",
            end_time="11:00 AM",
            slot_interval_minutes=45,
        )

        slots = SlotGenerator().generate(config)

        assert [slot.minute_of_day for slot in slots] == [540, 585, 630]

    def test_unparseable_times_fall_back_to_default(self, caplog):
        """Broken profile times give hourly slots from 9 AM to 6 PM."""
        config = WorkingHoursConfig(start_time="nine", end_time="6:00 PM", slot_interval_minutes=15)

        with caplog.at_level(logging.WARNING):
            slots = SlotGenerator().generate(config)

        assert len(slots) == 9
        assert slots[0].label == "9:00 AM"
        assert slots[-1].label == "5:00 PM"
        assert "using default slots" in caplog.text

    @pytest.mark.parametrize(
        "start, end",
        [("5:00 PM", "9:00 AM"), ("9:00 AM", "9:00 AM")],
    )
    def test_empty_or_inverted_window(self, start, end):
        """No slots, and no error, when the window is empty."""
        config = WorkingHoursConfig(start_time=start, end_time=end)

        assert SlotGenerator().generate(config) == []

    def test_generation_is_repeatable(self):
        config = WorkingHoursConfig(start_time="7:15 AM", end_time="8:00 PM", slot_interval_minutes=20)
        generator = SlotGenerator()

        assert generator.generate(config) == generator.generate(config)

    @pytest.mark.parametrize(
        "start, end, interval",
        [
            ("12:00 AM", "11:59 PM", 15),
            ("6:30 AM", "9:45 PM", 45),
            ("9:00 AM", "8:00 PM", 90),
            ("10:10 AM", "10:11 AM", 120),
            ("1:00 PM", "3:00 PM", 7),
        ],
    )
    def test_slots_are_spaced_and_bounded(self, start, end, interval):
        """Slots increase strictly by the interval and stay in [start, end)."""
        config = WorkingHoursConfig(start_time=start, end_time=end, slot_interval_minutes=interval)
        start_minute = parse_time_of_day(start)
        end_minute = parse_time_of_day(end)

        minutes = [slot.minute_of_day for slot in SlotGenerator().generate(config)]

        assert minutes[0] == start_minute
        assert all(start_minute <= minute < end_minute for minute in minutes)
        assert all(b - a == interval for a, b in zip(minutes, minutes[1:]))
        # One more step would reach or pass the end
        assert minutes[-1] + interval >= end_minute
