"""
Generation of bookable lesson start times from a coach's working hours.
"""

import logging
from typing import List

from .exceptions import ParseError
from .models import TimeSlot, WorkingHoursConfig
from .time_of_day import parse_time_of_day

logger = logging.getLogger(__name__)

DEFAULT_START_MINUTE = 9 * 60   # 9:00 AM
DEFAULT_END_MINUTE = 18 * 60    # 6:00 PM
DEFAULT_INTERVAL_MINUTES = 60


class SlotGenerator:
    """
    Produces the ordered start times a client can book within working hours.

    Algorithm:
    1. Parse start and end of the working window
    2. Step from the start by the slot interval
    3. Stop before reaching the end (the end itself is never bookable)

    A profile with unparseable times gets hourly slots from 9:00 AM to
    6:00 PM instead of an error, so the booking form always has something
    to show.
    """

    def generate(self, config: WorkingHoursConfig) -> List[TimeSlot]:
        """
        Generate all bookable slots for a working-hours configuration.

        Args:
            config: The coach's working hours

        Returns:
            Slots in increasing order; empty if the window is empty or inverted
        """
        try:
            start_minute = parse_time_of_day(config.start_time)
            end_minute = parse_time_of_day(config.end_time)
        except ParseError as exc:
            logger.warning(
                "Could not parse working hours %r - %r, using default slots: %s",
                config.start_time,
                config.end_time,
                exc,
            )
            return self.default_slots()

        return self._step(start_minute, end_minute, config.slot_interval_minutes)

    def default_slots(self) -> List[TimeSlot]:
        """Hourly slots from 9:00 AM up to (not including) 6:00 PM."""
        return self._step(DEFAULT_START_MINUTE, DEFAULT_END_MINUTE, DEFAULT_INTERVAL_MINUTES)

    @staticmethod
    def _step(start_minute: int, end_minute: int, interval_minutes: int) -> List[TimeSlot]:
        if interval_minutes <= 0:
            raise ValueError(f"Slot interval must be positive, got {interval_minutes}")

        slots: List[TimeSlot] = []
        current = start_minute

        while current < end_minute:
            slots.append(TimeSlot(minute_of_day=current))
            current += interval_minutes

        return slots
