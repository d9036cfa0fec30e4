"""
Conflict checks of candidate lesson times against a coach's booked lessons.
"""

from typing import List, Sequence

from pendulum import Date

from .models import ExistingSchedule, SlotAvailability, TimeSlot


class AvailabilityChecker:
    """
    Decides whether a start time is still free on a given day.

    The check is hour-granular: a slot is taken when any lesson on the same
    calendar day starts in the same hour, whatever the minutes. With a
    30-minute slot interval, a lesson at 2:30 PM therefore also blocks
    2:00 PM. Lesson durations are not considered.

    The result is a pre-check for display only; the persistence layer makes
    the final call when the lesson is booked.
    """

    def is_available(self, existing: ExistingSchedule, date: Date, minute_of_day: int) -> bool:
        """Return False if a booking on ``date`` starts in the same hour."""
        hour = minute_of_day // 60

        return not any(
            booking.is_on(date) and booking.local_datetime.hour == hour
            for booking in existing
        )

    def annotate(
        self,
        existing: ExistingSchedule,
        date: Date,
        slots: Sequence[TimeSlot],
    ) -> List[SlotAvailability]:
        """Pair every slot with its availability on ``date``, preserving order."""
        return [
            SlotAvailability(
                slot=slot,
                available=self.is_available(existing, date, slot.minute_of_day),
            )
            for slot in slots
        ]
