"""
In-memory lesson store and profile client for local use and testing.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from ..domain.exceptions import SchedulingFailed
from ..domain.models import (
    BookingSource,
    ExistingSchedule,
    LessonBooking,
    LessonData,
    RecurrencePattern,
    RecurringScheduleResult,
    WorkingHoursConfig,
    combine_local,
)
from ..domain.time_of_day import parse_time_of_day

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "Time slot is already booked by another client"

_BookingKey = Tuple[str, DateTime]
_WorkoutKey = Tuple[str, str, Date]


def _to_local(value: str) -> DateTime:
    """Parse an ISO string and keep only its wall-clock fields."""
    parsed = pendulum.parse(value)
    return pendulum.naive(parsed.year, parsed.month, parsed.day, parsed.hour, parsed.minute)


def _to_date(value: str) -> Date:
    parsed = pendulum.parse(value)
    return pendulum.date(parsed.year, parsed.month, parsed.day)


class InMemoryLessonStore:
    """
    Lesson calendar held in memory.

    Bookings are unique per ``(coach_id, local_datetime)``. Recurring batches
    are stored best-effort: members that collide with an existing booking
    are skipped and reported, the rest are kept.

    Seed data can be loaded from a JSON file with ``lessons`` and
    ``workouts`` lists (see ``from_json``).
    """

    def __init__(self, bookings: Sequence[LessonBooking] = ()):
        self._bookings: Dict[_BookingKey, LessonBooking] = {}
        self._workouts: Dict[_WorkoutKey, str] = {}
        for booking in bookings:
            self._bookings[(booking.coach_id, booking.local_datetime)] = booking

    @classmethod
    def from_json(cls, data_file: Path) -> "InMemoryLessonStore":
        """
        Build a store from a JSON data file.

        Format::

            {
                "lessons": [{"coachId": "...", "clientId": "...",
                             "date": "2024-03-10T14:00:00", "title": "...",
                             "seriesId": null}],
                "workouts": [{"clientId": "...", "programId": "...",
                              "date": "2024-03-12", "title": "Leg day"}]
            }
        """
        store = cls()

        if not data_file.exists():
            logger.warning("Lesson data file %s not found, starting empty", data_file)
            return store

        with open(data_file, "r", encoding="utf-8") as f:
            data = json.load(f)

        for entry in data.get("lessons", []):
            try:
                booking = LessonBooking(
                    coach_id=entry["coachId"],
                    client_id=entry["clientId"],
                    local_datetime=_to_local(entry["date"]),
                    source=BookingSource.RECURRING_MEMBER if entry.get("seriesId") else BookingSource.SINGLE,
                    series_id=entry.get("seriesId"),
                    title=entry.get("title", "Lesson"),
                )
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping invalid lesson entry %r: %s", entry, exc)
                continue
            store._bookings[(booking.coach_id, booking.local_datetime)] = booking

        for entry in data.get("workouts", []):
            try:
                store.add_workout(
                    entry["clientId"],
                    entry["programId"],
                    _to_date(entry["date"]),
                    entry.get("title", "Workout"),
                )
            except (KeyError, ValueError) as exc:
                logger.warning("Skipping invalid workout entry %r: %s", entry, exc)

        return store

    def save_json(self, data_file: Path) -> None:
        """Write lessons and remaining workouts back in the ``from_json`` format."""
        data = {
            "lessons": [
                {
                    "coachId": booking.coach_id,
                    "clientId": booking.client_id,
                    "date": booking.local_datetime.format("YYYY-MM-DD[T]HH:mm:ss"),
                    "title": booking.title,
                    "seriesId": booking.series_id,
                }
                for booking in self.bookings
            ],
            "workouts": [
                {
                    "clientId": client_id,
                    "programId": program_id,
                    "date": day.to_date_string(),
                    "title": title,
                }
                for (client_id, program_id, day), title in sorted(self._workouts.items())
            ],
        }

        with open(data_file, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=2)

    def add_workout(self, client_id: str, program_id: str, day: Date, title: str = "Workout") -> None:
        """Put a program workout on a client's calendar."""
        self._workouts[(client_id, program_id, pendulum.date(day.year, day.month, day.day))] = title

    def has_workout(self, client_id: str, program_id: str, day: Date) -> bool:
        return (client_id, program_id, pendulum.date(day.year, day.month, day.day)) in self._workouts

    @property
    def bookings(self) -> List[LessonBooking]:
        return sorted(self._bookings.values(), key=lambda booking: booking.local_datetime)

    def bookings_in_series(self, series_id: str) -> List[LessonBooking]:
        return [booking for booking in self.bookings if booking.series_id == series_id]

    def cancel_series(self, coach_id: str, series_id: str) -> int:
        """Remove every lesson of a series; returns how many were removed."""
        keys = [
            key for key, booking in self._bookings.items()
            if booking.coach_id == coach_id and booking.series_id == series_id
        ]
        for key in keys:
            del self._bookings[key]
        return len(keys)

    async def get_existing_schedule(self, coach_id: str, month: int, year: int) -> ExistingSchedule:
        return ExistingSchedule(
            bookings=tuple(
                booking for booking in self.bookings
                if booking.coach_id == coach_id
                and booking.local_datetime.month == month
                and booking.local_datetime.year == year
            )
        )

    async def schedule_lesson(
        self,
        *,
        coach_id: str,
        client_id: str,
        local_datetime: DateTime,
        send_email: bool,
        timezone: str,
        title: str = "Lesson",
    ) -> LessonBooking:
        key = (coach_id, local_datetime)
        if key in self._bookings:
            logger.warning("Rejected lesson for %s: slot %s taken", client_id, local_datetime)
            raise SchedulingFailed(SLOT_TAKEN_MESSAGE)

        booking = LessonBooking(
            coach_id=coach_id,
            client_id=client_id,
            local_datetime=local_datetime,
            source=BookingSource.SINGLE,
            title=title,
        )
        self._bookings[key] = booking
        return booking

    async def schedule_recurring_lessons(
        self,
        *,
        coach_id: str,
        client_id: str,
        anchor: DateTime,
        end_date: Date,
        pattern: RecurrencePattern,
        interval: int,
        lessons: Sequence[LessonBooking],
        series_id: str,
        send_email: bool,
        timezone: str,
    ) -> RecurringScheduleResult:
        skipped: List[DateTime] = []
        created = 0

        for lesson in lessons:
            key = (coach_id, lesson.local_datetime)
            if key in self._bookings:
                skipped.append(lesson.local_datetime)
                continue
            self._bookings[key] = lesson
            created += 1

        if skipped:
            logger.warning(
                "Skipped %d conflicting lessons of series %s", len(skipped), series_id
            )

        return RecurringScheduleResult(
            total_lessons=created,
            series_id=series_id,
            skipped=tuple(skipped),
        )

    async def replace_workout_with_lesson(
        self,
        *,
        coach_id: str,
        client_id: str,
        program_id: str,
        day_date: Date,
        lesson_data: LessonData,
    ) -> LessonBooking:
        workout_key = (client_id, program_id, pendulum.date(day_date.year, day_date.month, day_date.day))
        if workout_key not in self._workouts:
            raise SchedulingFailed("No workout found for this day in the program")

        local_datetime = combine_local(day_date, parse_time_of_day(lesson_data.time))
        booking_key = (coach_id, local_datetime)
        if booking_key in self._bookings:
            raise SchedulingFailed(SLOT_TAKEN_MESSAGE)

        booking = LessonBooking(
            coach_id=coach_id,
            client_id=client_id,
            local_datetime=local_datetime,
            source=BookingSource.REPLACEMENT,
            title=lesson_data.title,
        )
        # Swap both sides together
        del self._workouts[workout_key]
        self._bookings[booking_key] = booking
        return booking


class InMemoryProfileClient:
    """Profile collaborator returning fixed working hours per coach."""

    def __init__(
        self,
        working_hours: Optional[Dict[str, WorkingHoursConfig]] = None,
        default: Optional[WorkingHoursConfig] = None,
    ):
        self._working_hours = dict(working_hours or {})
        self._default = default or WorkingHoursConfig(start_time="9:00 AM", end_time="6:00 PM")

    def set_working_hours(self, coach_id: str, config: WorkingHoursConfig) -> None:
        self._working_hours[coach_id] = config

    async def get_working_hours(self, coach_id: str) -> WorkingHoursConfig:
        return self._working_hours.get(coach_id, self._default)
