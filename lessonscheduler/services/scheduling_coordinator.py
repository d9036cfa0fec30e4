"""
Application service that turns a booking request into exactly one booking command.

The coordinator validates the request, consults the pure domain components
(slot generation, recurrence expansion, availability) and hands a single
command to the persistence collaborator. Collaborators are described as
protocols so that the RPC adapter, the in-memory store or a test stub can be
plugged in.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

import pendulum
from pendulum import Date, DateTime

from ..domain.availability import AvailabilityChecker
from ..domain.exceptions import (
    InvalidRecurrence,
    SchedulingError,
    SchedulingFailed,
    ValidationError,
)
from ..domain.models import (
    BookingSource,
    ExistingSchedule,
    LessonBooking,
    LessonData,
    Occurrence,
    RecurrencePattern,
    RecurrenceRequest,
    RecurringScheduleResult,
    ScheduleRequest,
    SlotAvailability,
    WorkingHoursConfig,
    combine_local,
    weekday_name,
)
from ..domain.recurrence import RecurrenceExpander
from ..domain.slot_generator import SlotGenerator
from ..domain.time_of_day import format_time_of_day, parse_time_of_day

logger = logging.getLogger(__name__)


class ProfileClientProtocol(Protocol):
    """Source of a coach's working-hours settings."""

    async def get_working_hours(self, coach_id: str) -> WorkingHoursConfig:
        """Return the coach's current working hours."""


class LessonStoreProtocol(Protocol):
    """Persistence collaborator owning the durable lesson calendar."""

    async def get_existing_schedule(self, coach_id: str, month: int, year: int) -> ExistingSchedule:
        """Return the coach's lessons for a calendar month (month is 1-12)."""

    async def schedule_lesson(
        self,
        *,
        coach_id: str,
        client_id: str,
        local_datetime: DateTime,
        send_email: bool,
        timezone: str,
        title: str,
    ) -> LessonBooking:
        """Book one lesson."""

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
        """Book a recurring series in one batch."""

    async def replace_workout_with_lesson(
        self,
        *,
        coach_id: str,
        client_id: str,
        program_id: str,
        day_date: Date,
        lesson_data: LessonData,
    ) -> LessonBooking:
        """Swap the workout scheduled on ``day_date`` for a lesson."""


class ScheduleChangeListener(Protocol):
    """Receives cache invalidation events after a booking is committed."""

    def client_record_changed(self, client_id: str) -> None:
        ...

    def weekly_schedule_changed(self, client_id: str) -> None:
        ...

    def coach_calendar_changed(self, coach_id: str) -> None:
        ...


class SchedulingState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    SINGLE_BOOKING = "single_booking"
    RECURRING_EXPANSION = "recurring_expansion"
    REPLACEMENT = "replacement"
    COMMITTED = "committed"
    FAILED = "failed"


@dataclass(frozen=True)
class ScheduleOutcome:
    """
    Result of one scheduling attempt.

    Errors are returned, not raised, so the caller can show the specific
    message. ``path`` lists the states the request went through.
    """
    state: SchedulingState
    path: Tuple[SchedulingState, ...]
    bookings: Tuple[LessonBooking, ...] = ()
    total_lessons: int = 0
    series_id: Optional[str] = None
    skipped: Tuple[DateTime, ...] = ()
    error: Optional[SchedulingError] = None

    @property
    def ok(self) -> bool:
        return self.state == SchedulingState.COMMITTED

    @property
    def operation(self) -> Optional[SchedulingState]:
        """The booking branch taken, if validation got that far."""
        for state in self.path:
            if state in _BRANCH_STATES:
                return state
        return None


_BRANCH_STATES = (
    SchedulingState.SINGLE_BOOKING,
    SchedulingState.RECURRING_EXPANSION,
    SchedulingState.REPLACEMENT,
)


@dataclass
class _Validated:
    """A request that passed validation, with its parsed time."""
    request: ScheduleRequest
    branch: SchedulingState
    day: Date
    minute_of_day: int
    recurrence: Optional[RecurrenceRequest] = None

    @property
    def local_datetime(self) -> DateTime:
        return combine_local(self.day, self.minute_of_day)


class SchedulingCoordinator:
    """
    Entry point for booking lessons on a coach's calendar.

    One request leads to at most one outbound booking call. The coordinator
    holds no state between requests; working hours are fetched per request
    and treated as a snapshot.
    """

    def __init__(
        self,
        lesson_store: LessonStoreProtocol,
        profile_client: ProfileClientProtocol,
        *,
        slot_generator: Optional[SlotGenerator] = None,
        recurrence_expander: Optional[RecurrenceExpander] = None,
        availability_checker: Optional[AvailabilityChecker] = None,
        listeners: Sequence[ScheduleChangeListener] = (),
        clock: Optional[Callable[[], DateTime]] = None,
    ) -> None:
        self._lesson_store = lesson_store
        self._profile_client = profile_client
        self._slot_generator = slot_generator or SlotGenerator()
        self._expander = recurrence_expander or RecurrenceExpander()
        self._availability = availability_checker or AvailabilityChecker()
        self._listeners = list(listeners)
        # Returns the coach's current wall-clock time; past checks are off without it
        self._clock = clock

    async def schedule(self, request: ScheduleRequest) -> ScheduleOutcome:
        """
        Validate a request and perform its booking operation.

        Returns:
            A committed outcome with the confirmed bookings, or a failed
            outcome carrying the typed error
        """
        path: List[SchedulingState] = [SchedulingState.IDLE, SchedulingState.VALIDATING]

        try:
            validated = self._validate(request)
            path.append(validated.branch)

            if validated.branch == SchedulingState.REPLACEMENT:
                outcome = await self._replace_workout(validated, path)
            elif validated.branch == SchedulingState.RECURRING_EXPANSION:
                outcome = await self._book_series(validated, path)
            else:
                outcome = await self._book_single(validated, path)

        except SchedulingError as exc:
            logger.info("Scheduling failed for client %s: %s", request.client_id, exc.message)
            path.append(SchedulingState.FAILED)
            return ScheduleOutcome(state=SchedulingState.FAILED, path=tuple(path), error=exc)

        self._notify_committed(request)
        return outcome

    async def day_availability(self, coach_id: str, day: Date) -> List[SlotAvailability]:
        """
        List every bookable slot on ``day`` with whether it is still free.
        """
        working_hours = await self._profile_client.get_working_hours(coach_id)
        existing = await self._lesson_store.get_existing_schedule(coach_id, day.month, day.year)

        slots = self._slot_generator.generate(working_hours)
        return self._availability.annotate(existing, day, slots)

    async def preview_series(
        self,
        coach_id: str,
        recurrence: RecurrenceRequest,
        override_working_days: bool = False,
    ) -> List[Occurrence]:
        """Expand a recurrence against the coach's working days without booking."""
        working_days = None
        if not override_working_days:
            working_days = (await self._profile_client.get_working_hours(coach_id)).working_days

        return self._expander.expand(recurrence, working_days)

    def _validate(self, request: ScheduleRequest) -> _Validated:
        """Check the request without contacting any collaborator."""
        if request.recurrence is not None and request.replacement is not None:
            raise ValidationError("Choose either a recurring series or a workout replacement, not both")

        if request.selected_date is None or not request.selected_time:
            raise ValidationError("Please select a date and time")

        minute_of_day = parse_time_of_day(request.selected_time)
        day = pendulum.date(
            request.selected_date.year,
            request.selected_date.month,
            request.selected_date.day,
        )

        if request.replacement is not None:
            if not request.replacement.program_id:
                raise ValidationError("A program is required to replace a workout")
            validated = _Validated(request, SchedulingState.REPLACEMENT, day, minute_of_day)

        elif request.recurrence is not None:
            options = request.recurrence
            if options.end_date is None:
                raise ValidationError("Please select an end date for the recurring lessons")

            try:
                pattern = RecurrencePattern(options.pattern)
            except ValueError:
                raise InvalidRecurrence(f"Unknown recurrence pattern: {options.pattern!r}") from None

            recurrence = RecurrenceRequest(
                anchor=combine_local(day, minute_of_day),
                end_date=pendulum.date(options.end_date.year, options.end_date.month, options.end_date.day),
                pattern=pattern,
                interval=options.interval,
            )
            self._expander.validate(recurrence)
            validated = _Validated(
                request, SchedulingState.RECURRING_EXPANSION, day, minute_of_day, recurrence
            )

        else:
            validated = _Validated(request, SchedulingState.SINGLE_BOOKING, day, minute_of_day)

        self._reject_past(validated.local_datetime)
        return validated

    def _reject_past(self, local_datetime: DateTime) -> None:
        if self._clock is None:
            return

        now = self._clock()
        now_local = pendulum.naive(now.year, now.month, now.day, now.hour, now.minute, now.second)
        if local_datetime <= now_local:
            raise ValidationError("Cannot schedule lessons in the past")

    async def _book_single(self, validated: _Validated, path: List[SchedulingState]) -> ScheduleOutcome:
        request = validated.request

        if not request.override_working_days:
            working_hours = await self._call_collaborator(
                self._profile_client.get_working_hours(request.coach_id)
            )
            if not working_hours.is_working_day(validated.day):
                raise ValidationError(f"You are not available on {weekday_name(validated.day)}s")

        booking = await self._call_collaborator(
            self._lesson_store.schedule_lesson(
                coach_id=request.coach_id,
                client_id=request.client_id,
                local_datetime=validated.local_datetime,
                send_email=request.send_email,
                timezone=request.timezone,
                title=_lesson_title(request),
            )
        )

        logger.info(
            "Scheduled lesson for client %s at %s",
            request.client_id,
            booking.local_datetime.to_datetime_string(),
        )
        path.append(SchedulingState.COMMITTED)
        return ScheduleOutcome(
            state=SchedulingState.COMMITTED,
            path=tuple(path),
            bookings=(booking,),
            total_lessons=1,
        )

    async def _book_series(self, validated: _Validated, path: List[SchedulingState]) -> ScheduleOutcome:
        request = validated.request
        recurrence = validated.recurrence

        working_days = None
        if not request.override_working_days:
            working_hours = await self._call_collaborator(
                self._profile_client.get_working_hours(request.coach_id)
            )
            working_days = working_hours.working_days

        occurrences = self._expander.expand(recurrence, working_days)
        if not occurrences:
            raise InvalidRecurrence("No valid lesson dates found within the specified range")

        series_id = uuid.uuid4().hex
        title = _lesson_title(request)
        lessons = tuple(
            LessonBooking(
                coach_id=request.coach_id,
                client_id=request.client_id,
                local_datetime=occurrence.local_datetime,
                source=BookingSource.RECURRING_MEMBER,
                series_id=series_id,
                title=title,
            )
            for occurrence in occurrences
        )

        result = await self._call_collaborator(
            self._lesson_store.schedule_recurring_lessons(
                coach_id=request.coach_id,
                client_id=request.client_id,
                anchor=recurrence.anchor,
                end_date=recurrence.end_date,
                pattern=recurrence.pattern,
                interval=recurrence.interval,
                lessons=lessons,
                series_id=series_id,
                send_email=request.send_email,
                timezone=request.timezone,
            )
        )

        skipped = set(result.skipped)
        confirmed = tuple(lesson for lesson in lessons if lesson.local_datetime not in skipped)

        logger.info(
            "Scheduled %d of %d recurring lessons for client %s (series %s)",
            result.total_lessons,
            len(lessons),
            request.client_id,
            result.series_id,
        )
        path.append(SchedulingState.COMMITTED)
        return ScheduleOutcome(
            state=SchedulingState.COMMITTED,
            path=tuple(path),
            bookings=confirmed,
            total_lessons=result.total_lessons,
            series_id=result.series_id,
            skipped=tuple(result.skipped),
        )

    async def _replace_workout(self, validated: _Validated, path: List[SchedulingState]) -> ScheduleOutcome:
        request = validated.request
        replacement = request.replacement

        booking = await self._call_collaborator(
            self._lesson_store.replace_workout_with_lesson(
                coach_id=request.coach_id,
                client_id=request.client_id,
                program_id=replacement.program_id,
                day_date=validated.day,
                lesson_data=LessonData(
                    time=format_time_of_day(validated.minute_of_day),
                    title=replacement.title,
                    description=replacement.description,
                ),
            )
        )

        logger.info(
            "Replaced workout on %s with a lesson for client %s",
            validated.day.to_date_string(),
            request.client_id,
        )
        path.append(SchedulingState.COMMITTED)
        return ScheduleOutcome(
            state=SchedulingState.COMMITTED,
            path=tuple(path),
            bookings=(booking,),
            total_lessons=1,
        )

    @staticmethod
    async def _call_collaborator(call):
        """Await a collaborator call, normalising any failure to SchedulingFailed."""
        try:
            return await call
        except SchedulingError:
            raise
        except Exception as exc:
            raise SchedulingFailed(str(exc) or exc.__class__.__name__) from exc

    def _notify_committed(self, request: ScheduleRequest) -> None:
        for listener in self._listeners:
            try:
                listener.client_record_changed(request.client_id)
                listener.weekly_schedule_changed(request.client_id)
                listener.coach_calendar_changed(request.coach_id)
            except Exception:
                logger.exception("Schedule change listener %r failed", listener)


def _lesson_title(request: ScheduleRequest) -> str:
    if request.client_name:
        return f"Lesson with {request.client_name}"
    return "Lesson"
