"""
HTTP client for the coaching platform's RPC endpoints.
"""

import asyncio
import json
import logging
from typing import Any, Dict, Optional, Sequence

import pendulum
import requests
from pendulum import Date, DateTime

from ..domain.exceptions import SchedulingFailed
from ..domain.models import (
    WEEKDAY_NAMES,
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


class RpcSchedulingClient:
    """
    Client for the platform's scheduling procedures.

    Queries are sent as ``GET {base_url}/{procedure}?input=<json>``, mutations
    as ``POST {base_url}/{procedure}`` with a JSON body. Both answer with
    ``{"result": {"data": ...}}`` on success and ``{"error": {"message": ...}}``
    on failure; error messages are passed on unchanged.

    Lesson instants returned by the server are converted into the coach's
    timezone and stored as naive wall-clock values. The authenticated user is
    the coach, so ``coach_id`` arguments are only used to label results.
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        timezone: str = "America/New_York",
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        """
        Initialize the RPC client.

        Args:
            base_url: Root of the RPC API, e.g. https://app.example.com/api/trpc
            token: Bearer token of the signed-in coach
            timezone: The coach's IANA timezone
            timeout: Request timeout in seconds
            session: Optional requests session to reuse connections
        """
        self.base_url = base_url.rstrip("/")
        self.timezone = timezone
        self.timeout = timeout
        self.session = session or requests.Session()
        self.headers = {"Content-Type": "application/json"}
        if token:
            self.headers["Authorization"] = f"Bearer {token}"

    async def get_working_hours(self, coach_id: str) -> WorkingHoursConfig:
        profile = await asyncio.to_thread(self._query, "user.getProfile", None)
        working_hours = (profile or {}).get("workingHours") or {}

        return WorkingHoursConfig(
            start_time=working_hours.get("startTime") or "9:00 AM",
            end_time=working_hours.get("endTime") or "6:00 PM",
            slot_interval_minutes=working_hours.get("timeSlotInterval") or 60,
            working_days=frozenset(working_hours.get("workingDays") or WEEKDAY_NAMES),
        )

    async def get_existing_schedule(self, coach_id: str, month: int, year: int) -> ExistingSchedule:
        # The platform counts months from zero
        lessons = await asyncio.to_thread(
            self._query,
            "scheduling.getCoachSchedule",
            {"month": month - 1, "year": year},
        )

        bookings = []
        for lesson in lessons or []:
            try:
                bookings.append(self._parse_lesson(lesson, coach_id))
            except (KeyError, ValueError) as exc:
                logger.warning("Could not parse lesson %r: %s", lesson.get("id"), exc)
                continue

        return ExistingSchedule(bookings=tuple(bookings))

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
        payload = {
            "clientId": client_id,
            "lessonDate": local_datetime.format("YYYY-MM-DD[T]HH:mm:ss"),
            "sendEmail": send_email,
            "timeZone": timezone,
        }
        data = await asyncio.to_thread(self._mutate, "scheduling.scheduleLesson", payload)

        return LessonBooking(
            coach_id=coach_id,
            client_id=client_id,
            local_datetime=local_datetime,
            source=BookingSource.SINGLE,
            title=(data or {}).get("title") or title,
        )

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
        payload = {
            "clientId": client_id,
            "startDate": anchor.format("YYYY-MM-DD[T]HH:mm:ss"),
            "endDate": end_date.format("YYYY-MM-DD") + "T23:59:59",
            "recurrencePattern": RecurrencePattern(pattern).value,
            "recurrenceInterval": interval,
            "sendEmail": send_email,
            "timeZone": timezone,
        }
        data = await asyncio.to_thread(
            self._mutate, "scheduling.scheduleRecurringLessons", payload
        ) or {}

        skipped = tuple(
            self._to_local(value) for value in data.get("skippedDates", [])
        )

        return RecurringScheduleResult(
            total_lessons=int(data.get("totalLessons", 0)),
            series_id=data.get("seriesId") or series_id,
            skipped=skipped,
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
        payload = {
            "clientId": client_id,
            "programId": program_id,
            "dayDate": day_date.format("YYYY-MM-DD"),
            "lessonData": {
                "time": lesson_data.time,
                "title": lesson_data.title,
                "description": lesson_data.description,
            },
        }
        data = await asyncio.to_thread(
            self._mutate, "clients.replaceWorkoutWithLesson", payload
        ) or {}

        lesson = data.get("lesson") or data
        if lesson.get("date"):
            local_datetime = self._to_local(lesson["date"])
        else:
            local_datetime = combine_local(day_date, parse_time_of_day(lesson_data.time))

        return LessonBooking(
            coach_id=coach_id,
            client_id=client_id,
            local_datetime=local_datetime,
            source=BookingSource.REPLACEMENT,
            title=lesson.get("title") or lesson_data.title,
        )

    def _query(self, procedure: str, payload: Optional[Dict[str, Any]]) -> Any:
        params = {"input": json.dumps(payload)} if payload is not None else None
        try:
            response = self.session.get(
                f"{self.base_url}/{procedure}",
                headers=self.headers,
                params=params,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SchedulingFailed(f"Failed to reach scheduling service: {e}") from e

        return self._unwrap(procedure, response)

    def _mutate(self, procedure: str, payload: Dict[str, Any]) -> Any:
        try:
            response = self.session.post(
                f"{self.base_url}/{procedure}",
                headers=self.headers,
                json=payload,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as e:
            raise SchedulingFailed(f"Failed to reach scheduling service: {e}") from e

        return self._unwrap(procedure, response)

    @staticmethod
    def _unwrap(procedure: str, response: requests.Response) -> Any:
        """
        Extract the result of an RPC response.

        Response format:
        {"result": {"data": {"json": ...}}}   (or "data" without "json")
        {"error": {"json": {"message": "..."}}}   (or "message" directly)
        """
        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict):
            if not response.ok:
                raise SchedulingFailed(f"{procedure} failed with HTTP {response.status_code}")
            raise SchedulingFailed(f"{procedure} returned an unreadable response")

        if "error" in body:
            error = body["error"] or {}
            error = error.get("json", error)
            message = error.get("message") or f"{procedure} failed"
            logger.debug("%s rejected: %s", procedure, message)
            raise SchedulingFailed(message)

        if not response.ok:
            raise SchedulingFailed(f"{procedure} failed with HTTP {response.status_code}")

        data = (body.get("result") or {}).get("data")
        if isinstance(data, dict) and "json" in data:
            return data["json"]
        return data

    def _to_local(self, value: str) -> DateTime:
        """Convert a server instant to the coach's naive wall-clock time."""
        parsed = pendulum.parse(value)
        if not isinstance(parsed, DateTime):
            raise ValueError(f"Could not parse datetime: {value}")

        local = parsed.in_timezone(self.timezone)
        return pendulum.naive(local.year, local.month, local.day, local.hour, local.minute)

    def _parse_lesson(self, lesson: Dict[str, Any], coach_id: str) -> LessonBooking:
        series_id = lesson.get("seriesId")
        return LessonBooking(
            coach_id=lesson.get("coachId") or coach_id,
            client_id=lesson.get("clientId") or "",
            local_datetime=self._to_local(lesson["date"]),
            source=BookingSource.RECURRING_MEMBER if series_id else BookingSource.SINGLE,
            series_id=series_id,
            title=lesson.get("title") or "Lesson",
        )
