"""
Expansion of recurrence rules into concrete lesson dates.
"""

from typing import AbstractSet, List, Optional

from pendulum import Date

from .exceptions import InvalidRecurrence, RecurrenceTooLarge
from .models import Occurrence, RecurrencePattern, RecurrenceRequest, weekday_name

DEFAULT_MAX_OCCURRENCES = 500

# Weekly-family patterns expressed as a week multiple
_WEEKS_PER_STEP = {
    RecurrencePattern.WEEKLY: 1,
    RecurrencePattern.BIWEEKLY: 2,
    RecurrencePattern.TRIWEEKLY: 3,
}


class RecurrenceExpander:
    """
    Expands a recurrence rule into an ordered, bounded list of occurrences.

    Every candidate is computed from the anchor rather than from the previous
    candidate. For monthly rules this keeps the anchor's day of month: a rule
    anchored on Jan 31 yields Feb 29 (clamped), then Mar 31 again rather than
    drifting to Mar 29.
    """

    def __init__(self, max_occurrences: int = DEFAULT_MAX_OCCURRENCES):
        if max_occurrences <= 0:
            raise ValueError(f"max_occurrences must be positive, got {max_occurrences}")
        self.max_occurrences = max_occurrences

    def expand(
        self,
        request: RecurrenceRequest,
        working_days: Optional[AbstractSet[str]] = None,
    ) -> List[Occurrence]:
        """
        Expand a recurrence request.

        Args:
            request: The recurrence rule and its anchor
            working_days: Optional weekday names; dates on other days are skipped

        Returns:
            Occurrences strictly increasing by date, none after ``request.end_date``.
            A step past the last representable date ends the expansion.

        Raises:
            InvalidRecurrence: If the pattern is unknown, the interval is not a
                positive integer or the range is inverted
            RecurrenceTooLarge: If more than ``max_occurrences`` dates would be produced
        """
        self.validate(request)

        anchor_date = request.anchor_date
        minute_of_day = request.anchor_minute
        occurrences: List[Occurrence] = []

        step = 0
        current = anchor_date

        while current <= request.end_date:
            if working_days is None or weekday_name(current) in working_days:
                if len(occurrences) >= self.max_occurrences:
                    raise RecurrenceTooLarge(
                        f"Recurrence produces more than {self.max_occurrences} lessons. "
                        "Choose an earlier end date or a longer interval."
                    )
                occurrences.append(Occurrence(date=current, minute_of_day=minute_of_day))

            step += 1
            try:
                current = self._nth_date(anchor_date, request.pattern, request.interval, step)
            except (OverflowError, ValueError):
                # The next step lies past the last representable date
                break

        return occurrences

    @staticmethod
    def validate(request: RecurrenceRequest) -> None:
        """Reject rules that cannot be expanded."""
        if (
            not isinstance(request.interval, int)
            or isinstance(request.interval, bool)
            or request.interval <= 0
        ):
            raise InvalidRecurrence(
                f"Recurrence interval must be a positive integer, got {request.interval!r}"
            )
        if request.pattern not in set(RecurrencePattern):
            raise InvalidRecurrence(f"Unknown recurrence pattern: {request.pattern!r}")
        if request.end_date < request.anchor_date:
            raise InvalidRecurrence("End date must not be before the first lesson")

    @staticmethod
    def _nth_date(anchor: Date, pattern: RecurrencePattern, interval: int, n: int) -> Date:
        """Return the n-th candidate date after the anchor (n=0 is the anchor)."""
        if pattern == RecurrencePattern.MONTHLY:
            # pendulum clamps to the last day of shorter months
            return anchor.add(months=interval * n)

        weeks = _WEEKS_PER_STEP[RecurrencePattern(pattern)] * interval * n
        return anchor.add(weeks=weeks)
