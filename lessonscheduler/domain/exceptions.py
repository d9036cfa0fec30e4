"""
Domain-specific exception hierarchy for the lesson scheduler.
"""


class SchedulingError(Exception):
    """Base class for all scheduling errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ParseError(SchedulingError):
    """Raised when a wall-clock time string cannot be parsed."""


class ValidationError(SchedulingError):
    """Raised when a schedule request is missing required fields."""


class InvalidRecurrence(SchedulingError):
    """Raised for a non-positive interval or an end date before the anchor."""


class RecurrenceTooLarge(SchedulingError):
    """Raised when a recurrence expands past the occurrence safety cap."""


class SchedulingFailed(SchedulingError):
    """Raised when a collaborator rejects or fails a booking command."""
