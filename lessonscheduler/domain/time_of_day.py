"""
Conversion between 12-hour wall-clock strings and minute-of-day integers.

"9:00 AM" -> 540, "12:00 AM" -> 0, "12:30 PM" -> 750.
"""

import re

from .exceptions import ParseError

MINUTES_PER_DAY = 24 * 60

_TIME_PATTERN = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*(AM|PM)\s*$", re.IGNORECASE)


def parse_time_of_day(text: str) -> int:
    """
    Parse a "H:MM AM/PM" string into minutes since midnight.

    Args:
        text: Wall-clock string, e.g. "2:30 pm"

    Returns:
        Minute of day in [0, 1440)

    Raises:
        ParseError: If the string is not a valid 12-hour time
    """
    if not isinstance(text, str):
        raise ParseError(f"Invalid time format: {text!r}")

    match = _TIME_PATTERN.match(text)
    if not match:
        raise ParseError(f"Invalid time format: {text!r}")

    hour = int(match.group(1))
    minute = int(match.group(2))
    period = match.group(3).upper()

    if not 1 <= hour <= 12 or not 0 <= minute <= 59:
        raise ParseError(f"Invalid time format: {text!r}")

    # 12 AM is midnight, 12 PM is noon
    hour %= 12
    if period == "PM":
        hour += 12

    return hour * 60 + minute


def format_time_of_day(minute_of_day: int) -> str:
    """Format minutes since midnight as "H:MM AM/PM"."""
    if not 0 <= minute_of_day < MINUTES_PER_DAY:
        raise ValueError(
            f"minute_of_day must be between 0 and {MINUTES_PER_DAY - 1}, got {minute_of_day}"
        )

    hour, minute = divmod(minute_of_day, 60)
    period = "PM" if hour >= 12 else "AM"
    display_hour = hour % 12 or 12

    return f"{display_hour}:{minute:02d} {period}"
