"""
Time arithmetic on salon-local wall-clock values.

Times are ``"HH:MM"`` strings (24h, zero-padded) and dates are ``"YYYY-MM-DD"``
strings. Both are interpreted in the salon's configured timezone.
"""

import re
from typing import List, Tuple

import pendulum
from pendulum import Date, DateTime

from .exceptions import InvalidInputError

MINUTES_PER_DAY = 24 * 60
DEFAULT_SLOT_STEP_MINUTES = 30

_TIME_PATTERN = re.compile(r"(\d{1,2}):(\d{2})")
_DATE_PATTERN = re.compile(r"\d{4}-\d{2}-\d{2}")


def time_to_minutes(value: str) -> int:
    """
    Parse an ``"HH:MM"`` string into minutes since midnight.

    Raises:
        InvalidInputError: If the string is not a valid 24h time
    """
    match = _TIME_PATTERN.fullmatch(value or "")
    if not match:
        raise InvalidInputError(f"Invalid time '{value}', expected HH:MM")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if not 0 <= hours <= 23 or not 0 <= minutes <= 59:
        raise InvalidInputError(f"Invalid time '{value}', out of range")

    return hours * 60 + minutes


def minutes_to_time(minutes: int) -> str:
    """Format minutes since midnight as a zero-padded ``"HH:MM"`` string."""
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise InvalidInputError(f"Minutes must be within a day, got {minutes}")
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def generate_slots(
    open_time: str,
    close_time: str,
    step_minutes: int = DEFAULT_SLOT_STEP_MINUTES
) -> List[str]:
    """
    Enumerate slot start times between opening and closing.

    Every start ``t`` satisfies ``open <= t < close``; the result is empty
    when the salon opens at or after closing.

    Example:
        generate_slots("09:00", "10:30") -> ["09:00", "09:30", "10:00"]
    """
    if step_minutes <= 0:
        raise InvalidInputError(f"Slot step must be positive, got {step_minutes}")

    start = time_to_minutes(open_time)
    end = time_to_minutes(close_time)

    return [minutes_to_time(m) for m in range(start, end, step_minutes)]


def validate_timezone(name: str) -> str:
    """Ensure ``name`` is a known IANA timezone and return it unchanged."""
    if not name:
        raise InvalidInputError("Timezone must not be empty")
    try:
        pendulum.timezone(name)
    except (ValueError, KeyError) as exc:
        raise InvalidInputError(f"Unknown timezone '{name}'") from exc
    return name


def parse_local_date(value: str, timezone: str) -> Date:
    """
    Parse a ``"YYYY-MM-DD"`` string as a calendar date in ``timezone``.

    Raises:
        InvalidInputError: If the string is malformed or not a real date
    """
    validate_timezone(timezone)
    if not _DATE_PATTERN.fullmatch(value or ""):
        raise InvalidInputError(f"Invalid date '{value}', expected YYYY-MM-DD")
    try:
        return pendulum.from_format(value, "YYYY-MM-DD", tz=timezone).date()
    except ValueError as exc:
        raise InvalidInputError(f"Invalid date '{value}': {exc}") from exc


def local_datetime(day: Date, time_value: str, timezone: str) -> DateTime:
    """Combine a calendar date and an ``"HH:MM"`` string in ``timezone``."""
    minutes = time_to_minutes(time_value)
    return pendulum.datetime(
        day.year,
        day.month,
        day.day,
        minutes // 60,
        minutes % 60,
        tz=timezone
    )


def day_bounds(day: Date, timezone: str) -> Tuple[DateTime, DateTime]:
    """Return the salon-local ``[start_of_day, end_of_day]`` instants."""
    start = pendulum.datetime(day.year, day.month, day.day, tz=timezone)
    return start, start.end_of("day")
