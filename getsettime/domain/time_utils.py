"""
Time arithmetic primitives for availability calculations.

All helpers work on the calendar fields of the DateTime they are given
(its own timezone), never on UTC. Converting to UTC first would move a
late-evening slot onto the neighbouring day in most timezones.
"""

import logging
import re
from datetime import date, datetime
from typing import Tuple

import pendulum
from pendulum import DateTime

from .exceptions import TimeFormatError

logger = logging.getLogger(__name__)

# Index matches isoweekday() % 7, i.e. 0=Sunday
DAY_NAMES = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")

FALLBACK_TIMEZONE = "UTC"

_TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
_DISPLAY_TIME_PATTERN = re.compile(r"^(\d{1,2})(?::(\d{1,2}))?\s*(AM|PM)$", re.IGNORECASE)


def parse_time_to_minutes(value: str) -> int:
    """
    Parse a 24h ``HH:mm`` string into minutes since midnight.

    Raises:
        TimeFormatError: If the value is not a valid wall-clock time
    """
    match = _TIME_PATTERN.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise TimeFormatError(f"Expected time in HH:mm format, got {value!r}")

    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise TimeFormatError(f"Time out of range: {value!r}")

    return hours * 60 + minutes


def format_minutes_to_display(minutes: int) -> str:
    """
    Render minutes since midnight as ``h:mm AM/PM``.

    The output does not depend on the process locale.
    """
    hour = (minutes // 60) % 24
    minute = minutes % 60
    period = "AM" if hour < 12 else "PM"
    display_hour = hour % 12 or 12
    return f"{display_hour}:{minute:02d} {period}"


def parse_display_time(label: str) -> Tuple[int, int] | None:
    """
    Parse a display label such as ``"4:00 PM"`` back to a 24h (hour, minute).

    Accepts lower-case periods and a missing space ("4:00pm").
    Returns None when the label cannot be read.
    """
    if not label or not isinstance(label, str):
        return None

    match = _DISPLAY_TIME_PATTERN.match(label.strip())
    if not match:
        return None

    hour = int(match.group(1))
    if hour > 12:
        return None
    minute = min(59, int(match.group(2) or 0))

    if match.group(3).upper() == "PM":
        if hour != 12:
            hour += 12
    elif hour == 12:
        hour = 0

    return hour, minute


def to_local_datetime(value: date, tz: str | None = None) -> DateTime:
    """
    Coerce a date or datetime into a timezone-aware pendulum DateTime.

    Naive values are interpreted in ``tz`` (the local timezone if omitted).
    Aware values keep their own timezone.
    """
    if isinstance(value, DateTime):
        return value

    zone = tz or pendulum.local_timezone()

    if isinstance(value, datetime):
        if value.tzinfo is None:
            return pendulum.instance(value, tz=zone)
        return pendulum.instance(value)

    return pendulum.datetime(value.year, value.month, value.day, tz=zone)


def format_local_date_string(value: date) -> str:
    """Format a date as zero-padded ``YYYY-MM-DD`` from its local fields."""
    return f"{value.year:04d}-{value.month:02d}-{value.day:02d}"


def normalize_date(value: date) -> DateTime:
    """Return local midnight of the given day."""
    return to_local_datetime(value).start_of("day")


def get_day_name(value: date) -> str:
    """Map a date to its 3-letter day code (Sun..Sat)."""
    return DAY_NAMES[value.isoweekday() % 7]


def get_individual_slot_key(value: date, hour: int) -> str:
    """Build the individual-override key ``YYYY-MM-DD-<hour>``."""
    return f"{format_local_date_string(normalize_date(value))}-{hour}"


def current_time_for(value: DateTime, now: DateTime | None = None) -> DateTime:
    """
    Return ``now`` (or the real current time) expressed in ``value``'s timezone.
    """
    current = to_local_datetime(now) if now is not None else pendulum.now(value.tz)
    return current.in_timezone(value.tz)


def is_today(value: date, now: DateTime | None = None) -> bool:
    """Check whether a date falls on today's calendar date."""
    local = to_local_datetime(value)
    current = current_time_for(local, now)
    return format_local_date_string(local) == format_local_date_string(current)


def slot_datetime(value: date, minutes: int) -> DateTime:
    """
    Return the wall-clock moment ``minutes`` after midnight on ``value``'s day.

    A time inside a DST gap resolves forward (02:30 becomes 03:30 on a
    spring-forward day), so two labels can name the same instant.
    """
    return normalize_date(value).set(hour=minutes // 60, minute=minutes % 60)


def parse_timestamp(value: str, tz: str | None = None) -> DateTime:
    """
    Parse an ISO-8601 timestamp into ``tz``.

    Strings without an offset are read as wall-clock time in ``tz``;
    strings with an offset are converted into ``tz``.

    Raises:
        ValueError: If the value is not a datetime
    """
    zone = tz or pendulum.local_timezone()
    parsed = pendulum.parse(value, tz=zone)

    if not isinstance(parsed, DateTime):
        raise ValueError(f"Could not parse datetime: {value}")

    return parsed.in_timezone(zone)


def get_display_timezone(workspace_timezone: str | None = None) -> str:
    """
    Resolve the timezone for display and API calls.

    Order: workspace setting, then the machine's local timezone, then UTC.
    """
    configured = (workspace_timezone or "").strip()
    if configured:
        return configured

    try:
        name = pendulum.local_timezone().name
    except Exception as e:
        logger.warning("Could not detect local timezone, using %s: %s", FALLBACK_TIMEZONE, e)
        return FALLBACK_TIMEZONE

    return name or FALLBACK_TIMEZONE
