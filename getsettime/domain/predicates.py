"""
Predicates deciding whether a candidate slot collides with a break,
an existing booking, or the current time.
"""

from typing import List, Sequence

from pendulum import DateTime

from .models import Booking, BreakTime, TimeRange
from .time_utils import current_time_for, is_today, normalize_date


def is_time_slot_on_break(
    slot_start_minutes: int,
    slot_end_minutes: int,
    breaks: Sequence[BreakTime]
) -> bool:
    """
    Check whether a slot (minutes since midnight) overlaps any break.

    A slot ending exactly when a break starts, or starting exactly when it
    ends, is not on break.
    """
    return any(
        slot_start_minutes < break_time.end_minutes
        and slot_end_minutes > break_time.start_minutes
        for break_time in breaks
    )


def busy_ranges_on(selected_date: DateTime, existing_bookings: Sequence[Booking]) -> List[TimeRange]:
    """
    Intervals of the bookings starting on ``selected_date`` (local calendar
    day), expressed in that date's timezone.

    Bookings are fetched for a date range, so they are narrowed per day;
    two bookings on different days can share the same wall-clock hour.
    """
    tz = selected_date.tz
    day = normalize_date(selected_date)

    ranges = []
    for booking in existing_bookings or []:
        booked = booking.time_range(tz)
        if normalize_date(booked.start) == day:
            ranges.append(booked)
    return ranges


def overlaps_any(slot: TimeRange, busy_ranges: Sequence[TimeRange]) -> bool:
    return any(slot.overlaps(busy) for busy in busy_ranges)


def is_time_slot_booked(
    slot_start: DateTime,
    slot_end: DateTime,
    selected_date: DateTime,
    existing_bookings: Sequence[Booking]
) -> bool:
    """Check whether a slot collides with a booking on the selected day."""
    if not existing_bookings:
        return False

    return overlaps_any(
        TimeRange(start=slot_start, end=slot_end),
        busy_ranges_on(selected_date, existing_bookings)
    )


def is_time_slot_in_past(
    slot_start: DateTime,
    check_date: DateTime,
    now: DateTime | None = None
) -> bool:
    """
    Check whether a slot on ``check_date`` has already started.

    Only today's slots can be in the past; past dates are rejected earlier
    at the calendar level.
    """
    if not is_today(check_date, now):
        return False
    return slot_start < current_time_for(slot_start, now)
