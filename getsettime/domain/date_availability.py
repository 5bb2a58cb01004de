"""
Calendar-level availability: whether a whole date has anything bookable.
"""

from typing import Dict, List, Sequence

from pendulum import DateTime

from .models import AvailabilitySettings, Booking, DaySchedule, EventType
from .slot_generator import SlotGenerator
from .time_utils import (
    current_time_for,
    format_local_date_string,
    get_day_name,
    get_individual_slot_key,
    normalize_date,
)

CALENDAR_GRID_DAYS = 42


def is_date_available(
    date: DateTime,
    availability: AvailabilitySettings | None,
    event_type: EventType | None,
    existing_bookings: Sequence[Booking] | None = None,
    now: DateTime | None = None
) -> bool:
    """
    Check whether a date has at least one bookable slot.

    Cheap checks run first (day enabled, not a past date, not fully
    blocked by individual overrides); only then is the day simulated with
    the slot generator. Today counts as available even if some hours have
    passed.
    """
    if availability is None or not availability.timesheet or event_type is None:
        return False

    day = normalize_date(date)
    schedule = availability.day_schedule(get_day_name(day))

    if schedule is None or not schedule.enabled:
        return False

    if day < normalize_date(current_time_for(day, now)):
        return False

    if availability.individual is not None and _all_hours_blocked(day, schedule, availability):
        return False

    generator = SlotGenerator(availability, existing_bookings)
    return any(
        slot.is_available
        for slot in generator.generate_timeslots(event_type, day, now)
    )


def _all_hours_blocked(
    day: DateTime,
    schedule: DaySchedule,
    availability: AvailabilitySettings
) -> bool:
    """
    True when every hour of the working window is explicitly switched off.
    A mix of overridden and untouched hours is not a full block.
    """
    start_hour = schedule.start_minutes // 60
    end_hour = -(-schedule.end_minutes // 60)

    return all(
        availability.is_blocked(get_individual_slot_key(day, hour))
        for hour in range(start_hour, end_hour)
    )


def available_dates(
    days: Sequence[DateTime],
    availability: AvailabilitySettings | None,
    event_type: EventType | None,
    existing_bookings: Sequence[Booking] | None = None,
    now: DateTime | None = None
) -> Dict[str, bool]:
    """Map each day (as YYYY-MM-DD) to its availability flag, in input order."""
    return {
        format_local_date_string(day): is_date_available(
            day, availability, event_type, existing_bookings, now
        )
        for day in days
    }


def get_calendar_days(month_date: DateTime) -> List[DateTime]:
    """
    Days of a 6-week month grid starting on Sunday, padded with the
    trailing days of the previous month and leading days of the next.
    """
    first = normalize_date(month_date).start_of("month")
    grid_start = first.subtract(days=first.isoweekday() % 7)
    return [grid_start.add(days=offset) for offset in range(CALENDAR_GRID_DAYS)]


def upcoming_days(start: DateTime, count: int) -> List[DateTime]:
    """``count`` consecutive local midnights beginning with ``start``."""
    first = normalize_date(start)
    return [first.add(days=offset) for offset in range(count)]
