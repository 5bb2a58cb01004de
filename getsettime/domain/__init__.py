"""
Domain layer - Pure availability logic without external dependencies.
"""

from .date_availability import available_dates, get_calendar_days, is_date_available
from .merge import merge_availability, resolve_effective_availability
from .models import (
    AvailabilitySettings,
    Booking,
    BreakTime,
    DaySchedule,
    DisabledReason,
    EventType,
    ProviderAvailability,
    TimeRange,
    Timeslot,
    WorkspaceAvailability,
)
from .slot_generator import SlotGenerator, generate_timeslots

__all__ = [
    "AvailabilitySettings",
    "Booking",
    "BreakTime",
    "DaySchedule",
    "DisabledReason",
    "EventType",
    "ProviderAvailability",
    "TimeRange",
    "Timeslot",
    "WorkspaceAvailability",
    "SlotGenerator",
    "generate_timeslots",
    "is_date_available",
    "available_dates",
    "get_calendar_days",
    "merge_availability",
    "resolve_effective_availability",
]
