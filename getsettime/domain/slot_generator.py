"""
Core business logic for turning a day's availability into bookable slots.

Pure domain logic: no API calls, no database, no I/O. The only implicit
input is the current time, and even that can be injected via ``now``.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterator, List, Sequence, Tuple

from pendulum import DateTime

from .models import (
    AvailabilitySettings,
    Booking,
    DaySchedule,
    DisabledReason,
    EventType,
    TimeRange,
    Timeslot,
)
from .predicates import busy_ranges_on, is_time_slot_in_past, is_time_slot_on_break, overlaps_any
from .time_utils import (
    format_local_date_string,
    format_minutes_to_display,
    get_day_name,
    get_individual_slot_key,
    normalize_date,
    slot_datetime,
)


@dataclass(frozen=True)
class SlotCandidate:
    """A duration-sized step of the day before classification."""
    day: DateTime
    schedule: DaySchedule
    start_minutes: int
    end_minutes: int
    start: DateTime
    end: DateTime


SlotRule = Callable[[SlotCandidate, DateTime | None], bool]


class SlotGenerator:
    """
    Generates the time slots for one date from effective availability.

    Algorithm:
    1. Resolve the weekday schedule; missing or disabled days yield nothing
    2. Walk from start to end in duration-sized steps, dropping a trailing
       step that would run past the end of the day
    3. Classify each step with an ordered rule list, first match wins:
       break > booked > unavailable (individual override) > past
    """

    def __init__(
        self,
        availability: AvailabilitySettings | None,
        existing_bookings: Sequence[Booking] | None = None
    ):
        self.availability = availability
        self.existing_bookings = list(existing_bookings or [])
        self._busy_by_day: Dict[Tuple[str, str], List[TimeRange]] = {}
        self._rules: Tuple[Tuple[DisabledReason, SlotRule], ...] = (
            (DisabledReason.BREAK, self._is_on_break),
            (DisabledReason.BOOKED, self._is_booked),
            (DisabledReason.UNAVAILABLE, self._is_overridden),
            (DisabledReason.PAST, self._is_past),
        )

    def day_schedule_for(self, selected_date: DateTime) -> DaySchedule | None:
        """Enabled schedule for the date's weekday, or None."""
        if self.availability is None:
            return None

        schedule = self.availability.day_schedule(get_day_name(selected_date))
        if schedule is None or not schedule.enabled:
            return None
        return schedule

    def generate_timeslots(
        self,
        event_type: EventType | None,
        selected_date: DateTime | None,
        now: DateTime | None = None
    ) -> List[Timeslot]:
        """
        Produce the ordered slot list for a date.

        Args:
            event_type: Selected event type (its duration sets the step size)
            selected_date: Day to generate slots for
            now: Override for the current time

        Returns:
            One Timeslot per step, disabled ones carrying their reason
        """
        if event_type is None or selected_date is None:
            return []

        day = normalize_date(selected_date)
        schedule = self.day_schedule_for(day)

        if schedule is None:
            return []

        return [
            self._build_slot(candidate, now)
            for candidate in self._iter_candidates(day, schedule, event_type.effective_duration)
        ]

    def classify(
        self,
        candidate: SlotCandidate,
        now: DateTime | None = None
    ) -> DisabledReason | None:
        """Return the first matching disable reason, or None if bookable."""
        for reason, rule in self._rules:
            if rule(candidate, now):
                return reason
        return None

    def _iter_candidates(
        self,
        day: DateTime,
        schedule: DaySchedule,
        duration: int
    ) -> Iterator[SlotCandidate]:
        start_minutes = schedule.start_minutes
        end_minutes = schedule.end_minutes

        slot_start = start_minutes
        while slot_start < end_minutes:
            slot_end = slot_start + duration
            # A slot ending exactly at end of day still fits
            if slot_end > end_minutes:
                break

            start = slot_datetime(day, slot_start)
            yield SlotCandidate(
                day=day,
                schedule=schedule,
                start_minutes=slot_start,
                end_minutes=slot_end,
                start=start,
                end=start.add(minutes=duration)
            )
            slot_start = slot_end

    def _build_slot(self, candidate: SlotCandidate, now: DateTime | None) -> Timeslot:
        reason = self.classify(candidate, now)
        return Timeslot(
            time=format_minutes_to_display(candidate.start_minutes),
            disabled=reason is not None,
            start=candidate.start,
            end=candidate.end,
            reason=reason
        )

    def _is_on_break(self, candidate: SlotCandidate, now: DateTime | None) -> bool:
        return is_time_slot_on_break(
            candidate.start_minutes,
            candidate.end_minutes,
            candidate.schedule.breaks
        )

    def _is_booked(self, candidate: SlotCandidate, now: DateTime | None) -> bool:
        return overlaps_any(
            TimeRange(start=candidate.start, end=candidate.end),
            self._busy_ranges(candidate.day)
        )

    def _busy_ranges(self, day: DateTime) -> List[TimeRange]:
        """Booking intervals on ``day``, parsed once per generator and day."""
        key = (format_local_date_string(day), day.timezone_name)
        if key not in self._busy_by_day:
            self._busy_by_day[key] = busy_ranges_on(day, self.existing_bookings)
        return self._busy_by_day[key]

    def _is_overridden(self, candidate: SlotCandidate, now: DateTime | None) -> bool:
        """
        Check every hour the slot touches, so a slot straddling an hour
        boundary respects overrides on both sides.
        """
        if self.availability is None:
            return False

        first_hour = candidate.start_minutes // 60
        last_hour = candidate.end_minutes // 60

        return any(
            self.availability.is_blocked(get_individual_slot_key(candidate.day, hour))
            for hour in range(first_hour, last_hour + 1)
        )

    def _is_past(self, candidate: SlotCandidate, now: DateTime | None) -> bool:
        return is_time_slot_in_past(candidate.start, candidate.day, now)


def generate_timeslots(
    event_type: EventType | None,
    selected_date: DateTime | None,
    availability: AvailabilitySettings | None,
    existing_bookings: Sequence[Booking] | None = None,
    now: DateTime | None = None
) -> List[Timeslot]:
    """Functional shortcut for ``SlotGenerator(...).generate_timeslots(...)``."""
    generator = SlotGenerator(availability, existing_bookings)
    return generator.generate_timeslots(event_type, selected_date, now)
