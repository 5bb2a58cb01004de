"""
Tests for the slot collision predicates.
"""

import pendulum

from getsettime.domain.models import Booking, BreakTime, TimeRange
from getsettime.domain.predicates import (
    busy_ranges_on,
    is_time_slot_booked,
    is_time_slot_in_past,
    is_time_slot_on_break,
    overlaps_any,
)

TZ = "Europe/Berlin"
MONDAY = pendulum.datetime(2024, 11, 25, tz=TZ)


def _at(hour, minute=0, day=MONDAY):
    return day.set(hour=hour, minute=minute)


def _booking(start, end, status="confirmed"):
    return Booking(start_at=start, end_at=end, status=status)


class TestIsTimeSlotOnBreak:
    """Lunch break 12:00-13:00 (720-780)."""

    LUNCH = [BreakTime(start="12:00", end="13:00")]

    def test_slot_ending_at_break_start(self):
        assert not is_time_slot_on_break(660, 720, self.LUNCH)

    def test_slot_starting_at_break_end(self):
        assert not is_time_slot_on_break(780, 840, self.LUNCH)

    def test_partial_overlap(self):
        assert is_time_slot_on_break(750, 810, self.LUNCH)

    def test_slot_enclosing_break(self):
        assert is_time_slot_on_break(690, 810, self.LUNCH)

    def test_any_of_several_breaks(self):
        breaks = [BreakTime(start="10:00", end="10:15"), *self.LUNCH]
        assert is_time_slot_on_break(600, 630, breaks)

    def test_no_breaks(self):
        assert not is_time_slot_on_break(720, 750, [])


class TestIsTimeSlotBooked:

    def test_overlapping_booking(self):
        bookings = [_booking("2024-11-25T09:15:00", "2024-11-25T09:45:00")]
        assert is_time_slot_booked(_at(9), _at(9, 30), MONDAY, bookings)

    def test_booking_ending_at_slot_start(self):
        bookings = [_booking("2024-11-25T08:30:00", "2024-11-25T09:00:00")]
        assert not is_time_slot_booked(_at(9), _at(9, 30), MONDAY, bookings)

    def test_same_hour_on_other_day(self):
        bookings = [_booking("2024-11-26T09:00:00", "2024-11-26T09:30:00")]
        assert not is_time_slot_booked(_at(9), _at(9, 30), MONDAY, bookings)

    def test_utc_booking_late_evening_belongs_to_next_local_day(self):
        """23:30Z on Sunday is 00:30 on Monday in Berlin."""
        bookings = [_booking("2024-11-24T23:30:00Z", "2024-11-25T00:30:00Z")]
        assert is_time_slot_booked(_at(0, 30), _at(1), MONDAY, bookings)

    def test_no_bookings(self):
        assert not is_time_slot_booked(_at(9), _at(9, 30), MONDAY, [])


class TestIsTimeSlotInPast:

    def test_today_before_now(self):
        now = _at(10, 15)
        assert is_time_slot_in_past(_at(10), MONDAY, now)

    def test_today_after_now(self):
        now = _at(10, 15)
        assert not is_time_slot_in_past(_at(10, 30), MONDAY, now)

    def test_other_day_is_never_past(self):
        """Earlier days are filtered at the calendar level."""
        now = pendulum.datetime(2024, 11, 27, 12, 0, tz=TZ)
        assert not is_time_slot_in_past(_at(9), MONDAY, now)

    def test_now_in_other_timezone(self):
        now = pendulum.datetime(2024, 11, 25, 9, 0, tz="UTC")  # 10:00 in Berlin
        assert is_time_slot_in_past(_at(9, 30), MONDAY, now)
        assert not is_time_slot_in_past(_at(10, 30), MONDAY, now)


class TestBusyRanges:

    def test_keeps_only_bookings_starting_on_the_day(self):
        bookings = [
            _booking("2024-11-25T09:00:00", "2024-11-25T09:30:00"),
            _booking("2024-11-26T09:00:00", "2024-11-26T09:30:00"),
        ]

        ranges = busy_ranges_on(_at(15), bookings)

        assert ranges == [TimeRange(start=_at(9), end=_at(9, 30))]

    def test_ranges_are_in_the_days_timezone(self):
        bookings = [_booking("2024-11-25T08:00:00Z", "2024-11-25T08:30:00Z")]

        (busy,) = busy_ranges_on(MONDAY, bookings)

        assert (busy.start.hour, busy.start.timezone_name) == (9, TZ)

    def test_overlaps_any(self):
        busy = [TimeRange(start=_at(9), end=_at(9, 30)), TimeRange(start=_at(11), end=_at(12))]

        assert overlaps_any(TimeRange(start=_at(11, 30), end=_at(12, 30)), busy)
        assert not overlaps_any(TimeRange(start=_at(9, 30), end=_at(11)), busy)
        assert not overlaps_any(TimeRange(start=_at(9), end=_at(10)), [])
