"""
Preparation of the busy-interval list handed to the slot generator.
"""

from typing import List, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.models import Booking
from ..domain.time_utils import normalize_date

CALENDAR_BUFFER_DAYS_BEFORE = 5
CALENDAR_BUFFER_DAYS_AFTER = 30


def collect_busy_intervals(
    bookings: Sequence[Booking],
    calendar_busy: Sequence[Booking] | None = None,
    provider_id: str | None = None
) -> List[Booking]:
    """
    Build the list of intervals that block slots.

    - Cancelled and emergency bookings are dropped.
    - With a provider selected, other providers' bookings are dropped.
    - Externally synced calendar-busy blocks are appended as confirmed,
      so they block exactly like real bookings.
    """
    active = [
        booking for booking in bookings
        if booking.is_active
        and (provider_id is None or booking.service_provider_id == str(provider_id))
    ]

    busy = [
        block.model_copy(update={"status": "confirmed"})
        for block in (calendar_busy or [])
    ]

    return active + busy


def booking_fetch_window(
    days: Sequence[DateTime],
    before: int = CALENDAR_BUFFER_DAYS_BEFORE,
    after: int = CALENDAR_BUFFER_DAYS_AFTER,
    tz: str | None = None
) -> Tuple[DateTime, DateTime]:
    """
    Date range to fetch bookings for, padded around the visible calendar days.
    """
    if days:
        first, last = normalize_date(days[0]), normalize_date(days[-1])
    else:
        first = last = normalize_date(pendulum.now(tz))

    return first.subtract(days=before), last.add(days=after)
