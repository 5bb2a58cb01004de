"""
Application service driving one booking flow.

The session owns the current selection (provider, event type, date, time),
fetches settings and bookings through a workspace client adapter, and
delegates all slot arithmetic to the domain layer. The client dependency is
a simple protocol so tests and the CLI mock mode can plug in stubs.

Every fetch is tagged with the selection it was issued for; a result that
arrives after the selection has moved on is discarded rather than
overwriting newer state.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, List, Protocol, Sequence, Tuple

import pendulum
from pendulum import DateTime

from ..domain.date_availability import available_dates, upcoming_days
from ..domain.event_types import sort_event_types_by_duration
from ..domain.exceptions import SlotUnavailableError
from ..domain.merge import resolve_effective_availability
from ..domain.models import (
    AvailabilitySettings,
    Booking,
    Department,
    DisabledReason,
    EventType,
    ServiceProvider,
    TimeRange,
    Timeslot,
)
from ..domain.predicates import is_time_slot_booked
from ..domain.slot_generator import SlotGenerator
from ..domain.time_utils import (
    current_time_for,
    normalize_date,
    parse_display_time,
    slot_datetime,
    to_local_datetime,
)
from .busy_intervals import (
    CALENDAR_BUFFER_DAYS_AFTER,
    CALENDAR_BUFFER_DAYS_BEFORE,
    booking_fetch_window,
    collect_busy_intervals,
)
from .settings_store import SettingsClientProtocol, WorkspaceSettingsStore

logger = logging.getLogger(__name__)

DEFAULT_CALENDAR_DAYS = 10


class WorkspaceClientProtocol(SettingsClientProtocol, Protocol):
    """Protocol describing the workspace client behaviour needed by the session."""

    async def get_bookings(
        self,
        start_date: DateTime,
        end_date: DateTime,
        provider_id: str | None = None,
    ) -> Tuple[List[Booking], List[Booking]]:
        """Return (bookings, calendar_busy) for the date range."""

    async def get_event_types(self) -> List[EventType]:
        """Return the workspace's event types."""

    async def get_departments(self) -> List[Department]:
        """Return the workspace's departments."""

    async def get_service_providers(self) -> List[ServiceProvider]:
        """Return active service providers."""


@dataclass(frozen=True)
class SelectionKey:
    """Identifies the selection an in-flight fetch was issued for."""
    provider_id: str | None
    generation: int


class BookingSession:
    """
    Orchestrates fetching and recomputation for the booking flow.

    Recompute triggers:
    - provider change: new effective availability and provider-scoped
      bookings; selected date and time are cleared
    - event type change: selected date and time are cleared
    - date change: slots are recomputed; a selected time that is no longer
      open is cleared
    """

    def __init__(
        self,
        client: WorkspaceClientProtocol,
        settings_store: WorkspaceSettingsStore | None = None,
        *,
        timezone: str | None = None,
        days: Sequence[DateTime] | None = None,
        calendar_days: int = DEFAULT_CALENDAR_DAYS,
        buffer_days_before: int = CALENDAR_BUFFER_DAYS_BEFORE,
        buffer_days_after: int = CALENDAR_BUFFER_DAYS_AFTER,
    ) -> None:
        self._client = client
        self.settings_store = settings_store or WorkspaceSettingsStore(client)
        self.timezone = timezone
        self.buffer_days_before = buffer_days_before
        self.buffer_days_after = buffer_days_after
        self.days: List[DateTime] = (
            [normalize_date(to_local_datetime(day, timezone)) for day in days]
            if days
            else upcoming_days(pendulum.now(timezone), calendar_days)
        )

        self.departments: List[Department] = []
        self.service_providers: List[ServiceProvider] = []
        self.event_types: List[EventType] = []

        self.availability: AvailabilitySettings | None = None
        self.existing_bookings: List[Booking] = []

        self.provider_id: str | None = None
        self.event_type: EventType | None = None
        self.selected_date: DateTime | None = None
        self.selected_time: str | None = None

        self._generation = 0

    @property
    def selection_key(self) -> SelectionKey:
        return SelectionKey(provider_id=self.provider_id, generation=self._generation)

    @property
    def has_departments(self) -> bool:
        return bool(self.departments)

    @property
    def needs_provider(self) -> bool:
        """Department routing is active and no provider has been chosen."""
        return self.has_departments and self.provider_id is None

    async def initialize(self) -> None:
        """Load lookups (departments, providers, event types) and availability."""
        departments, providers, event_types = await asyncio.gather(
            self._client.get_departments(),
            self._client.get_service_providers(),
            self._client.get_event_types(),
        )

        # Departments without any provider cannot take bookings
        self.departments = [
            department for department in departments
            if any(department.id in provider.departments for provider in providers)
        ]
        self.service_providers = list(providers)
        self.event_types = sort_event_types_by_duration(event_types)

        logger.debug(
            "Session initialised: %d department(s), %d provider(s), %d event type(s)",
            len(self.departments), len(self.service_providers), len(self.event_types)
        )

        await self.refresh_availability()

    def providers_for_department(self, department_id: str) -> List[ServiceProvider]:
        return [p for p in self.service_providers if str(department_id) in p.departments]

    async def select_provider(self, provider_id: str | None) -> bool:
        """
        Switch provider, clearing date/time and reloading availability.

        Returns:
            False if a newer selection superseded this one mid-fetch
        """
        self.provider_id = str(provider_id) if provider_id is not None else None
        self._generation += 1
        self.availability = None
        self.existing_bookings = []
        self._clear_date_and_time()
        return await self.refresh_availability()

    async def set_visible_days(self, days: Sequence[DateTime]) -> bool:
        """Change the calendar window and refetch bookings for it."""
        self.days = [normalize_date(to_local_datetime(day, self.timezone)) for day in days]
        self._generation += 1
        return await self.refresh_availability()

    async def refresh_availability(self) -> bool:
        """
        Recompute effective availability and busy intervals for the
        current selection.

        Returns:
            True if the result was applied, False if it was stale
        """
        key = self.selection_key

        if self.needs_provider:
            self.availability = None
            self.existing_bookings = []
            return True

        workspace, bookings = await asyncio.gather(
            self.settings_store.load(),
            self._fetch_busy_intervals(key.provider_id),
        )

        if key != self.selection_key:
            logger.debug("Discarding stale availability for %s (now %s)", key, self.selection_key)
            return False

        self.availability = resolve_effective_availability(
            workspace, key.provider_id, self.has_departments
        )
        self.existing_bookings = bookings
        return True

    def select_event_type(self, event_type: EventType | None) -> None:
        """A new duration invalidates any earlier slot choice."""
        self.event_type = event_type
        self._clear_date_and_time()

    def select_date(self, date: DateTime | None, now: DateTime | None = None) -> List[Timeslot]:
        """Select a date and return its slots, dropping a time that closed."""
        self.selected_date = (
            normalize_date(to_local_datetime(date, self.timezone)) if date is not None else None
        )
        slots = self.timeslots(now)

        if self.selected_time and not self._is_open(self.selected_time, slots):
            logger.debug("Selected time %s no longer available, clearing", self.selected_time)
            self.selected_time = None
        elif self.selected_date is None:
            self.selected_time = None

        return slots

    def select_time(self, label: str, now: DateTime | None = None) -> None:
        """
        Raises:
            SlotUnavailableError: If the label is not an open slot
        """
        slots = self.timeslots(now)
        slot = next((s for s in slots if s.time == label), None)

        if slot is None:
            raise SlotUnavailableError(f"{label} is not offered on this date")
        if slot.disabled:
            raise SlotUnavailableError(
                f"This time slot is not available ({slot.reason.value})",
                reason=slot.reason.value
            )

        self.selected_time = label

    def timeslots(self, now: DateTime | None = None) -> List[Timeslot]:
        generator = SlotGenerator(self.availability, self.existing_bookings)
        return generator.generate_timeslots(self.event_type, self.selected_date, now)

    def date_availability(
        self,
        days: Sequence[DateTime] | None = None,
        now: DateTime | None = None
    ) -> Dict[str, bool]:
        return available_dates(
            days if days is not None else self.days,
            self.availability,
            self.event_type,
            self.existing_bookings,
            now,
        )

    def validate_selection(self, now: DateTime | None = None) -> TimeRange:
        """
        Re-derive the slots and re-check the chosen time before a booking
        is persisted, guarding against changes since the slots were shown.

        Returns:
            The booking's TimeRange

        Raises:
            SlotUnavailableError: If the selection is incomplete or closed
        """
        if self.event_type is None or self.selected_date is None or not self.selected_time:
            raise SlotUnavailableError("Please select an event type, date and time")

        if self.needs_provider:
            raise SlotUnavailableError("Please select a service provider")

        slot = next((s for s in self.timeslots(now) if s.time == self.selected_time), None)
        if slot is None:
            raise SlotUnavailableError("This time slot is no longer offered. Please select another time.")
        if slot.disabled:
            raise SlotUnavailableError(
                f"This time slot is not available ({slot.reason.value}). Please select another time.",
                reason=slot.reason.value
            )

        parsed = parse_display_time(self.selected_time)
        if parsed is None:
            raise SlotUnavailableError("Invalid time selection. Please try again.")

        hour, minute = parsed
        start = slot_datetime(self.selected_date, hour * 60 + minute)
        end = start.add(minutes=self.event_type.effective_duration)

        if start < current_time_for(start, now):
            raise SlotUnavailableError(
                "Cannot book a time slot in the past. Please select a future time.",
                reason=DisabledReason.PAST.value
            )

        if is_time_slot_booked(start, end, self.selected_date, self.existing_bookings):
            raise SlotUnavailableError(
                "This time slot has already been booked. Please refresh and select another time.",
                reason=DisabledReason.BOOKED.value
            )

        return TimeRange(start=start, end=end)

    async def _fetch_busy_intervals(self, provider_id: str | None) -> List[Booking]:
        start_date, end_date = booking_fetch_window(
            self.days,
            before=self.buffer_days_before,
            after=self.buffer_days_after,
            tz=self.timezone,
        )
        bookings, calendar_busy = await self._client.get_bookings(
            start_date=start_date,
            end_date=end_date,
            provider_id=provider_id,
        )
        return collect_busy_intervals(bookings, calendar_busy, provider_id)

    def _clear_date_and_time(self) -> None:
        self.selected_date = None
        self.selected_time = None

    @staticmethod
    def _is_open(label: str, slots: Sequence[Timeslot]) -> bool:
        return any(slot.time == label and not slot.disabled for slot in slots)
