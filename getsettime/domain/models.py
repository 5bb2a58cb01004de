"""
Domain models for availability settings, bookings and generated time slots.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, List

from pendulum import DateTime
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from .exceptions import SettingsError
from .time_utils import DAY_NAMES, parse_time_to_minutes, parse_timestamp

DEFAULT_DURATION_MINUTES = 30

INACTIVE_BOOKING_STATUSES = frozenset({"cancelled", "emergency"})


@dataclass(frozen=True)
class TimeRange:
    """
    A half-open interval [start, end) of absolute time.

    Used for busy intervals, candidate slots and the range a booking is
    submitted for. Start must be before end.
    """
    start: DateTime
    end: DateTime

    def __post_init__(self):
        if self.start >= self.end:
            raise ValueError(f"Start time {self.start} must be before end time {self.end}")

    def overlaps(self, other: "TimeRange") -> bool:
        """Touching ranges do not overlap."""
        return self.start < other.end and self.end > other.start


class BreakTime(BaseModel):
    """A break inside a working day, as HH:mm strings."""
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    start: str
    end: str

    @field_validator("start", "end")
    @classmethod
    def validate_time(cls, value: str) -> str:
        parse_time_to_minutes(value)
        return value

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end)


class DaySchedule(BaseModel):
    """
    One weekday's availability template.

    JSON uses camelCase (``startTime``/``endTime``); Python code may use
    the snake_case field names.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    enabled: bool = False
    start_time: str = Field(default="09:00", alias="startTime")
    end_time: str = Field(default="17:00", alias="endTime")
    breaks: List[BreakTime] = Field(default_factory=list)

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Reject anything that is not a 24h HH:mm wall-clock time."""
        parse_time_to_minutes(value)
        return value

    @field_validator("breaks", mode="before")
    @classmethod
    def default_breaks(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def start_minutes(self) -> int:
        return parse_time_to_minutes(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_time_to_minutes(self.end_time)


Timesheet = Dict[str, DaySchedule]


def default_timesheet() -> Timesheet:
    """Template for a new workspace: Mon-Fri 09:00-17:00, weekends off."""
    return {
        day: DaySchedule(enabled=day not in ("Sat", "Sun"))
        for day in DAY_NAMES
    }


class AvailabilitySettings(BaseModel):
    """
    Effective availability for one actor: a weekly timesheet plus
    per-date/per-hour overrides. Only ``False`` overrides are authoritative.
    """
    model_config = ConfigDict(frozen=True)

    timesheet: Dict[str, DaySchedule] | None = None
    # null hours are kept: in an override layer they shadow a general False
    individual: Dict[str, bool | None] | None = None

    @field_validator("timesheet", mode="before")
    @classmethod
    def disable_null_days(cls, value: Any) -> Any:
        """A ``null`` day is a disabled day, also when it overrides the general one."""
        if isinstance(value, dict):
            return {day: {} if schedule is None else schedule for day, schedule in value.items()}
        return value

    def day_schedule(self, day_name: str) -> DaySchedule | None:
        """Schedule for a day code, or None when the timesheet has no entry."""
        if not self.timesheet:
            return None
        return self.timesheet.get(day_name)

    def is_blocked(self, key: str) -> bool:
        """True only for an explicit ``False`` override."""
        return (self.individual or {}).get(key) is False


class ProviderAvailability(AvailabilitySettings):
    """Per-provider override layer applied on top of the workspace template."""


class WorkspaceAvailability(AvailabilitySettings):
    """
    The persisted, unmerged ``settings.availability`` blob.
    """
    providers: Dict[str, ProviderAvailability] = Field(default_factory=dict)

    @field_validator("providers", mode="before")
    @classmethod
    def default_providers(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            # Provider ids may arrive as numbers
            return {str(key): layer or {} for key, layer in value.items()}
        return value

    @property
    def general(self) -> AvailabilitySettings:
        """The workspace-wide template without any provider layer."""
        return AvailabilitySettings(timesheet=self.timesheet, individual=self.individual)

    def provider_layer(self, provider_id: str) -> ProviderAvailability:
        """Override layer for a provider (empty if none is stored)."""
        return self.providers.get(str(provider_id)) or ProviderAvailability()

    @classmethod
    def from_settings(cls, settings: Dict[str, Any] | None) -> "WorkspaceAvailability":
        """
        Build from a workspace settings blob (``{"availability": {...}}``).

        Raises:
            SettingsError: If the availability section is malformed
        """
        data = (settings or {}).get("availability") or {}

        if not isinstance(data, dict):
            raise SettingsError("settings.availability must be a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            raise SettingsError(f"Invalid availability settings: {exc}") from exc


class EventType(BaseModel):
    """A bookable event type (e.g. a 30 minute consultation)."""
    model_config = ConfigDict(frozen=True)

    id: str
    title: str = ""
    duration_minutes: int | None = None
    slug: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @property
    def effective_duration(self) -> int:
        """Duration in minutes; missing, zero or negative values fall back to 30."""
        if not self.duration_minutes or self.duration_minutes <= 0:
            return DEFAULT_DURATION_MINUTES
        return self.duration_minutes


class Booking(BaseModel):
    """
    An existing booking or externally synced busy interval.

    Every booking handed to the engine blocks slots; dropping inactive
    statuses is done before that (see ``services.busy_intervals``).
    """
    model_config = ConfigDict(frozen=True)

    id: str | None = None
    start_at: str
    end_at: str
    status: str = "confirmed"
    service_provider_id: str | None = None

    @field_validator("id", "service_provider_id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("start_at", "end_at")
    @classmethod
    def validate_timestamp(cls, value: str) -> str:
        """Reject timestamps the engine could not place on a calendar day."""
        parse_timestamp(value, "UTC")
        return value

    @model_validator(mode="after")
    def validate_order(self) -> "Booking":
        if parse_timestamp(self.end_at, "UTC") <= parse_timestamp(self.start_at, "UTC"):
            raise ValueError(f"Booking must end after it starts ({self.start_at} - {self.end_at})")
        return self

    @property
    def is_active(self) -> bool:
        return self.status not in INACTIVE_BOOKING_STATUSES

    def start_in(self, tz: str | None = None) -> DateTime:
        return parse_timestamp(self.start_at, tz)

    def end_in(self, tz: str | None = None) -> DateTime:
        return parse_timestamp(self.end_at, tz)

    def time_range(self, tz: str | None = None) -> TimeRange:
        """The booked interval with both ends expressed in ``tz``."""
        return TimeRange(start=self.start_in(tz), end=self.end_in(tz))


class Department(BaseModel):
    """A department that routes bookings to its service providers."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class ServiceProvider(BaseModel):
    """A team member who can be booked."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str = ""
    email: str = ""
    departments: List[str] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value

    @field_validator("departments", mode="before")
    @classmethod
    def coerce_departments(cls, value: Any) -> Any:
        if value is None:
            return []
        return [str(item) for item in value]


class DisabledReason(str, Enum):
    """Why a generated slot cannot be booked, in precedence order."""
    BREAK = "break"
    BOOKED = "booked"
    UNAVAILABLE = "unavailable"
    PAST = "past"


@dataclass(frozen=True)
class Timeslot:
    """
    One duration-sized candidate booking interval within a day.
    """
    time: str
    disabled: bool
    start: DateTime
    end: DateTime
    reason: DisabledReason | None = None

    @property
    def is_available(self) -> bool:
        return not self.disabled
