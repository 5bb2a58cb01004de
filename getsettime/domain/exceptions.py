"""
Domain-specific exception hierarchy for the Get Set Time booking engine.
"""


class GetSetTimeError(Exception):
    """Base class for all application-level errors."""


class TimeFormatError(GetSetTimeError, ValueError):
    """Raised when a wall-clock string is not in HH:mm form."""


class SettingsError(GetSetTimeError):
    """Raised when workspace settings cannot be interpreted."""


class WorkspaceAPIError(GetSetTimeError):
    """Raised when workspace data cannot be fetched or parsed."""


class SlotUnavailableError(GetSetTimeError):
    """Raised when a chosen time slot can no longer be booked."""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason
