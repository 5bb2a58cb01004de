"""
Service layer helpers that orchestrate adapters and domain logic.
"""

from .booking_session import BookingSession, SelectionKey, WorkspaceClientProtocol
from .busy_intervals import booking_fetch_window, collect_busy_intervals
from .settings_store import WorkspaceSettingsStore

__all__ = [
    "BookingSession",
    "SelectionKey",
    "WorkspaceClientProtocol",
    "WorkspaceSettingsStore",
    "booking_fetch_window",
    "collect_busy_intervals",
]
