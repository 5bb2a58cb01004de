"""
Mock workspace API client for trying the booking flow without a backend.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

import pendulum
from pendulum import DateTime

from ..domain.models import Booking, Department, EventType, ServiceProvider
from ..domain.time_utils import normalize_date, parse_time_to_minutes, slot_datetime
from .workspace_client import filter_service_providers, parse_items

logger = logging.getLogger(__name__)

DEFAULT_DATA_FILE = Path(__file__).parent / "mock_workspace_data.json"


class MockWorkspaceClient:
    """
    Mock client that serves workspace data from a JSON file.

    Booking fixtures are stored relative to today (``day_offset`` plus
    ``HH:mm`` start/end) so the demo data never goes stale.
    """

    def __init__(self, data_file: Path | None = None, timezone: str | None = None):
        """
        Initialize the mock client.

        Args:
            data_file: JSON fixture (defaults to the bundled mock_workspace_data.json)
            timezone: Timezone used to place relative bookings
        """
        self.timezone = timezone
        self.data_file = data_file or DEFAULT_DATA_FILE
        self._load_data()

    def _load_data(self):
        """Load mock workspace data from the JSON file."""
        if self.data_file.exists():
            with open(self.data_file, "r", encoding="utf-8") as f:
                self.data: Dict[str, Any] = json.load(f)
        else:
            logger.warning("Mock data file %s not found, serving empty workspace", self.data_file)
            self.data = {}

    def _materialize(self, record: Dict[str, Any]) -> Dict[str, Any]:
        """Turn a relative fixture into an API-shaped booking record."""
        day = normalize_date(pendulum.now(self.timezone)).add(days=record.get("day_offset", 0))
        start = slot_datetime(day, parse_time_to_minutes(record["start"]))
        end = slot_datetime(day, parse_time_to_minutes(record["end"]))

        materialized = {
            key: value for key, value in record.items()
            if key not in ("day_offset", "start", "end")
        }
        materialized["start_at"] = start.to_iso8601_string()
        materialized["end_at"] = end.to_iso8601_string()
        return materialized

    def _in_range(self, record: Dict[str, Any], start_date: DateTime, end_date: DateTime) -> bool:
        booking_start = pendulum.parse(record["start_at"])
        return normalize_date(start_date) <= booking_start < normalize_date(end_date).add(days=1)

    async def get_settings(self) -> Dict[str, Any]:
        return self.data.get("settings") or {}

    async def get_bookings(
        self,
        start_date: DateTime,
        end_date: DateTime,
        provider_id: str | None = None
    ) -> Tuple[List[Booking], List[Booking]]:
        """Return fixtures inside the range, mimicking the server-side filters."""
        bookings = [
            record for record in map(self._materialize, self.data.get("bookings", []))
            if self._in_range(record, start_date, end_date)
            and (provider_id is None or record.get("service_provider_id") == provider_id)
        ]
        calendar_busy = [
            record for record in map(self._materialize, self.data.get("calendarBusy", []))
            if self._in_range(record, start_date, end_date)
        ]

        return (
            parse_items(bookings, Booking, "booking", strict=True),
            parse_items(calendar_busy, Booking, "calendar busy block", strict=True),
        )

    async def get_event_types(self) -> List[EventType]:
        return parse_items(self.data.get("eventTypes"), EventType, "event type")

    async def get_departments(self) -> List[Department]:
        return parse_items(self.data.get("departments"), Department, "department")

    async def get_service_providers(self) -> List[ServiceProvider]:
        members = filter_service_providers(self.data.get("teamMembers") or [])
        return parse_items(members, ServiceProvider, "team member")
