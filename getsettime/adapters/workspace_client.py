"""
REST client for the workspace API (settings, bookings, lookups).
"""

import asyncio
import logging
from typing import Any, Dict, List, Tuple

import requests
from pendulum import DateTime
from pydantic import ValidationError

from ..domain.exceptions import WorkspaceAPIError
from ..domain.models import Booking, Department, EventType, ServiceProvider
from ..domain.time_utils import format_local_date_string

logger = logging.getLogger(__name__)

SERVICE_PROVIDER_ROLE = "service_provider"


class WorkspaceClient:
    """
    Client for the workspace REST endpoints.

    Requests are blocking (``requests``); the async methods run them in a
    worker thread so the booking session can fetch concurrently.
    """

    def __init__(self, base_url: str, access_token: str, timeout: float = 30):
        """
        Initialize the workspace API client.

        Args:
            base_url: Root URL of the workspace app, e.g. https://app.example.com
            access_token: Bearer token for the signed-in workspace user
            timeout: Per-request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers.update({
            "Authorization": f"Bearer {access_token}",
            "Accept": "application/json",
        })

    def _get(self, path: str, params: Dict[str, str] | None = None) -> Dict[str, Any]:
        url = f"{self.base_url}{path}"

        try:
            response = self.session.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            data = response.json()
        except requests.exceptions.RequestException as e:
            logger.error("GET %s failed: %s", path, e)
            raise WorkspaceAPIError(f"Failed to fetch {path}: {e}") from e
        except ValueError as e:
            raise WorkspaceAPIError(f"Invalid JSON from {path}: {e}") from e

        if not isinstance(data, dict):
            raise WorkspaceAPIError(f"Unexpected response shape from {path}")

        return data

    def fetch_settings(self) -> Dict[str, Any]:
        """Workspace settings blob (``{"availability": {...}, ...}``)."""
        return self._get("/api/settings").get("settings") or {}

    def fetch_bookings(
        self,
        start_date: DateTime,
        end_date: DateTime,
        provider_id: str | None = None
    ) -> Tuple[List[Booking], List[Booking]]:
        """
        Bookings and synced calendar-busy blocks in a date range.

        Returns:
            (bookings, calendar_busy); unfiltered, statuses included
        """
        params = {
            "start_date": format_local_date_string(start_date),
            "end_date": format_local_date_string(end_date),
        }
        if provider_id is not None:
            params["service_provider_id"] = str(provider_id)

        data = self._get("/api/bookings", params=params)
        return (
            parse_items(data.get("data"), Booking, "booking", strict=True),
            parse_items(data.get("calendar_busy"), Booking, "calendar busy block", strict=True),
        )

    def fetch_event_types(self) -> List[EventType]:
        return parse_items(self._get("/api/event-types").get("data"), EventType, "event type")

    def fetch_departments(self) -> List[Department]:
        return parse_items(self._get("/api/departments").get("departments"), Department, "department")

    def fetch_service_providers(self) -> List[ServiceProvider]:
        """Team members with the service provider role that are not deactivated."""
        members = self._get("/api/team-members").get("teamMembers") or []
        return parse_items(filter_service_providers(members), ServiceProvider, "team member")

    async def get_settings(self) -> Dict[str, Any]:
        return await asyncio.to_thread(self.fetch_settings)

    async def get_bookings(
        self,
        start_date: DateTime,
        end_date: DateTime,
        provider_id: str | None = None
    ) -> Tuple[List[Booking], List[Booking]]:
        return await asyncio.to_thread(self.fetch_bookings, start_date, end_date, provider_id)

    async def get_event_types(self) -> List[EventType]:
        return await asyncio.to_thread(self.fetch_event_types)

    async def get_departments(self) -> List[Department]:
        return await asyncio.to_thread(self.fetch_departments)

    async def get_service_providers(self) -> List[ServiceProvider]:
        return await asyncio.to_thread(self.fetch_service_providers)


def filter_service_providers(members: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return [
        member for member in members
        if member.get("role") == SERVICE_PROVIDER_ROLE and not member.get("deactivated")
    ]


def parse_items(items: Any, model: type, label: str, strict: bool = False) -> List[Any]:
    """
    Validate a list of API records into models.

    Malformed records are skipped with a warning, unless ``strict`` is set.
    Busy intervals are parsed strictly: silently dropping one would offer
    a slot that is actually taken.

    Raises:
        WorkspaceAPIError: On a malformed record when ``strict`` is set
    """
    parsed = []

    for item in items or []:
        try:
            parsed.append(model.model_validate(item))
        except ValidationError as e:
            if strict:
                raise WorkspaceAPIError(f"Malformed {label} in response: {e}") from e
            logger.warning("Skipping malformed %s: %s", label, e)

    return parsed
