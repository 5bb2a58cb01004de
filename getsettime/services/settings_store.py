"""
Explicit cache for workspace settings.

Holds the single settings fetch shared by everything that needs
availability, with an explicit lifecycle instead of module-level state:
``load`` (fetch once), ``refresh`` (fetch again) and ``invalidate``.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

from ..domain.exceptions import SettingsError, WorkspaceAPIError
from ..domain.models import WorkspaceAvailability

logger = logging.getLogger(__name__)


class SettingsClientProtocol(Protocol):
    """The part of the workspace client the store relies on."""

    async def get_settings(self) -> Dict[str, Any]:
        """Return the raw workspace settings blob."""


class WorkspaceSettingsStore:
    """
    Caches the workspace settings blob and its parsed availability section.
    """

    def __init__(self, client: SettingsClientProtocol) -> None:
        self._client = client
        self._settings: Dict[str, Any] | None = None
        self._availability: WorkspaceAvailability | None = None
        self.error: Exception | None = None

    @property
    def loaded(self) -> bool:
        return self._availability is not None

    @property
    def settings(self) -> Dict[str, Any]:
        """Raw settings blob (empty until loaded)."""
        return self._settings or {}

    @property
    def availability(self) -> WorkspaceAvailability:
        """Parsed availability (empty until loaded)."""
        return self._availability or WorkspaceAvailability()

    async def load(self) -> WorkspaceAvailability:
        """Fetch settings unless already cached."""
        if self._availability is not None:
            return self._availability
        return await self.refresh()

    async def refresh(self) -> WorkspaceAvailability:
        """
        Fetch settings and replace the cache.

        Raises:
            WorkspaceAPIError: If the fetch fails
            SettingsError: If the availability section is malformed
        """
        self.error = None

        try:
            raw = await self._client.get_settings()
            availability = WorkspaceAvailability.from_settings(raw)
        except (WorkspaceAPIError, SettingsError) as exc:
            self.error = exc
            logger.error("Failed to load workspace settings: %s", exc)
            raise

        self._settings = raw
        self._availability = availability
        logger.debug(
            "Loaded workspace settings (%d provider override layer(s))",
            len(availability.providers)
        )
        return availability

    def invalidate(self) -> None:
        """Drop the cached settings; the next ``load`` fetches again."""
        self._settings = None
        self._availability = None
        self.error = None
