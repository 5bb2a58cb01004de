"""
Tests for the workspace settings cache.
"""

import asyncio

import pytest

from getsettime.domain.exceptions import SettingsError, WorkspaceAPIError
from getsettime.services.settings_store import WorkspaceSettingsStore

SETTINGS = {
    "availability": {
        "timesheet": {"Mon": {"enabled": True, "startTime": "09:00", "endTime": "17:00"}},
        "providers": {"p-1": {"individual": {"2024-11-25-9": False}}},
    }
}


class StubSettingsClient:
    """Minimal stub matching SettingsClientProtocol."""

    def __init__(self, responses):
        self._responses = list(responses)
        self.calls = 0

    async def get_settings(self):
        self.calls += 1
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class TestWorkspaceSettingsStore:

    def test_load_fetches_once(self):
        client = StubSettingsClient([SETTINGS])
        store = WorkspaceSettingsStore(client)

        async def scenario():
            first = await store.load()
            second = await store.load()
            return first, second

        first, second = asyncio.run(scenario())

        assert client.calls == 1
        assert first is second
        assert store.loaded
        assert store.settings == SETTINGS
        assert store.availability.provider_layer("p-1").is_blocked("2024-11-25-9")

    def test_refresh_refetches(self):
        updated = {"availability": {"timesheet": {"Mon": {"enabled": False}}}}
        client = StubSettingsClient([SETTINGS, updated])
        store = WorkspaceSettingsStore(client)

        async def scenario():
            await store.load()
            return await store.refresh()

        availability = asyncio.run(scenario())

        assert client.calls == 2
        assert availability.timesheet["Mon"].enabled is False

    def test_invalidate(self):
        client = StubSettingsClient([SETTINGS, SETTINGS])
        store = WorkspaceSettingsStore(client)

        asyncio.run(store.load())
        store.invalidate()

        assert not store.loaded
        assert store.settings == {}
        assert store.availability.timesheet is None

        asyncio.run(store.load())
        assert client.calls == 2

    def test_fetch_error_is_recorded_and_raised(self):
        store = WorkspaceSettingsStore(StubSettingsClient([WorkspaceAPIError("boom")]))

        with pytest.raises(WorkspaceAPIError, match="boom"):
            asyncio.run(store.load())

        assert isinstance(store.error, WorkspaceAPIError)
        assert not store.loaded

    def test_malformed_settings(self):
        bad = {"availability": {"timesheet": {"Mon": {"startTime": "9 o'clock"}}}}
        store = WorkspaceSettingsStore(StubSettingsClient([bad]))

        with pytest.raises(SettingsError):
            asyncio.run(store.load())

        assert isinstance(store.error, SettingsError)

    def test_successful_refresh_clears_error(self):
        store = WorkspaceSettingsStore(StubSettingsClient([WorkspaceAPIError("boom"), SETTINGS]))

        with pytest.raises(WorkspaceAPIError):
            asyncio.run(store.load())
        asyncio.run(store.refresh())

        assert store.error is None
        assert store.loaded
