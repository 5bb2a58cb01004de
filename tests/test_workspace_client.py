"""
Tests for the workspace REST client and the mock client.
"""

import asyncio
import json

import pendulum
import pytest
import requests

from getsettime.adapters.mock_workspace_client import MockWorkspaceClient
from getsettime.adapters.workspace_client import (
    WorkspaceClient,
    filter_service_providers,
    parse_items,
)
from getsettime.domain.exceptions import WorkspaceAPIError
from getsettime.domain.models import Department

TZ = "Europe/Berlin"


class FakeResponse:

    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeSession:
    """Records GET calls and replays canned responses by path."""

    def __init__(self, responses):
        self.headers = {}
        self._responses = responses
        self.calls = []

    def get(self, url, params=None, timeout=None):
        self.calls.append({"url": url, "params": params, "timeout": timeout})
        path = url.split("example.com", 1)[1]
        response = self._responses[path]
        if isinstance(response, Exception):
            raise response
        return response


def _client(responses):
    client = WorkspaceClient("https://app.example.com/", "token-123", timeout=5)
    client.session = FakeSession(responses)
    return client


class TestWorkspaceClient:

    def test_auth_header(self):
        client = WorkspaceClient("https://app.example.com", "token-123")
        assert client.session.headers["Authorization"] == "Bearer token-123"

    def test_fetch_settings(self):
        client = _client({"/api/settings": FakeResponse({"settings": {"availability": {}}})})

        assert client.fetch_settings() == {"availability": {}}
        assert client.session.calls[0]["timeout"] == 5

    def test_fetch_bookings_params_and_parsing(self):
        payload = {
            "data": [{"id": 1, "start_at": "2024-11-25T09:00:00Z", "end_at": "2024-11-25T10:00:00Z",
                      "status": "confirmed", "service_provider_id": 7}],
            "calendar_busy": [{"start_at": "2024-11-25T12:00:00Z", "end_at": "2024-11-25T13:00:00Z"}],
        }
        client = _client({"/api/bookings": FakeResponse(payload)})

        bookings, busy = client.fetch_bookings(
            pendulum.datetime(2024, 11, 20, tz=TZ),
            pendulum.datetime(2024, 12, 25, tz=TZ),
            provider_id=7,
        )

        assert client.session.calls[0]["params"] == {
            "start_date": "2024-11-20",
            "end_date": "2024-12-25",
            "service_provider_id": "7",
        }
        assert bookings[0].id == "1"
        assert bookings[0].service_provider_id == "7"
        assert len(busy) == 1

    def test_malformed_booking_fails_closed(self):
        payload = {"data": [{"id": 1, "start_at": "soon", "end_at": "later"}]}
        client = _client({"/api/bookings": FakeResponse(payload)})

        with pytest.raises(WorkspaceAPIError, match="Malformed booking"):
            client.fetch_bookings(pendulum.datetime(2024, 11, 20, tz=TZ), pendulum.datetime(2024, 11, 21, tz=TZ))

    def test_http_error(self):
        client = _client({"/api/settings": FakeResponse({}, status_code=500)})

        with pytest.raises(WorkspaceAPIError, match="Failed to fetch /api/settings"):
            client.fetch_settings()

    def test_connection_error(self):
        client = _client({"/api/settings": requests.exceptions.ConnectionError("refused")})

        with pytest.raises(WorkspaceAPIError):
            asyncio.run(client.get_settings())

    def test_invalid_json(self):
        client = _client({"/api/departments": FakeResponse(json.JSONDecodeError("bad", "", 0))})

        with pytest.raises(WorkspaceAPIError, match="Invalid JSON"):
            client.fetch_departments()

    def test_service_providers_are_filtered(self):
        members = [
            {"id": "p-1", "name": "Alice", "role": "service_provider", "departments": [1]},
            {"id": "p-3", "name": "Carol", "role": "service_provider", "deactivated": True},
            {"id": "a-1", "name": "Admin", "role": "admin"},
        ]
        client = _client({"/api/team-members": FakeResponse({"teamMembers": members})})

        providers = asyncio.run(client.get_service_providers())

        assert [p.id for p in providers] == ["p-1"]
        assert providers[0].departments == ["1"]


class TestParseItems:

    def test_lookups_skip_malformed(self):
        parsed = parse_items([{"id": 1, "name": "Consulting"}, {"name": "no id"}], Department, "department")
        assert [d.id for d in parsed] == ["1"]

    def test_none_is_empty(self):
        assert parse_items(None, Department, "department") == []

    def test_filter_service_providers(self):
        assert filter_service_providers([{"role": "admin"}]) == []


class TestMockWorkspaceClient:

    def _window(self):
        today = pendulum.now(TZ).start_of("day")
        return today, today.add(days=7)

    def test_lookups(self):
        client = MockWorkspaceClient(timezone=TZ)

        async def scenario():
            return await asyncio.gather(
                client.get_departments(),
                client.get_service_providers(),
                client.get_event_types(),
                client.get_settings(),
            )

        departments, providers, event_types, settings = asyncio.run(scenario())

        assert len(departments) == 3
        assert [p.id for p in providers] == ["p-1", "p-2"]
        assert {t.duration_minutes for t in event_types} == {15, 30, 60}
        assert "p-2" in settings["availability"]["providers"]

    def test_relative_bookings_are_placed_in_window(self):
        client = MockWorkspaceClient(timezone=TZ)
        start, end = self._window()

        bookings, busy = asyncio.run(client.get_bookings(start, end))

        assert {b.id for b in bookings} == {"b-1", "b-2", "b-3", "b-4"}
        assert len(busy) == 2
        first = bookings[0].start_in(TZ)
        assert first.to_date_string() == start.add(days=1).to_date_string()
        assert (first.hour, first.minute) == (9, 0)

    def test_provider_filter(self):
        client = MockWorkspaceClient(timezone=TZ)
        start, end = self._window()

        bookings, busy = asyncio.run(client.get_bookings(start, end, provider_id="p-2"))

        assert {b.id for b in bookings} == {"b-3", "b-4"}
        assert len(busy) == 2

    def test_range_outside_fixtures(self):
        client = MockWorkspaceClient(timezone=TZ)
        start = pendulum.now(TZ).start_of("day").subtract(days=30)

        bookings, busy = asyncio.run(client.get_bookings(start, start.add(days=5)))

        assert bookings == [] and busy == []

    def test_missing_data_file(self, tmp_path):
        client = MockWorkspaceClient(data_file=tmp_path / "none.json", timezone=TZ)

        assert asyncio.run(client.get_settings()) == {}
        assert asyncio.run(client.get_departments()) == []
