"""
Tests for event type selection helpers.
"""

import pytest

from getsettime.domain.event_types import (
    filter_event_types_by_duration,
    filter_event_types_by_slug,
    get_sorted_filtered_event_types,
    parse_event_type_duration_param,
    sort_event_types_by_duration,
)
from getsettime.domain.models import EventType

EVENT_TYPES = [
    EventType(id="et-60", title="Strategy session", duration_minutes=60, slug="strategy"),
    EventType(id="et-x", title="Open ended", duration_minutes=None, slug="open"),
    EventType(id="et-15", title="Quick call", duration_minutes=15, slug="quick-call"),
    EventType(id="et-30", title="Consultation", duration_minutes=30, slug="consultation"),
    EventType(id="et-30b", title="Follow-up", duration_minutes=30, slug="follow-up"),
]


def _ids(event_types):
    return [t.id for t in event_types]


class TestSorting:

    def test_shortest_first_without_duration_last(self):
        assert _ids(sort_event_types_by_duration(EVENT_TYPES)) == [
            "et-15", "et-30", "et-30b", "et-60", "et-x"
        ]


class TestFiltering:

    def test_by_slug(self):
        assert _ids(filter_event_types_by_slug(EVENT_TYPES, "strategy")) == ["et-60"]

    def test_empty_slug_keeps_all(self):
        assert len(filter_event_types_by_slug(EVENT_TYPES, "")) == len(EVENT_TYPES)

    def test_by_duration(self):
        assert _ids(filter_event_types_by_duration(EVENT_TYPES, 30)) == ["et-30", "et-30b"]

    def test_slug_takes_precedence_over_duration(self):
        assert _ids(get_sorted_filtered_event_types(EVENT_TYPES, slug="quick-call", duration=30)) == ["et-15"]

    def test_duration_only(self):
        assert _ids(get_sorted_filtered_event_types(EVENT_TYPES, duration=60)) == ["et-60"]

    def test_no_filters_sorts(self):
        assert _ids(get_sorted_filtered_event_types(EVENT_TYPES))[0] == "et-15"


class TestDurationParam:

    @pytest.mark.parametrize("value, expected", [
        ("30", 30),
        ("15min", 15),
        ("15mins", 15),
        ("45 ", 45),
        ("60Minutes", 60),
        ("1minute", 1),
    ])
    def test_valid(self, value, expected):
        assert parse_event_type_duration_param(value) == expected

    @pytest.mark.parametrize("value", [None, "", "half-hour", "30h", "-15", "min"])
    def test_invalid(self, value):
        assert parse_event_type_duration_param(value) is None
