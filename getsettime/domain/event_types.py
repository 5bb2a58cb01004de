"""
Event type selection helpers used by the booking widget and its URL params.
"""

import math
import re
from typing import List, Sequence

from .models import EventType

_DURATION_PARAM_PATTERN = re.compile(r"^(\d+)(?:min|mins|minute|minutes)?$", re.IGNORECASE)


def sort_event_types_by_duration(event_types: Sequence[EventType]) -> List[EventType]:
    """Shortest first; types without a duration go last. Stable."""
    return sorted(
        event_types,
        key=lambda t: t.duration_minutes if t.duration_minutes is not None else math.inf
    )


def filter_event_types_by_slug(event_types: Sequence[EventType], slug: str) -> List[EventType]:
    if not slug:
        return list(event_types)
    return [t for t in event_types if t.slug == slug]


def filter_event_types_by_duration(event_types: Sequence[EventType], duration: int) -> List[EventType]:
    return [t for t in event_types if t.duration_minutes == duration]


def parse_event_type_duration_param(value: str | None) -> int | None:
    """
    Parse a duration URL parameter, e.g. ``"15mins"`` -> 15, ``"30"`` -> 30.
    Returns None for anything else.
    """
    if not value:
        return None
    match = _DURATION_PARAM_PATTERN.match(value.strip())
    return int(match.group(1)) if match else None


def get_sorted_filtered_event_types(
    event_types: Sequence[EventType],
    slug: str | None = None,
    duration: int | None = None
) -> List[EventType]:
    """Filter by slug (preferred) or duration, then sort by duration."""
    filtered: Sequence[EventType] = event_types
    if slug:
        filtered = filter_event_types_by_slug(filtered, slug)
    elif duration is not None:
        filtered = filter_event_types_by_duration(filtered, duration)
    return sort_event_types_by_duration(filtered)
