"""
Layered availability merging.

A workspace stores one general template plus optional per-provider
override layers. The effective availability for a provider is built here.
Precedence rules:

- Timesheet: a day present in the override replaces the general day
  wholesale. Fields are never combined across layers, so an override
  ``{"enabled": false}`` for Monday disables Monday entirely.
- Individual overrides: union of both maps, the override wins per key.
"""

from typing import Dict

from .models import (
    AvailabilitySettings,
    DaySchedule,
    WorkspaceAvailability,
)


def merge_timesheets(
    general: Dict[str, DaySchedule] | None,
    override: Dict[str, DaySchedule] | None
) -> Dict[str, DaySchedule] | None:
    """Per-day wholesale replacement of ``general`` by ``override``."""
    if general is None:
        return dict(override) if override is not None else None

    merged = dict(general)
    merged.update(override or {})
    return merged


def merge_individual(
    general: Dict[str, bool | None] | None,
    override: Dict[str, bool | None] | None
) -> Dict[str, bool | None]:
    """Union of both override maps; ``override`` wins on key collision."""
    merged = dict(general or {})
    merged.update(override or {})
    return merged


def merge_availability(
    general: AvailabilitySettings,
    override: AvailabilitySettings | None = None
) -> AvailabilitySettings:
    """
    Combine a general availability layer with an optional override layer.

    Args:
        general: Workspace-wide template
        override: Provider-specific layer (None means no override)

    Returns:
        New AvailabilitySettings; inputs are left untouched
    """
    if override is None:
        return AvailabilitySettings(
            timesheet=general.timesheet,
            individual=merge_individual(general.individual, None)
        )

    return AvailabilitySettings(
        timesheet=merge_timesheets(general.timesheet, override.timesheet),
        individual=merge_individual(general.individual, override.individual)
    )


def resolve_effective_availability(
    workspace: WorkspaceAvailability,
    provider_id: str | None,
    has_departments: bool
) -> AvailabilitySettings | None:
    """
    Pick the availability that governs slot generation for a selection.

    - Provider selected: general template merged with that provider's layer.
    - No provider but departments exist: None, a provider must be chosen
      before any time can be offered.
    - No departments at all: the general template as-is.
    """
    if provider_id is not None:
        return merge_availability(workspace.general, workspace.provider_layer(provider_id))

    if has_departments:
        return None

    return workspace.general
