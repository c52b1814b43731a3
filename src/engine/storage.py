from __future__ import annotations

from typing import Dict, Optional, Sequence

from src.terminal.knowledge import StorageZone
from src.terminal.policy import TerminalPolicy, default_policy

from .outcomes import NOT_FOUND, SATURATED, failure, success


def resolve_target_zone(container_type: Optional[str], policy: TerminalPolicy) -> str:
    """Map a container type to its storage zone id; unknown or missing types go to the default zone."""
    return policy.storage_zone_by_type.get(container_type, policy.default_storage_zone)


def calculate_position(zone: StorageZone, policy: Optional[TerminalPolicy] = None) -> Dict[str, object]:
    """
    Slot for the next container, derived only from the zone's occupancy before it is incremented.

    The grid is the same for every zone: ``slots_per_row`` stacks per row and a level change every
    ``stacks_per_level`` stacks. Zone capacity and type do not enter the calculation.
    """
    if policy is None:
        policy = default_policy()
    row = zone.occupied // policy.slots_per_row + 1
    stack = zone.occupied % policy.slots_per_row + 1
    level = stack // policy.stacks_per_level + 1
    return {
        "block": zone.id,
        "row": row,
        "stack": stack,
        "level": level,
    }


def assign_storage_zone(
    container: Dict[str, object],
    zones: Sequence[StorageZone],
    policy: Optional[TerminalPolicy] = None,
) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()

    zone_id = resolve_target_zone(container.get("type"), policy)
    zone = next((z for z in zones if z.id == zone_id), None)
    if zone is None:
        return failure(
            NOT_FOUND,
            f"Storage zone {zone_id} is not configured",
            "Check the terminal layout",
            target_zone=zone_id,
        )

    if not zone.has_space:
        # The advisory names no alternate zone; none is computed.
        return failure(
            SATURATED,
            "Storage zone saturated",
            "Optimize stacking or use an alternate zone",
            target_zone=zone_id,
        )

    return success(
        f"Container {container.get('number')} assigned to zone {zone.id}",
        zone=zone,
        position=calculate_position(zone, policy),
    )
