from __future__ import annotations

from typing import Dict, List, Optional

from src.terminal.knowledge import StorageZone
from src.terminal.policy import TerminalPolicy, default_policy


def zone_efficiency(zone: StorageZone) -> float:
    return zone.occupied / zone.capacity * 100


def calculate_layout(zone: StorageZone, policy: Optional[TerminalPolicy] = None) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()
    return {
        "max_height": policy.max_height_by_zone_type.get(zone.type, policy.default_max_height),
        "preferred_arrangement": policy.preferred_arrangement,
        "access_priority": "high" if zone.type in policy.high_access_zone_types else "normal",
    }


def optimize_stacking(zone: StorageZone, policy: Optional[TerminalPolicy] = None) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()

    efficiency = zone_efficiency(zone)
    recommendations: List[str] = []
    # Both thresholds are strict: exactly 70% or 85% falls into the band below.
    if efficiency > policy.redistribution_threshold_pct:
        recommendations.append("Zone saturated - redistribution recommended")
    elif efficiency > policy.optimization_threshold_pct:
        recommendations.append("Stacking optimization recommended")

    return {
        "zone_id": zone.id,
        "efficiency": efficiency,
        "recommendations": recommendations,
        "optimal_layout": calculate_layout(zone, policy),
    }
