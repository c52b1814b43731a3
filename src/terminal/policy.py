# ====================================================================================================
# Terminal Policy Contract (decision tables)
#
# This module is the "policy layer" read by every decision rule in `src/engine/*`. It defines:
# - throughput and grid constants used by quay/storage assignment
# - the container-type -> storage-zone routing table
# - stacking thresholds and the static layout advisory
# - maintenance intervals, emergency protocols and team rosters
# - customs risk factors and inspection thresholds
# - loading/transport planning constants
#
# How it is referenced:
# - `TerminalService` builds one `TerminalPolicy` at startup (`default_policy()` or a validated override
#   merge from `src/terminal/overrides.py`) and passes it into each rule call.
# - Rules never read module constants directly, so a test can inject a modified policy.
#
# Tables are wrapped in MappingProxyType: they are read-only once the process starts.
# ====================================================================================================

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Dict, Tuple


def _frozen(value):
    if isinstance(value, Mapping):
        return MappingProxyType({key: _frozen(item) for key, item in value.items()})
    if isinstance(value, list):
        return tuple(_frozen(item) for item in value)
    return value


# Quay throughput: containers handled per hour once a ship is berthed.
THROUGHPUT_CONTAINERS_PER_HOUR = 50

# STORAGE_ZONE_BY_TYPE:
# - Total function over container types; anything not listed goes to DEFAULT_STORAGE_ZONE.
# - No fallback to an alternate zone when the target is full.
STORAGE_ZONE_BY_TYPE = {
    "refrigere": "R1",
    "dangereux": "D1",
    "export": "E1",
}
DEFAULT_STORAGE_ZONE = "A1"

# Position grid (placeholder heuristic, identical for every zone).
SLOTS_PER_ROW = 50
STACKS_PER_LEVEL = 10

# Stacking thresholds are percentages of occupied/capacity, both compared with a strict ">".
REDISTRIBUTION_THRESHOLD_PCT = 85.0
OPTIMIZATION_THRESHOLD_PCT = 70.0
MAX_HEIGHT_BY_ZONE_TYPE = {"refrigerated": 3}
DEFAULT_MAX_HEIGHT = 5
PREFERRED_ARRANGEMENT = "LIFO"
HIGH_ACCESS_ZONE_TYPES = ("export",)

# MAINTENANCE_RULES: equipment type -> operating-hours interval and priority.
MAINTENANCE_RULES = {
    "Ship-to-Shore": {"interval_hours": 200, "priority": "high"},
    "Rubber-Tyred Gantry": {"interval_hours": 150, "priority": "medium"},
    "Reach Stacker": {"interval_hours": 100, "priority": "medium"},
}
MAINTENANCE_DURATION_TEXT = "4-6 hours"

# EMERGENCY_PROTOCOLS:
# - Keys are the emergency types callers report.
# - Unknown types are handled with EMERGENCY_FALLBACK_TYPE, not rejected.
EMERGENCY_PROTOCOLS = {
    "incendie": {
        "priority": "critique",
        "actions": ["Immediate evacuation", "Alert fire brigade", "Stop operations"],
        "estimated_time": "30-60 minutes",
    },
    "accident": {
        "priority": "haute",
        "actions": ["Secure the area", "Medical alert", "Investigation"],
        "estimated_time": "45-90 minutes",
    },
    "panne_equipement": {
        "priority": "moyenne",
        "actions": ["Isolate equipment", "Dispatch technical crew", "Reallocate resources"],
        "estimated_time": "60-120 minutes",
    },
    "mauvais_temps": {
        "priority": "moyenne",
        "actions": ["Secure containers", "Stop cranes", "Weather monitoring"],
        "estimated_time": "120-240 minutes",
    },
}
EMERGENCY_FALLBACK_TYPE = "accident"

MOBILIZED_TEAMS = {
    "critique": ["Security", "Fire", "Medical", "Management"],
    "haute": ["Security", "Technical", "Medical"],
    "moyenne": ["Security", "Technical"],
}
TEAMS_FALLBACK_PRIORITY = "moyenne"

# RISK_FACTORS: multipliers applied to a base score of 1.0.
RISK_FACTORS = {
    "type_dangereux": 3.0,
    "valeur_elevee": 1.8,
}
# UNAPPLIED_RISK_FACTORS:
# - Declared multipliers with no matching container field (origin, destination, declarant history).
# - They are exported with the policy for review but no rule multiplies by them.
UNAPPLIED_RISK_FACTORS = {
    "origine_sensible": 2.0,
    "destination_sensible": 1.5,
    "declarant_nouveau": 1.2,
}
HIGH_VALUE_THRESHOLD = 50000.0
INSPECTION_SCORE_THRESHOLD = 2.0
PHYSICAL_INSPECTION_SCORE_THRESHOLD = 3.0
RANDOM_INSPECTION_RATE = 0.1
INSPECTION_TIMES = {
    "physical": "45 min",
    "scanner": "15 min",
    "none": "5 min",
}

# Loading and transport planning.
LOADING_MINUTES_PER_CONTAINER = 2
LOADING_STABILITY = "optimal"
TRANSPORT_BASE_EXIT_MINUTES = 30
TRANSPORT_CONGESTION_RANGE = (0.8, 1.3)
NUM_EXIT_GATES = 3


# ----------------------------------------------------------------------------------------------------
# TerminalPolicy
# Purpose (simple): One immutable bundle of every table above, passed into the rules.
# Inputs: Field values (defaults are the module constants)
# Outputs: A frozen dataclass instance shared by all requests
# Why it matters: Policy can be swapped in tests without touching control flow.
# ----------------------------------------------------------------------------------------------------
@dataclass(frozen=True)
class TerminalPolicy:
    throughput_containers_per_hour: int = THROUGHPUT_CONTAINERS_PER_HOUR

    storage_zone_by_type: Mapping[str, str] = field(default_factory=lambda: _frozen(STORAGE_ZONE_BY_TYPE))
    default_storage_zone: str = DEFAULT_STORAGE_ZONE
    slots_per_row: int = SLOTS_PER_ROW
    stacks_per_level: int = STACKS_PER_LEVEL

    redistribution_threshold_pct: float = REDISTRIBUTION_THRESHOLD_PCT
    optimization_threshold_pct: float = OPTIMIZATION_THRESHOLD_PCT
    max_height_by_zone_type: Mapping[str, int] = field(
        default_factory=lambda: _frozen(MAX_HEIGHT_BY_ZONE_TYPE)
    )
    default_max_height: int = DEFAULT_MAX_HEIGHT
    preferred_arrangement: str = PREFERRED_ARRANGEMENT
    high_access_zone_types: Tuple[str, ...] = HIGH_ACCESS_ZONE_TYPES

    maintenance_rules: Mapping[str, Mapping[str, object]] = field(
        default_factory=lambda: _frozen(MAINTENANCE_RULES)
    )
    maintenance_duration_text: str = MAINTENANCE_DURATION_TEXT

    emergency_protocols: Mapping[str, Mapping[str, object]] = field(
        default_factory=lambda: _frozen(EMERGENCY_PROTOCOLS)
    )
    emergency_fallback_type: str = EMERGENCY_FALLBACK_TYPE
    mobilized_teams: Mapping[str, Tuple[str, ...]] = field(default_factory=lambda: _frozen(MOBILIZED_TEAMS))
    teams_fallback_priority: str = TEAMS_FALLBACK_PRIORITY

    risk_factors: Mapping[str, float] = field(default_factory=lambda: _frozen(RISK_FACTORS))
    unapplied_risk_factors: Mapping[str, float] = field(
        default_factory=lambda: _frozen(UNAPPLIED_RISK_FACTORS)
    )
    high_value_threshold: float = HIGH_VALUE_THRESHOLD
    inspection_score_threshold: float = INSPECTION_SCORE_THRESHOLD
    physical_inspection_score_threshold: float = PHYSICAL_INSPECTION_SCORE_THRESHOLD
    random_inspection_rate: float = RANDOM_INSPECTION_RATE
    inspection_times: Mapping[str, str] = field(default_factory=lambda: _frozen(INSPECTION_TIMES))

    loading_minutes_per_container: int = LOADING_MINUTES_PER_CONTAINER
    loading_stability: str = LOADING_STABILITY
    transport_base_exit_minutes: int = TRANSPORT_BASE_EXIT_MINUTES
    transport_congestion_range: Tuple[float, float] = TRANSPORT_CONGESTION_RANGE
    num_exit_gates: int = NUM_EXIT_GATES


# Stable list of policy keys (dataclass order) used for override checks.
POLICY_KEYS = tuple(TerminalPolicy.__dataclass_fields__.keys())  # pylint: disable=no-member


def _thaw(value):
    if isinstance(value, Mapping):
        return {key: _thaw(item) for key, item in value.items()}
    if isinstance(value, (tuple, list)):
        return [_thaw(item) for item in value]
    return value


def default_policy() -> TerminalPolicy:
    return TerminalPolicy()


# ----------------------------------------------------------------------------------------------------
# policy_to_dict
# Purpose (simple): Convert a TerminalPolicy into plain JSON-friendly dicts/lists.
# Why it matters: Overrides are merged onto this dict, and the demo runner writes it to metadata.json.
# ----------------------------------------------------------------------------------------------------
def policy_to_dict(policy: TerminalPolicy) -> Dict[str, object]:
    # dataclasses.asdict cannot copy MappingProxyType fields.
    return {key: _thaw(getattr(policy, key)) for key in POLICY_KEYS}


# ----------------------------------------------------------------------------------------------------
# policy_from_dict
# Purpose (simple): Re-hydrate a TerminalPolicy from plain data (the inverse of `policy_to_dict`).
# Why it matters: JSON-loaded tables come back as dicts/lists; they are frozen again here.
# ----------------------------------------------------------------------------------------------------
def policy_from_dict(data: Dict[str, object]) -> TerminalPolicy:
    unknown = [key for key in data if key not in POLICY_KEYS]
    if unknown:
        raise ValueError(f"Unknown policy keys: {', '.join(sorted(unknown))}")
    values = {key: _frozen(value) for key, value in data.items()}
    return replace(default_policy(), **values)
