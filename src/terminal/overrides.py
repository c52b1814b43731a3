from __future__ import annotations

from typing import Any, Dict

from .policy import POLICY_KEYS


ALLOWED_OVERRIDE_KEYS = set(POLICY_KEYS)
POSITIVE_INT_KEYS = {
    "throughput_containers_per_hour",
    "slots_per_row",
    "stacks_per_level",
    "default_max_height",
    "loading_minutes_per_container",
    "transport_base_exit_minutes",
    "num_exit_gates",
}
PERCENT_KEYS = {
    "redistribution_threshold_pct",
    "optimization_threshold_pct",
}
# Keys the customs rule reads directly.
RULE_RISK_FACTORS = ("type_dangereux", "valeur_elevee")
INSPECTION_TYPES = ("none", "scanner", "physical")


def _validate_type(key: str, value: Any, expected: Any) -> None:
    if isinstance(expected, bool):
        if not isinstance(value, bool):
            raise ValueError(f"Override '{key}' must be bool.")
        return
    if isinstance(expected, int) and not isinstance(expected, bool):
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Override '{key}' must be int.")
        return
    if isinstance(expected, float):
        if not isinstance(value, (int, float)) or isinstance(value, bool):
            raise ValueError(f"Override '{key}' must be float.")
        return
    if isinstance(expected, str):
        if not isinstance(value, str):
            raise ValueError(f"Override '{key}' must be str.")
        return
    if isinstance(expected, list):
        if not isinstance(value, list):
            raise ValueError(f"Override '{key}' must be list.")
        return
    if isinstance(expected, dict):
        if not isinstance(value, dict):
            raise ValueError(f"Override '{key}' must be dict.")
        return


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _require_keys(label: str, entry: Any, keys: tuple) -> None:
    if not isinstance(entry, dict):
        raise ValueError(f"{label} must be a dict.")
    missing = [key for key in keys if key not in entry]
    if missing:
        raise ValueError(f"{label} is missing keys: {', '.join(missing)}")


# ----------------------------------------------------------------------------------------------------
# _validate_tables
# Purpose (simple): Check the contents of the nested policy tables, not just their container type.
# Why it matters: a table the rules index into must hold every key they read, otherwise a bad override
# would only surface on the first request that touches it.
# ----------------------------------------------------------------------------------------------------
def _validate_tables(merged: Dict[str, Any]) -> None:
    for zone_type, zone_id in merged["storage_zone_by_type"].items():
        if not isinstance(zone_id, str):
            raise ValueError(f"storage_zone_by_type['{zone_type}'] must be a zone id string.")

    for zone_type, height in merged["max_height_by_zone_type"].items():
        if not isinstance(height, int) or isinstance(height, bool) or height < 1:
            raise ValueError(f"max_height_by_zone_type['{zone_type}'] must be an int >= 1.")

    if not all(isinstance(item, str) for item in merged["high_access_zone_types"]):
        raise ValueError("high_access_zone_types must be a list of strings.")

    for crane_type, rule in merged["maintenance_rules"].items():
        _require_keys(f"maintenance_rules['{crane_type}']", rule, ("interval_hours", "priority"))
        interval = rule["interval_hours"]
        if not isinstance(interval, int) or isinstance(interval, bool) or interval < 1:
            raise ValueError(f"maintenance_rules['{crane_type}'].interval_hours must be an int >= 1.")

    for emergency_type, protocol in merged["emergency_protocols"].items():
        label = f"emergency_protocols['{emergency_type}']"
        _require_keys(label, protocol, ("priority", "actions", "estimated_time"))
        if not isinstance(protocol["actions"], list):
            raise ValueError(f"{label}.actions must be a list.")

    for priority, roster in merged["mobilized_teams"].items():
        if not isinstance(roster, list) or not all(isinstance(team, str) for team in roster):
            raise ValueError(f"mobilized_teams['{priority}'] must be a list of team names.")

    _require_keys("risk_factors", merged["risk_factors"], RULE_RISK_FACTORS)
    for table in ("risk_factors", "unapplied_risk_factors"):
        for factor, weight in merged[table].items():
            if not _is_number(weight) or weight <= 0:
                raise ValueError(f"{table}['{factor}'] must be a positive number.")

    _require_keys("inspection_times", merged["inspection_times"], INSPECTION_TYPES)


def apply_policy_overrides(policy: Dict[str, Any], overrides: Dict[str, Any]) -> Dict[str, Any]:
    if not isinstance(policy, dict) or not policy:
        raise ValueError("Policy must be a non-empty dict.")
    if not isinstance(overrides, dict):
        raise ValueError("Overrides must be a dict.")
    if not overrides:
        return dict(policy)

    unknown = [key for key in overrides if key not in ALLOWED_OVERRIDE_KEYS]
    if unknown:
        raise ValueError(f"Unknown override keys: {', '.join(sorted(unknown))}")

    merged = dict(policy)
    for key, value in overrides.items():
        if key not in merged:
            raise ValueError(f"Override key not in base policy: {key}")
        _validate_type(key, value, merged[key])
        merged[key] = value

    for key in POSITIVE_INT_KEYS:
        value = merged.get(key)
        if not isinstance(value, int) or value < 1:
            raise ValueError(f"{key} must be an int >= 1.")

    for key in PERCENT_KEYS:
        value = merged.get(key)
        if not 0 <= value <= 100:
            raise ValueError(f"{key} must be within [0, 100].")
    if merged["optimization_threshold_pct"] > merged["redistribution_threshold_pct"]:
        raise ValueError("optimization_threshold_pct must not exceed redistribution_threshold_pct.")

    if not 0.0 <= merged["random_inspection_rate"] <= 1.0:
        raise ValueError("random_inspection_rate must be within [0, 1].")

    congestion = merged["transport_congestion_range"]
    if len(congestion) != 2 or not all(_is_number(bound) for bound in congestion):
        raise ValueError("transport_congestion_range must be a [low, high] pair of numbers.")
    low, high = congestion
    if low <= 0 or high < low:
        raise ValueError("transport_congestion_range must be a positive [low, high] pair.")

    _validate_tables(merged)

    if merged["emergency_fallback_type"] not in merged["emergency_protocols"]:
        raise ValueError("emergency_fallback_type must name a configured protocol.")
    if merged["teams_fallback_priority"] not in merged["mobilized_teams"]:
        raise ValueError("teams_fallback_priority must name a configured roster.")

    return merged
