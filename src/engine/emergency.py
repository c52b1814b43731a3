from __future__ import annotations

from typing import Dict, List, Optional

from src.terminal.policy import TerminalPolicy, default_policy


def mobilized_teams(priority: str, policy: Optional[TerminalPolicy] = None) -> List[str]:
    if policy is None:
        policy = default_policy()
    roster = policy.mobilized_teams.get(priority)
    if roster is None:
        roster = policy.mobilized_teams[policy.teams_fallback_priority]
    return list(roster)


# ----------------------------------------------------------------------------------------------------
# handle_emergency
# Purpose (simple): Look up the response protocol for a reported emergency.
# Inputs: emergency type key (e.g. "incendie"), free-text description
# Outputs: dict with protocol (priority, ordered actions, estimated time), mobilized teams, recommendation
# Note: an unknown type is answered with the fallback ("accident") protocol. `recognized` records
# whether that happened; it is never a failure.
# ----------------------------------------------------------------------------------------------------
def handle_emergency(
    emergency_type: str,
    description: str = "",
    policy: Optional[TerminalPolicy] = None,
) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()

    recognized = emergency_type in policy.emergency_protocols
    resolved_type = emergency_type if recognized else policy.emergency_fallback_type
    table = policy.emergency_protocols[resolved_type]
    protocol = {
        "priority": table["priority"],
        "actions": list(table["actions"]),
        "estimated_time": table["estimated_time"],
    }

    return {
        "success": True,
        "emergency_type": emergency_type,
        "resolved_type": resolved_type,
        "recognized": recognized,
        "description": description,
        "protocol": protocol,
        "mobilized_teams": mobilized_teams(protocol["priority"], policy),
        "recommendation": f"Emergency {emergency_type}: {', '.join(protocol['actions'])}",
    }
