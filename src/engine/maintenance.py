from __future__ import annotations

from typing import Dict, Optional

from src.terminal.knowledge import Crane
from src.terminal.policy import TerminalPolicy, default_policy

from .outcomes import success


def schedule_maintenance(equipment: Crane, policy: Optional[TerminalPolicy] = None) -> Dict[str, object]:
    """
    Advisory only: the crane's status is left untouched.

    A crane type with no maintenance rule still succeeds, with `recognized=False` and no interval.
    """
    if policy is None:
        policy = default_policy()

    rule = policy.maintenance_rules.get(equipment.type)
    if rule is None:
        return success(
            "Equipment not recognized",
            equipment_id=equipment.id,
            recognized=False,
            interval_hours=None,
            next_maintenance=None,
            priority=None,
            estimated_duration=None,
        )

    interval = rule["interval_hours"]
    priority = rule["priority"]
    return success(
        f"Schedule maintenance for {equipment.id} - {priority} priority",
        equipment_id=equipment.id,
        recognized=True,
        interval_hours=interval,
        next_maintenance=f"In {interval} operating hours",
        priority=priority,
        estimated_duration=policy.maintenance_duration_text,
    )
