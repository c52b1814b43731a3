# ====================================================================================================
# Quay assignment rule
#
# Input: a ship descriptor {name, capacity, length} and the quay list in declared order.
# Output: an outcome dict; on success it carries the matched Quay and a service-time estimate.
#
# Policy:
# - First-fit, not best-fit: the first available quay that satisfies both bounds wins, even if a
#   tighter quay appears later in the list.
# - The rule does not reserve the quay. TerminalService flips available -> reserved under its lock.
# ====================================================================================================

from __future__ import annotations

import math
from typing import Dict, Optional, Sequence

from src.terminal.knowledge import Quay
from src.terminal.policy import TerminalPolicy, default_policy

from .outcomes import SATURATED, failure, success


def first_fit_quay(quays: Sequence[Quay], length: int, capacity: int) -> Optional[Quay]:
    for quay in quays:
        if quay.accepts(length, capacity):
            return quay
    return None


def estimate_service_hours(capacity: int, policy: TerminalPolicy) -> int:
    return math.ceil(capacity / policy.throughput_containers_per_hour)


def assign_quay(
    ship: Dict[str, object],
    quays: Sequence[Quay],
    policy: Optional[TerminalPolicy] = None,
) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()

    name = ship.get("name")
    length = int(ship["length"])
    capacity = int(ship["capacity"])

    quay = first_fit_quay(quays, length, capacity)
    if quay is None:
        return failure(
            SATURATED,
            "No quay available for this ship",
            "Wait for a suitable quay to be released",
        )

    return success(
        f"Ship {name} assigned to {quay.name}",
        quay=quay,
        estimated_time_hours=estimate_service_hours(capacity, policy),
    )
