from __future__ import annotations

import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from src.terminal.policy import TerminalPolicy, default_policy


def plan_loading(container_ids: Sequence[str], policy: Optional[TerminalPolicy] = None) -> Dict[str, object]:
    """Load in the order given; no reordering for weight or destination."""
    if policy is None:
        policy = default_policy()
    per_unit = policy.loading_minutes_per_container
    sequence: List[dict] = [
        {"container_id": container_id, "load_order": index + 1, "estimated_time_mins": per_unit}
        for index, container_id in enumerate(container_ids)
    ]
    return {
        "sequence": sequence,
        "total_time_mins": len(sequence) * per_unit,
        "stability": policy.loading_stability,
    }


def plan_transport(
    container_ids: Sequence[str],
    destination: Optional[str],
    transport_mode: Optional[str],
    rng: Optional[np.random.Generator] = None,
    policy: Optional[TerminalPolicy] = None,
) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()
    if rng is None:
        rng = np.random.default_rng()

    low, high = policy.transport_congestion_range
    congestion = float(rng.uniform(low, high))
    exit_minutes = math.ceil(policy.transport_base_exit_minutes * congestion)
    gate = int(rng.integers(1, policy.num_exit_gates + 1))
    return {
        "containers": list(container_ids),
        "destination": destination,
        "mode": transport_mode,
        "congestion_factor": congestion,
        "estimated_exit_time_mins": exit_minutes,
        "gate_assignment": f"Gate {gate}",
        "documentation": "complete",
        "status": "approved",
    }
