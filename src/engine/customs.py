# ====================================================================================================
# Customs risk triage
#
# Each container gets a multiplicative risk score (base 1.0):
# - x type_dangereux when type == "dangereux"
# - x valeur_elevee when value > high_value_threshold
# The policy also carries origin/destination/declarant factors (`unapplied_risk_factors`). No container
# field feeds them, so they are reported but never multiplied in.
#
# Inspection decision:
# - score > inspection_score_threshold, OR a uniform draw < random_inspection_rate (baseline sampling)
# - physical inspection when score > physical_inspection_score_threshold, scanner otherwise
#
# Randomness comes from an injected numpy Generator. Seed it for reproducible triage; leave it unset
# for the production behavior (a fresh, unseeded generator).
# ====================================================================================================

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

import numpy as np

from src.terminal.policy import TerminalPolicy, default_policy


def _value_of(container: Dict[str, object]) -> float:
    value = container.get("value")
    if value is None or value == "":
        return 0.0
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def score_container(container: Dict[str, object], policy: Optional[TerminalPolicy] = None) -> float:
    if policy is None:
        policy = default_policy()
    score = 1.0
    if container.get("type") == "dangereux":
        score *= policy.risk_factors["type_dangereux"]
    if _value_of(container) > policy.high_value_threshold:
        score *= policy.risk_factors["valeur_elevee"]
    return score


def inspection_for(score: float, needs_inspection: bool, policy: TerminalPolicy) -> str:
    if not needs_inspection:
        return "none"
    if score > policy.physical_inspection_score_threshold:
        return "physical"
    return "scanner"


def process_customs(
    containers: Iterable[Dict[str, object]],
    rng: Optional[np.random.Generator] = None,
    policy: Optional[TerminalPolicy] = None,
) -> Dict[str, object]:
    if policy is None:
        policy = default_policy()
    if rng is None:
        rng = np.random.default_rng()

    results: List[dict] = []
    for container in containers:
        score = score_container(container, policy)
        # One draw per container, taken even when the score alone already decides.
        draw = float(rng.random())
        needs_inspection = (
            score > policy.inspection_score_threshold or draw < policy.random_inspection_rate
        )
        inspection_type = inspection_for(score, needs_inspection, policy)
        results.append(
            {
                "container_number": container.get("number"),
                "risk_score": score,
                "needs_inspection": needs_inspection,
                "inspection_type": inspection_type,
                "estimated_time": policy.inspection_times[inspection_type],
            }
        )

    to_inspect = sum(1 for r in results if r["needs_inspection"])
    return {
        "success": True,
        "total_containers": len(results),
        "to_inspect": to_inspect,
        "results": results,
        "unapplied_risk_factors": dict(policy.unapplied_risk_factors),
        "recommendation": f"{to_inspect} containers selected for inspection",
    }
