from __future__ import annotations

from typing import Dict


# Failure kinds carried in the "error" field of a failed outcome.
NOT_FOUND = "not_found"
SATURATED = "saturated"
INVALID_REQUEST = "invalid_request"

# An unrecognized equipment or emergency type is not a failure: the rule answers with its
# fallback and sets `recognized=False`.
ERROR_KINDS = (NOT_FOUND, SATURATED, INVALID_REQUEST)


def success(recommendation: str, **payload) -> Dict[str, object]:
    return {"success": True, "recommendation": recommendation, **payload}


def failure(error: str, reason: str, recommendation: str = "", **payload) -> Dict[str, object]:
    if error not in ERROR_KINDS:
        raise ValueError(f"Unknown error kind: {error}")
    return {
        "success": False,
        "error": error,
        "reason": reason,
        "recommendation": recommendation,
        **payload,
    }
