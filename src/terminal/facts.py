from __future__ import annotations

import itertools
from dataclasses import asdict, dataclass, field
from datetime import date, datetime
from typing import Dict, Iterator, List, Optional

from .knowledge import KnowledgeBase


class IdSequence:
    """Monotonic identifiers such as ``SHIP-000001``; unique for the life of the process."""

    def __init__(self, prefix: str, width: int = 6) -> None:
        self.prefix = prefix
        self.width = width
        self._counter: Iterator[int] = itertools.count(1)

    def next(self) -> str:
        return f"{self.prefix}-{next(self._counter):0{self.width}d}"


@dataclass
class Ship:
    id: str
    name: str
    capacity: int
    length: int
    operation_type: Optional[str] = None
    assigned_quay: Optional[str] = None
    status: str = "planned"
    estimated_time_hours: Optional[int] = None
    planned_at: Optional[datetime] = None


@dataclass
class Container:
    number: str
    type: str = "standard"
    status: Optional[str] = None
    declared_status: Optional[str] = None
    assigned_zone: Optional[str] = None
    position: Optional[Dict[str, object]] = None
    value: float = 0.0
    ship_id: Optional[str] = None
    destination: Optional[str] = None
    recorded_at: Optional[datetime] = None


@dataclass
class Operation:
    id: str
    type: str
    timestamp: datetime
    payload: Dict[str, object] = field(default_factory=dict)


@dataclass
class FactBase:
    ships: List[Ship] = field(default_factory=list)
    containers: List[Container] = field(default_factory=list)
    operations: List[Operation] = field(default_factory=list)
    ship_ids: IdSequence = field(default_factory=lambda: IdSequence("SHIP"), repr=False)
    container_ids: IdSequence = field(default_factory=lambda: IdSequence("CONT"), repr=False)
    operation_ids: IdSequence = field(default_factory=lambda: IdSequence("OP"), repr=False)

    def find_ship(self, ship_id: str) -> Optional[Ship]:
        return next((s for s in self.ships if s.id == str(ship_id)), None)

    def find_container(self, number: str) -> Optional[Container]:
        return next((c for c in self.containers if c.number == number), None)

    def record_operation(self, op_type: str, timestamp: datetime, **payload) -> Operation:
        operation = Operation(
            id=self.operation_ids.next(),
            type=op_type,
            timestamp=timestamp,
            payload=payload,
        )
        # Append-only; no retention policy.
        self.operations.append(operation)
        return operation

    def recent_operations(self, n: int = 10) -> List[Operation]:
        if n <= 0:
            return []
        return self.operations[-n:]


def to_jsonable(value):
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: to_jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_jsonable(item) for item in value]
    return value


def ship_to_dict(ship: Ship) -> dict:
    return to_jsonable(asdict(ship))


def container_to_dict(container: Container) -> dict:
    return to_jsonable(asdict(container))


def operation_to_dict(operation: Operation) -> dict:
    return to_jsonable(asdict(operation))


def fact_base_to_dict(facts: FactBase) -> Dict[str, List[dict]]:
    return {
        "ships": [ship_to_dict(s) for s in facts.ships],
        "containers": [container_to_dict(c) for c in facts.containers],
        "operations": [operation_to_dict(o) for o in facts.operations],
    }


# ----------------------------------------------------------------------------------------------------
# compute_stats
# Purpose (simple): Aggregate counters derived from the entity sets on every read.
# Inputs: knowledge base, fact base, `today` (date used for operations_today)
# Outputs: dict with total_containers, available_quays, active_cranes, operations_today
# Why it matters: Nothing is incremented on the side, so the counters cannot drift from the state.
# ----------------------------------------------------------------------------------------------------
def compute_stats(kb: KnowledgeBase, facts: FactBase, today: date) -> Dict[str, int]:
    stored = sum(zone.occupied for zone in kb.storage_zones)
    on_apron = sum(1 for c in facts.containers if c.status == "unloaded")
    return {
        "total_containers": stored + on_apron,
        "available_quays": sum(1 for q in kb.quays if q.status == "available"),
        "active_cranes": sum(1 for c in kb.cranes if c.status == "active"),
        "operations_today": sum(1 for o in facts.operations if o.timestamp.date() == today),
    }
