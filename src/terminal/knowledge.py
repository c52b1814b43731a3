# ====================================================================================================
# Knowledge Base: terminal infrastructure (quays, cranes, storage zones)
#
# Reference data with a few mutable fields:
# - Quay.status moves available -> reserved when a ship is planned, and back on departure.
# - StorageZone.occupied grows by one per stored container (never decremented here).
# - Crane.status is read-only to the decision rules.
#
# The declared order of `quays` is meaningful: quay assignment is first-fit over this list.
# ====================================================================================================

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Dict, List, Optional


QUAY_STATUSES = ("available", "reserved", "occupied", "maintenance")
CRANE_STATUSES = ("active", "maintenance")
ZONE_TYPES = ("standard", "refrigerated", "dangerous", "export")


@dataclass
class Quay:
    id: str
    name: str
    max_length: int
    max_capacity: int
    status: str = "available"

    def accepts(self, length: int, capacity: int) -> bool:
        return (
            self.status == "available"
            and length <= self.max_length
            and capacity <= self.max_capacity
        )


@dataclass
class Crane:
    id: str
    type: str
    capacity: int
    status: str = "active"


@dataclass
class StorageZone:
    id: str
    type: str
    capacity: int
    occupied: int = 0

    @property
    def has_space(self) -> bool:
        return self.occupied < self.capacity


@dataclass
class KnowledgeBase:
    quays: List[Quay] = field(default_factory=list)
    cranes: List[Crane] = field(default_factory=list)
    storage_zones: List[StorageZone] = field(default_factory=list)

    def find_quay(self, quay_id: str) -> Optional[Quay]:
        return next((q for q in self.quays if q.id == quay_id), None)

    def find_crane(self, crane_id: str) -> Optional[Crane]:
        return next((c for c in self.cranes if c.id == crane_id), None)

    def find_zone(self, zone_id: str) -> Optional[StorageZone]:
        return next((z for z in self.storage_zones if z.id == zone_id), None)


# ----------------------------------------------------------------------------------------------------
# default_knowledge_base
# Purpose (simple): The demo terminal layout every fresh service starts from.
# Outputs: KnowledgeBase with 3 quays, 4 cranes and 4 storage zones
# Why it matters: Q1 is the only available quay at start; Q2 is occupied and Q3 under maintenance,
# so the first-fit behavior is visible on the very first arrival request.
# ----------------------------------------------------------------------------------------------------
def default_knowledge_base() -> KnowledgeBase:
    return KnowledgeBase(
        quays=[
            Quay("Q1", "Quay 1 - Zone A", max_length=300, max_capacity=3000, status="available"),
            Quay("Q2", "Quay 2 - Zone B", max_length=400, max_capacity=5000, status="occupied"),
            Quay("Q3", "Quay 3 - Zone C", max_length=250, max_capacity=2000, status="maintenance"),
        ],
        cranes=[
            Crane("STS01", "Ship-to-Shore", capacity=50, status="active"),
            Crane("STS02", "Ship-to-Shore", capacity=45, status="active"),
            Crane("RTG01", "Rubber-Tyred Gantry", capacity=30, status="active"),
            Crane("RTG02", "Rubber-Tyred Gantry", capacity=30, status="maintenance"),
        ],
        storage_zones=[
            StorageZone("A1", "standard", capacity=1200, occupied=850),
            StorageZone("R1", "refrigerated", capacity=200, occupied=120),
            StorageZone("D1", "dangerous", capacity=100, occupied=30),
            StorageZone("E1", "export", capacity=800, occupied=600),
        ],
    )


def knowledge_base_to_dict(kb: KnowledgeBase) -> Dict[str, List[dict]]:
    return asdict(kb)


def _build(cls, record: dict, keys: tuple, label: str):
    missing = [key for key in keys if key not in record]
    if missing:
        raise ValueError(f"{label} is missing keys: {', '.join(missing)}")
    try:
        return cls(**record)
    except TypeError as exc:
        raise ValueError(f"{label} has unexpected keys: {exc}") from exc


# ----------------------------------------------------------------------------------------------------
# knowledge_base_from_dict
# Purpose (simple): Load a terminal layout (e.g. from a JSON file) and validate it.
# Inputs: dict with "quays", "cranes" and "storage_zones" lists
# Outputs: KnowledgeBase
# Raises: ValueError on missing keys, unknown statuses, duplicate ids or occupancy outside capacity.
# ----------------------------------------------------------------------------------------------------
def knowledge_base_from_dict(data: dict) -> KnowledgeBase:
    if not isinstance(data, dict):
        raise ValueError("Layout must be a dict.")

    quays = []
    for record in data.get("quays", []):
        quay = _build(Quay, record, ("id", "name", "max_length", "max_capacity"), "Quay")
        if quay.status not in QUAY_STATUSES:
            raise ValueError(f"Quay {quay.id} has unknown status: {quay.status}")
        quays.append(quay)

    cranes = []
    for record in data.get("cranes", []):
        crane = _build(Crane, record, ("id", "type", "capacity"), "Crane")
        if crane.status not in CRANE_STATUSES:
            raise ValueError(f"Crane {crane.id} has unknown status: {crane.status}")
        cranes.append(crane)

    zones = []
    for record in data.get("storage_zones", []):
        zone = _build(StorageZone, record, ("id", "type", "capacity"), "Storage zone")
        if zone.capacity < 1:
            raise ValueError(f"Storage zone {zone.id} must have capacity >= 1.")
        if not 0 <= zone.occupied <= zone.capacity:
            raise ValueError(f"Storage zone {zone.id} occupancy must be within [0, capacity].")
        zones.append(zone)

    for label, items in (("quay", quays), ("crane", cranes), ("storage zone", zones)):
        ids = [item.id for item in items]
        if len(ids) != len(set(ids)):
            raise ValueError(f"Duplicate {label} ids in layout.")

    return KnowledgeBase(quays=quays, cranes=cranes, storage_zones=zones)
