# ====================================================================================================
# Request handlers: TerminalService
#
# Where this sits:
# - Callers (an HTTP layer, the simpy replay in `src/sim/replay.py`, tests) pass already-parsed request
#   values into one method per operation.
# - Each method builds a domain value, runs the matching rule from `src/engine/*` against the current
#   Knowledge Base, applies the state change on success and appends an audit record to the Fact Base.
#
# Concurrency:
# - One RLock guards every handler. A rule's read of the Knowledge Base and the mutation that follows
#   (quay reservation, zone occupancy) happen inside the same critical section, so two concurrent
#   arrival requests cannot both reserve the last available quay.
#
# Errors:
# - Nothing here raises for business or input conditions. Every path returns a response dict with
#   `success`, `message` and the current `stats`; failures also carry `error` (see engine/outcomes.py).
# ====================================================================================================

from __future__ import annotations

import logging
import threading
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Callable, Dict, Iterable, List, Optional

import numpy as np

from src.engine.customs import process_customs as run_customs_control
from src.engine.emergency import handle_emergency
from src.engine.logistics import plan_loading, plan_transport
from src.engine.maintenance import schedule_maintenance as maintenance_rule
from src.engine.outcomes import INVALID_REQUEST, NOT_FOUND, failure
from src.engine.quay import assign_quay
from src.engine.stacking import optimize_stacking as stacking_rule
from src.engine.storage import assign_storage_zone
from src.terminal.facts import (
    Container,
    FactBase,
    Ship,
    compute_stats,
    container_to_dict,
    fact_base_to_dict,
    operation_to_dict,
    ship_to_dict,
)
from src.terminal.knowledge import KnowledgeBase, default_knowledge_base, knowledge_base_to_dict
from src.terminal.policy import TerminalPolicy, default_policy

logger = logging.getLogger(__name__)

DASHBOARD_RECENT_OPERATIONS = 10


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _parse_int(value, field_name: str, minimum: int = 0) -> int:
    if isinstance(value, bool):
        raise ValueError(f"{field_name} must be an integer.")
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise ValueError(f"{field_name} must be an integer.") from None
    if isinstance(value, float) and value != parsed:
        raise ValueError(f"{field_name} must be an integer.")
    if parsed < minimum:
        raise ValueError(f"{field_name} must be >= {minimum}.")
    return parsed


def _parse_id_list(value, field_name: str) -> List[str]:
    if not isinstance(value, (list, tuple)):
        raise ValueError(f"{field_name} must be a list.")
    return [str(item) for item in value]


class TerminalService:
    """Owns the terminal state and serializes every request against it."""

    def __init__(
        self,
        knowledge: Optional[KnowledgeBase] = None,
        facts: Optional[FactBase] = None,
        policy: Optional[TerminalPolicy] = None,
        rng: Optional[np.random.Generator] = None,
        seed: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self.knowledge = knowledge if knowledge is not None else default_knowledge_base()
        self.facts = facts if facts is not None else FactBase()
        self.policy = policy if policy is not None else default_policy()
        self.rng = rng if rng is not None else np.random.default_rng(seed)
        self._clock = clock or _utc_now
        self._lock = threading.RLock()

    # ------------------------------------------------------------------------------------------------
    # Response helpers
    # ------------------------------------------------------------------------------------------------
    def stats(self) -> Dict[str, int]:
        with self._lock:
            return compute_stats(self.knowledge, self.facts, self._clock().date())

    def _respond(self, success: bool, message: str, **data) -> Dict[str, object]:
        return {"success": success, "message": message, **data, "stats": self.stats()}

    def _fail(self, outcome: Dict[str, object], **data) -> Dict[str, object]:
        return self._respond(
            False,
            str(outcome["reason"]),
            error=outcome["error"],
            reason=outcome["reason"],
            recommendation=outcome.get("recommendation", ""),
            **data,
        )

    def _invalid(self, exc: ValueError, **data) -> Dict[str, object]:
        logger.info("Rejected request: %s", exc)
        return self._fail(failure(INVALID_REQUEST, str(exc), "Correct the request and resubmit"), **data)

    def _not_found(self, what: str, key, **data) -> Dict[str, object]:
        return self._fail(failure(NOT_FOUND, f"{what} not found: {key}"), **data)

    # ------------------------------------------------------------------------------------------------
    # Ship planning and quay assignment
    # ------------------------------------------------------------------------------------------------
    def plan_arrival(self, name: str, capacity, length, operation_type: Optional[str] = None) -> Dict[str, object]:
        try:
            capacity = _parse_int(capacity, "capacity")
            length = _parse_int(length, "length", minimum=1)
        except ValueError as exc:
            return self._invalid(exc, quay=None, estimated_time_hours=None)

        with self._lock:
            descriptor = {"name": name, "capacity": capacity, "length": length}
            result = assign_quay(descriptor, self.knowledge.quays, self.policy)
            if not result["success"]:
                logger.warning("No quay for ship %s (length=%s capacity=%s)", name, length, capacity)
                return self._fail(result, quay=None, estimated_time_hours=None)

            quay = result["quay"]
            quay.status = "reserved"
            now = self._clock()
            ship = Ship(
                id=self.facts.ship_ids.next(),
                name=name,
                capacity=capacity,
                length=length,
                operation_type=operation_type,
                assigned_quay=quay.id,
                status="planned",
                estimated_time_hours=result["estimated_time_hours"],
                planned_at=now,
            )
            self.facts.ships.append(ship)
            self.facts.record_operation(
                "arrival_planned",
                now,
                ship_id=ship.id,
                ship_name=name,
                quay_id=quay.id,
                estimated_time_hours=ship.estimated_time_hours,
            )
            logger.info("Ship %s (%s) reserved %s", ship.id, name, quay.id)
            return self._respond(
                True,
                str(result["recommendation"]),
                ship=ship_to_dict(ship),
                quay=asdict(quay),
                estimated_time_hours=ship.estimated_time_hours,
            )

    def depart(self, ship_id) -> Dict[str, object]:
        with self._lock:
            ship = self.facts.find_ship(ship_id)
            if ship is None:
                return self._not_found("Ship", ship_id)
            if ship.status == "departed":
                return self._fail(failure(INVALID_REQUEST, f"Ship {ship.id} has already departed"))

            quay = self.knowledge.find_quay(ship.assigned_quay) if ship.assigned_quay else None
            if quay is not None and quay.status in ("reserved", "occupied"):
                quay.status = "available"
            ship.status = "departed"
            self.facts.record_operation(
                "departure",
                self._clock(),
                ship_id=ship.id,
                quay_id=quay.id if quay is not None else None,
            )
            logger.info("Ship %s departed; quay %s released", ship.id, ship.assigned_quay)
            return self._respond(
                True,
                f"Ship {ship.name} departed",
                ship=ship_to_dict(ship),
                quay=asdict(quay) if quay is not None else None,
            )

    # ------------------------------------------------------------------------------------------------
    # Containers: unload, storage, customs
    # ------------------------------------------------------------------------------------------------
    def unload(self, ship_id, container_count) -> Dict[str, object]:
        try:
            container_count = _parse_int(container_count, "container_count")
        except ValueError as exc:
            return self._invalid(exc, containers=[])

        with self._lock:
            ship = self.facts.find_ship(ship_id)
            if ship is None:
                return self._not_found("Ship", ship_id, containers=[])

            now = self._clock()
            unloaded = []
            for _ in range(container_count):
                container = Container(
                    number=self.facts.container_ids.next(),
                    type="standard",
                    status="unloaded",
                    ship_id=ship.id,
                    recorded_at=now,
                )
                self.facts.containers.append(container)
                unloaded.append(container)

            self.facts.record_operation(
                "unload",
                now,
                ship_id=ship.id,
                container_count=container_count,
                container_numbers=[c.number for c in unloaded],
            )
            logger.info("Unloaded %s containers from %s", container_count, ship.id)
            return self._respond(
                True,
                f"{container_count} containers unloaded",
                containers=[container_to_dict(c) for c in unloaded],
            )

    def assign_storage(
        self,
        container_number: Optional[str] = None,
        type: str = "standard",
        status: Optional[str] = None,
        destination: Optional[str] = None,
        value=0,
    ) -> Dict[str, object]:
        if not isinstance(type, str):
            return self._invalid(ValueError("type must be a string."), zone=None, position=None)
        try:
            value = float(value or 0)
        except (TypeError, ValueError):
            return self._invalid(ValueError("value must be a number."), zone=None, position=None)

        with self._lock:
            number = container_number or self.facts.container_ids.next()
            existing = self.facts.find_container(number)
            if existing is not None and existing.status == "stored":
                return self._invalid(
                    ValueError(f"Container {number} is already stored in zone {existing.assigned_zone}."),
                    zone=None,
                    position=None,
                )
            result = assign_storage_zone({"number": number, "type": type}, self.knowledge.storage_zones, self.policy)
            if not result["success"]:
                logger.warning("Storage refused for %s (type=%s): %s", number, type, result["reason"])
                return self._fail(result, zone=None, position=None)

            zone = result["zone"]
            position = result["position"]
            zone.occupied += 1
            now = self._clock()

            container = existing
            if container is None:
                container = Container(number=number)
                self.facts.containers.append(container)
            container.type = type
            container.status = "stored"
            container.declared_status = status
            container.destination = destination
            container.value = value
            container.assigned_zone = zone.id
            container.position = position
            container.recorded_at = now

            self.facts.record_operation(
                "storage_assigned",
                now,
                container_number=number,
                zone_id=zone.id,
                position=dict(position),
            )
            return self._respond(
                True,
                str(result["recommendation"]),
                container=container_to_dict(container),
                zone=asdict(zone),
                position=position,
            )

    def process_customs(self, containers: Iterable[dict]) -> Dict[str, object]:
        if not isinstance(containers, (list, tuple)) or not all(isinstance(c, dict) for c in containers):
            return self._invalid(ValueError("containers must be a list of objects."))

        with self._lock:
            result = run_customs_control(containers, self.rng, self.policy)
            self.facts.record_operation(
                "customs_control",
                self._clock(),
                containers=result["results"],
                summary=result["recommendation"],
            )
            logger.info(
                "Customs control: %s of %s containers selected",
                result["to_inspect"],
                result["total_containers"],
            )
            return self._respond(
                True,
                "Customs control processed",
                total_containers=result["total_containers"],
                to_inspect=result["to_inspect"],
                results=result["results"],
                unapplied_risk_factors=result["unapplied_risk_factors"],
                recommendation=result["recommendation"],
            )

    # ------------------------------------------------------------------------------------------------
    # Loading and land transport
    # ------------------------------------------------------------------------------------------------
    def schedule_loading(self, ship_id, container_ids) -> Dict[str, object]:
        try:
            container_ids = _parse_id_list(container_ids, "container_ids")
        except ValueError as exc:
            return self._invalid(exc)

        with self._lock:
            ship = self.facts.find_ship(ship_id)
            if ship is None:
                return self._not_found("Ship", ship_id)

            plan = plan_loading(container_ids, self.policy)
            self.facts.record_operation("loading", self._clock(), ship_id=ship.id, plan=plan)
            return self._respond(
                True,
                f"Loading plan generated for {len(container_ids)} containers",
                **plan,
            )

    def schedule_transport(self, container_ids, destination: Optional[str], transport_mode: Optional[str]) -> Dict[str, object]:
        try:
            container_ids = _parse_id_list(container_ids, "container_ids")
        except ValueError as exc:
            return self._invalid(exc)

        with self._lock:
            schedule = plan_transport(container_ids, destination, transport_mode, self.rng, self.policy)
            self.facts.record_operation("transport_exit", self._clock(), schedule=schedule)
            return self._respond(
                True,
                f"Transport scheduled - estimated exit: {schedule['estimated_exit_time_mins']} minutes",
                **schedule,
            )

    # ------------------------------------------------------------------------------------------------
    # Yard, equipment and emergencies
    # ------------------------------------------------------------------------------------------------
    def optimize_stacking(self, zone_id: str) -> Dict[str, object]:
        with self._lock:
            zone = self.knowledge.find_zone(zone_id)
            if zone is None:
                return self._not_found("Zone", zone_id)
            result = stacking_rule(zone, self.policy)
            return self._respond(
                True,
                f"Zone {zone_id} optimization - efficiency: {result['efficiency']:.1f}%",
                **result,
            )

    def schedule_maintenance(self, equipment_id: str) -> Dict[str, object]:
        with self._lock:
            crane = self.knowledge.find_crane(equipment_id)
            if crane is None:
                return self._not_found("Equipment", equipment_id)
            result = maintenance_rule(crane, self.policy)
            if not result["recognized"]:
                logger.warning("No maintenance rule for %s (type=%s)", crane.id, crane.type)
            data = {key: value for key, value in result.items() if key not in ("success", "recommendation")}
            return self._respond(True, str(result["recommendation"]), **data)

    def report_emergency(self, type: str, description: str = "") -> Dict[str, object]:
        with self._lock:
            result = handle_emergency(type, description, self.policy)
            self.facts.record_operation(
                "emergency",
                self._clock(),
                emergency_type=type,
                resolved_type=result["resolved_type"],
                description=description,
                protocol=result["protocol"],
            )
            if not result["recognized"]:
                logger.warning("Unknown emergency type %r handled with %s protocol", type, result["resolved_type"])
            logger.warning("Emergency %s reported: %s", type, description)
            data = {key: value for key, value in result.items() if key not in ("success", "recommendation")}
            return self._respond(True, str(result["recommendation"]), **data)

    # ------------------------------------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------------------------------------
    def get_status(self) -> Dict[str, object]:
        with self._lock:
            return {
                "knowledge_base": knowledge_base_to_dict(self.knowledge),
                "fact_base": fact_base_to_dict(self.facts),
                "timestamp": self._clock().isoformat(),
                "stats": self.stats(),
            }

    def get_dashboard(self) -> Dict[str, object]:
        with self._lock:
            kb = knowledge_base_to_dict(self.knowledge)
            return {
                "stats": self.stats(),
                "quays": kb["quays"],
                "cranes": kb["cranes"],
                "storage_zones": kb["storage_zones"],
                "recent_operations": [
                    operation_to_dict(o) for o in self.facts.recent_operations(DASHBOARD_RECENT_OPERATIONS)
                ],
            }
