import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

import numpy as np
import pytest

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.engine import INVALID_REQUEST, NOT_FOUND, SATURATED
from src.service import TerminalService
from src.terminal import Crane, default_knowledge_base


class MutableClock:
    def __init__(self) -> None:
        self.now = datetime(2024, 5, 1, 8, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def clock():
    return MutableClock()


@pytest.fixture
def service(clock):
    return TerminalService(seed=123, clock=clock)


def _plan(service, **overrides):
    request = {"name": "CMA Explorer", "capacity": 2500, "length": 300, "operation_type": "import"}
    request.update(overrides)
    return service.plan_arrival(**request)


def test_initial_stats_match_default_layout(service):
    assert service.stats() == {
        "total_containers": 1600,
        "available_quays": 1,
        "active_cranes": 3,
        "operations_today": 0,
    }


def test_plan_arrival_reserves_q1_and_records_ship(service):
    response = _plan(service)

    assert response["success"] is True
    assert response["quay"]["id"] == "Q1"
    assert response["quay"]["status"] == "reserved"
    assert response["estimated_time_hours"] == 50
    assert response["ship"]["status"] == "planned"
    assert response["ship"]["assigned_quay"] == "Q1"
    assert service.knowledge.find_quay("Q1").status == "reserved"
    assert response["stats"]["available_quays"] == 0
    assert response["stats"]["operations_today"] == 1
    assert service.facts.operations[-1].type == "arrival_planned"


def test_second_arrival_fails_once_q1_is_reserved(service):
    _plan(service)
    response = _plan(service, name="Second")

    assert response["success"] is False
    assert response["error"] == SATURATED
    assert response["quay"] is None
    assert len(service.facts.ships) == 1


def test_oversized_ship_leaves_state_untouched(service):
    before = service.get_status()
    response = _plan(service, capacity=9000)

    assert response["success"] is False
    after = service.get_status()
    assert after["knowledge_base"] == before["knowledge_base"]
    assert after["fact_base"] == before["fact_base"]


def test_ship_ids_are_unique(service):
    first = _plan(service)
    service.depart(first["ship"]["id"])
    second = _plan(service)
    assert first["ship"]["id"] != second["ship"]["id"]


@pytest.mark.parametrize("capacity", ["abc", None, -5, 12.5, True])
def test_malformed_capacity_is_invalid_request(service, capacity):
    response = _plan(service, capacity=capacity)
    assert response["success"] is False
    assert response["error"] == INVALID_REQUEST
    assert "stats" in response


def test_numeric_strings_are_accepted(service):
    response = _plan(service, capacity="2500", length="300")
    assert response["success"] is True


def test_unload_generates_apron_containers(service):
    ship_id = _plan(service)["ship"]["id"]
    response = service.unload(ship_id, 3)

    numbers = [c["number"] for c in response["containers"]]
    assert response["success"] is True
    assert len(set(numbers)) == 3
    assert all(c["status"] == "unloaded" and c["ship_id"] == ship_id for c in response["containers"])
    assert response["stats"]["total_containers"] == 1603


def test_unload_unknown_ship_is_not_found(service):
    response = service.unload("SHIP-999999", 2)
    assert response["success"] is False
    assert response["error"] == NOT_FOUND
    assert response["containers"] == []


def test_storing_an_unloaded_container_moves_it_off_the_apron(service):
    ship_id = _plan(service)["ship"]["id"]
    number = service.unload(ship_id, 1)["containers"][0]["number"]

    response = service.assign_storage(number, "standard", "full", "Lyon")

    assert response["success"] is True
    assert response["zone"]["id"] == "A1"
    assert response["zone"]["occupied"] == 851
    assert response["position"] == {"block": "A1", "row": 18, "stack": 1, "level": 1}
    assert response["container"]["status"] == "stored"
    assert response["container"]["declared_status"] == "full"
    assert response["stats"]["total_containers"] == 1601
    assert len(service.facts.containers) == 1


def test_storing_a_new_container_counts_once(service):
    response = service.assign_storage("MSCU0000001", "dangereux", "full", "Export", value=80000)
    assert response["zone"]["id"] == "D1"
    assert response["stats"]["total_containers"] == 1601


def test_storage_without_number_generates_one(service):
    response = service.assign_storage(None, "export")
    assert response["success"] is True
    assert response["container"]["number"].startswith("CONT-")


def test_storing_the_same_container_twice_is_rejected(service):
    first = service.assign_storage("BOX1", "standard")
    assert first["stats"]["total_containers"] == 1601

    second = service.assign_storage("BOX1", "dangereux")

    assert second["success"] is False
    assert second["error"] == INVALID_REQUEST
    assert second["zone"] is None
    assert second["stats"]["total_containers"] == 1601
    assert service.knowledge.find_zone("A1").occupied == 851
    assert service.knowledge.find_zone("D1").occupied == 30
    assert service.facts.find_container("BOX1").assigned_zone == "A1"
    assert len(service.facts.containers) == 1


@pytest.mark.parametrize("container_type", [["standard"], {"type": "standard"}, None])
def test_non_string_container_type_is_invalid_request(service, container_type):
    response = service.assign_storage("BOX2", container_type)
    assert response["success"] is False
    assert response["error"] == INVALID_REQUEST
    assert response["stats"]["total_containers"] == 1600
    assert service.facts.containers == []


def test_saturated_zone_is_not_incremented(clock):
    kb = default_knowledge_base()
    kb.find_zone("R1").occupied = kb.find_zone("R1").capacity
    service = TerminalService(knowledge=kb, seed=1, clock=clock)

    response = service.assign_storage("REEF1", "refrigere")

    assert response["success"] is False
    assert response["error"] == SATURATED
    assert response["zone"] is None
    assert kb.find_zone("R1").occupied == 200
    assert service.facts.containers == []


def test_customs_is_audited(service):
    batch = [
        {"number": "C1", "type": "dangereux", "value": 90000},
        {"number": "C2", "type": "standard", "value": 100},
    ]
    response = service.process_customs(batch)

    assert response["total_containers"] == 2
    assert response["results"][0]["inspection_type"] == "physical"
    assert response["to_inspect"] >= 1
    assert service.facts.operations[-1].type == "customs_control"


def test_customs_rejects_non_list(service):
    response = service.process_customs("C1,C2")
    assert response["error"] == INVALID_REQUEST


def test_loading_plan(service):
    ship_id = _plan(service)["ship"]["id"]
    response = service.schedule_loading(ship_id, ["E1", "E2", "E3"])

    assert response["success"] is True
    assert [s["load_order"] for s in response["sequence"]] == [1, 2, 3]
    assert [s["container_id"] for s in response["sequence"]] == ["E1", "E2", "E3"]
    assert response["total_time_mins"] == 6
    assert response["stability"] == "optimal"


def test_loading_unknown_ship(service):
    response = service.schedule_loading("nope", ["E1"])
    assert response["error"] == NOT_FOUND


def test_transport_schedule_is_bounded_and_seeded(clock):
    first = TerminalService(seed=99, clock=clock).schedule_transport(["C1"], "Paris", "truck")
    second = TerminalService(seed=99, clock=clock).schedule_transport(["C1"], "Paris", "truck")

    assert 24 <= first["estimated_exit_time_mins"] <= 39
    assert first["gate_assignment"] in {"Gate 1", "Gate 2", "Gate 3"}
    assert first["status"] == "approved"
    assert first["estimated_exit_time_mins"] == second["estimated_exit_time_mins"]
    assert first["gate_assignment"] == second["gate_assignment"]


def test_optimize_stacking_for_default_a1(service):
    response = service.optimize_stacking("A1")
    assert response["efficiency"] == pytest.approx(850 / 1200 * 100)
    assert response["recommendations"] == ["Stacking optimization recommended"]
    assert response["message"] == "Zone A1 optimization - efficiency: 70.8%"


def test_optimize_stacking_unknown_zone(service):
    assert service.optimize_stacking("Z9")["error"] == NOT_FOUND


def test_maintenance_lookup(service):
    response = service.schedule_maintenance("STS01")
    assert response["success"] is True
    assert response["priority"] == "high"
    assert response["estimated_duration"] == "4-6 hours"
    assert service.knowledge.find_crane("STS01").status == "active"


def test_maintenance_unknown_equipment(service):
    assert service.schedule_maintenance("XX01")["error"] == NOT_FOUND


def test_maintenance_unrecognized_type(clock):
    kb = default_knowledge_base()
    kb.cranes.append(Crane("SC01", "Straddle Carrier", capacity=40))
    response = TerminalService(knowledge=kb, clock=clock).schedule_maintenance("SC01")
    assert response["success"] is True
    assert response["recognized"] is False
    assert response["interval_hours"] is None
    assert response["message"] == "Equipment not recognized"


def test_unknown_emergency_is_handled_as_accident(service):
    response = service.report_emergency("inondation", "Water at gate 2")

    assert response["success"] is True
    assert response["resolved_type"] == "accident"
    assert len(response["mobilized_teams"]) == 3
    op = service.facts.operations[-1]
    assert op.type == "emergency"
    assert op.payload["emergency_type"] == "inondation"


def test_depart_releases_quay(service):
    ship_id = _plan(service)["ship"]["id"]
    response = service.depart(ship_id)

    assert response["success"] is True
    assert service.knowledge.find_quay("Q1").status == "available"
    assert response["stats"]["available_quays"] == 1
    assert service.depart(ship_id)["error"] == INVALID_REQUEST


def test_operations_today_follows_clock(service, clock):
    _plan(service)
    service.report_emergency("incendie", "drill")
    assert service.stats()["operations_today"] == 2

    clock.now += timedelta(days=1)
    assert service.stats()["operations_today"] == 0


def test_dashboard_shows_last_ten_operations(service):
    for i in range(12):
        service.report_emergency("mauvais_temps", f"gust {i}")

    dashboard = service.get_dashboard()
    assert len(dashboard["recent_operations"]) == 10
    assert dashboard["recent_operations"][-1]["payload"]["description"] == "gust 11"
    assert {q["id"] for q in dashboard["quays"]} == {"Q1", "Q2", "Q3"}
    assert len(dashboard["cranes"]) == 4
    assert len(dashboard["storage_zones"]) == 4
    assert dashboard["stats"]["operations_today"] == 12


def test_status_dump(service):
    _plan(service)
    status = service.get_status()
    assert set(status) == {"knowledge_base", "fact_base", "timestamp", "stats"}
    assert status["fact_base"]["ships"][0]["name"] == "CMA Explorer"
    assert status["timestamp"] == "2024-05-01T08:00:00+00:00"


def test_injected_generator_is_used(clock):
    rng = np.random.default_rng(5)
    service = TerminalService(rng=rng, clock=clock)
    assert service.rng is rng
