from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional, Tuple

import numpy as np
import pandas as pd
import simpy

from src.service.reporting import operations_to_dataframe
from src.service.terminal_service import TerminalService
from src.terminal.knowledge import KnowledgeBase
from src.terminal.policy import TerminalPolicy

from .scenarios import ReplayConfig

logger = logging.getLogger(__name__)

REPLAY_EPOCH = datetime(2024, 1, 1, 6, 0, tzinfo=timezone.utc)


def sample_container_type(config: ReplayConfig, rng: np.random.Generator) -> str:
    types = list(config.container_type_mix.keys())
    weights = np.array([config.container_type_mix[t] for t in types], dtype=float)
    return str(rng.choice(types, p=weights / weights.sum()))


def sample_value(config: ReplayConfig, rng: np.random.Generator) -> float:
    low, high = config.high_value_range if rng.random() < config.high_value_share else config.normal_value_range
    return round(float(rng.uniform(low, high)), 2)


def ship_process(
    env: simpy.Environment,
    service: TerminalService,
    ship_no: int,
    config: ReplayConfig,
    rng: np.random.Generator,
):
    name = f"VESSEL-{ship_no:03d}"
    capacity = int(rng.integers(config.ship_capacity_range[0], config.ship_capacity_range[1] + 1))
    length = int(rng.integers(config.ship_length_range[0], config.ship_length_range[1] + 1))

    attempts = 0
    while True:
        response = service.plan_arrival(name, capacity, length, "import/export")
        if response["success"]:
            break
        attempts += 1
        if attempts > config.max_quay_retries:
            logger.info("%s gave up after %s quay attempts", name, attempts)
            return
        yield env.timeout(config.quay_retry_mins)

    ship_id = response["ship"]["id"]
    count = int(rng.integers(config.unload_count_range[0], config.unload_count_range[1] + 1))
    unloaded = service.unload(ship_id, count)["containers"]

    batch: List[dict] = []
    import_ids: List[str] = []
    export_ids: List[str] = []
    for container in unloaded:
        container_type = sample_container_type(config, rng)
        value = sample_value(config, rng)
        stored = service.assign_storage(container["number"], container_type, "full", "hinterland", value)
        if not stored["success"]:
            continue
        batch.append({"number": container["number"], "type": container_type, "value": value})
        (export_ids if container_type == "export" else import_ids).append(container["number"])

    if batch:
        service.process_customs(batch)
    if import_ids:
        service.schedule_transport(import_ids, "hinterland", "truck")
    if export_ids:
        service.schedule_loading(ship_id, export_ids)

    yield env.timeout(response["estimated_time_hours"] * 60 * config.berth_time_scale)
    service.depart(ship_id)


def arrival_generator(
    env: simpy.Environment,
    service: TerminalService,
    config: ReplayConfig,
    rng: np.random.Generator,
):
    ship_no = 0
    while True:
        yield env.timeout(float(rng.exponential(config.ship_interarrival_mean_mins)))
        if env.now >= config.sim_time_mins:
            break
        env.process(ship_process(env, service, ship_no, config, rng))
        ship_no += 1


# ----------------------------------------------------------------------------------------------------
# run_replay
# Purpose (simple): Drive a fresh TerminalService through one synthetic terminal day.
# Inputs: replay config, seed, optional layout/policy
# Outputs: (service, audit-log DataFrame)
# Notes: The service clock follows simulated time, and the service's customs/transport generator is
# spawned from the same seed as the arrival stream.
# ----------------------------------------------------------------------------------------------------
def run_replay(
    config: ReplayConfig,
    seed: int,
    knowledge: Optional[KnowledgeBase] = None,
    policy: Optional[TerminalPolicy] = None,
) -> Tuple[TerminalService, pd.DataFrame]:
    arrival_seq, service_seq = np.random.SeedSequence(seed).spawn(2)
    rng = np.random.default_rng(arrival_seq)

    env = simpy.Environment()
    service = TerminalService(
        knowledge=knowledge,
        policy=policy,
        rng=np.random.default_rng(service_seq),
        clock=lambda: REPLAY_EPOCH + timedelta(minutes=env.now),
    )

    env.process(arrival_generator(env, service, config, rng))
    env.run()

    return service, operations_to_dataframe(service.facts.operations)
