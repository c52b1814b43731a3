# ====================================================================================================
# Replay scenarios for the terminal demo
#
# Where this module sits:
# - `scripts/run_terminal_demo.py` picks a `ReplayConfig` here and hands it to `src/sim/replay.py`,
#   which drives `TerminalService` through a synthetic stream of ship calls.
#
# Why demo scenarios exist:
# - Runs locally with no external data.
# - Deterministic when seeded: the runner controls every random draw through one `seed`.
# ====================================================================================================

from dataclasses import asdict, dataclass, replace
from typing import Dict, Tuple


# ----------------------------------------------------------------------------------------------------
# ReplayConfig
# Purpose (simple): Immutable knob panel for one replay (arrival rate, ship sizes, cargo mix).
# Outputs: A frozen dataclass instance used by the replay processes
# Why it matters: Same config + same seed => same sequence of requests against the service.
# ----------------------------------------------------------------------------------------------------
@dataclass(frozen=True)
class ReplayConfig:
    name: str
    description: str
    demo: bool

    # Time horizon for new ship arrivals (ships already berthed finish after this).
    sim_time_mins: int

    # Ship arrivals and dimensions.
    ship_interarrival_mean_mins: float
    ship_capacity_range: Tuple[int, int]
    ship_length_range: Tuple[int, int]

    # Quay retry behavior when no quay fits.
    quay_retry_mins: float
    max_quay_retries: int

    # Berth time = estimated service hours * 60 * berth_time_scale (demo compresses time).
    berth_time_scale: float

    # Containers unloaded per call and their type mix (keys are container types).
    unload_count_range: Tuple[int, int]
    container_type_mix: Dict[str, float]

    # Declared value: share of high-value boxes and the two value bands.
    high_value_share: float
    normal_value_range: Tuple[float, float]
    high_value_range: Tuple[float, float]


REPLAY_KEYS = tuple(ReplayConfig.__dataclass_fields__.keys())  # pylint: disable=no-member


def replay_to_dict(config: ReplayConfig) -> dict:
    return asdict(config)


def replay_from_dict(data: dict) -> ReplayConfig:
    values = dict(data)
    for key in ("ship_capacity_range", "ship_length_range", "unload_count_range",
                "normal_value_range", "high_value_range"):
        if key in values:
            values[key] = tuple(values[key])
    return ReplayConfig(**values)


def _demo_base() -> ReplayConfig:
    return ReplayConfig(
        name="baseline",
        description=(
            "Demo replay with synthetic ship calls against the default terminal layout. "
            "This does not use external datasets."
        ),
        demo=True,
        sim_time_mins=12 * 60,
        ship_interarrival_mean_mins=90.0,
        ship_capacity_range=(800, 3500),
        ship_length_range=(150, 320),
        quay_retry_mins=60.0,
        max_quay_retries=6,
        berth_time_scale=0.25,
        unload_count_range=(4, 12),
        container_type_mix={
            "standard": 0.6,
            "refrigere": 0.15,
            "dangereux": 0.05,
            "export": 0.2,
        },
        high_value_share=0.1,
        normal_value_range=(5000.0, 45000.0),
        high_value_range=(50001.0, 250000.0),
    )


# ----------------------------------------------------------------------------------------------------
# get_replay_config
# Purpose (simple): Controlled entrypoint for selecting a curated replay by name.
# Inputs: `name` ("baseline" or "busy"), `demo` flag (CLI guard)
# Outputs: ReplayConfig
# ----------------------------------------------------------------------------------------------------
def get_replay_config(name: str, demo: bool) -> ReplayConfig:
    if not demo:
        raise ValueError("Non-demo replays are not implemented.")
    name = name.lower().strip()
    if name not in {"baseline", "busy"}:
        raise ValueError(f"Unknown replay scenario: {name}")
    base = _demo_base()
    if name == "baseline":
        return base
    return replace(
        base,
        name="busy",
        description="Demo replay with twice the arrival rate and larger discharges.",
        ship_interarrival_mean_mins=base.ship_interarrival_mean_mins / 2,
        unload_count_range=(10, 30),
    )
