# ====================================================================================================
# Where this fits - Deterministic Terminal Replay Runner
#
# What it takes in:
# - A replay scenario (`baseline` or `busy`) from `src/sim/scenarios.py`
# - A fixed `seed` (the determinism lever)
# - An output directory (where all artifacts are written)
# - Optional terminal layout JSON (`--layout`) and policy overrides JSON (`--policy-override`)
#
# What it produces (file-based artifacts for auditability):
# - `operations.csv` (the audit log of every request the replay made)
# - `zones.csv` (final storage zone occupancy)
# - `metadata.json` (scenario, seed, timestamp, git_commit, final stats, policy used)
# - `plots/zone_occupancy.png`
# - `run.log`
# ====================================================================================================

import argparse
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone
from pathlib import Path
from subprocess import CalledProcessError, check_output

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import pandas as pd


ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

from src.service import customs_results_to_dataframe, operation_counts, zones_to_dataframe
from src.sim import get_replay_config, replay_to_dict, run_replay
from src.terminal import (
    apply_policy_overrides,
    default_policy,
    knowledge_base_from_dict,
    policy_from_dict,
    policy_to_dict,
)


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Replay a synthetic day against the terminal expert system.")
    parser.add_argument("--scenario", choices=["baseline", "busy"], default="baseline")
    # Same seed + same layout + same policy => the same request stream and the same decisions.
    parser.add_argument("--seed", type=int, required=True)
    parser.add_argument("--out", required=True, help="Output directory path.")
    parser.add_argument("--hours", type=float, help="Override the arrival horizon in hours.")
    parser.add_argument("--layout", help="Optional terminal layout JSON path.")
    parser.add_argument("--policy-override", help="Optional JSON policy overrides path.")
    return parser.parse_args()


def get_git_commit(root: Path) -> str | None:
    try:
        return check_output(["git", "rev-parse", "HEAD"], cwd=root).decode().strip()
    except (CalledProcessError, FileNotFoundError):
        return None


def _load_json(path: Path) -> dict:
    return json.loads(path.read_text(encoding="utf-8"))


# ----------------------------------------------------------------------------------------------------
# plot_zone_occupancy
# Purpose (simple): Bar chart of final occupancy per storage zone with the stacking thresholds drawn in.
# Outputs: bool (True if plot saved, False if there were no zones)
# ----------------------------------------------------------------------------------------------------
def plot_zone_occupancy(zones_df: pd.DataFrame, thresholds: tuple, out_path: Path) -> bool:
    if zones_df.empty:
        return False
    plt.figure(figsize=(8, 5))
    plt.bar(zones_df["zone_id"], zones_df["occupancy_pct"], edgecolor="black", alpha=0.8)
    for threshold in thresholds:
        plt.axhline(threshold, linestyle="--", color="grey")
    plt.title("Storage Zone Occupancy (Demo Replay)")
    plt.xlabel("Zone")
    plt.ylabel("Occupancy (%)")
    plt.ylim(0, 100)
    plt.tight_layout()
    plt.savefig(out_path, dpi=150)
    plt.close()
    return True


def _build_policy(args: argparse.Namespace):
    policy_dict = policy_to_dict(default_policy())
    if args.policy_override:
        policy_dict = apply_policy_overrides(policy_dict, _load_json(Path(args.policy_override)))
    return policy_from_dict(policy_dict)


def run_demo(args: argparse.Namespace) -> dict:
    out_dir = Path(args.out)
    plots_dir = out_dir / "plots"
    out_dir.mkdir(parents=True, exist_ok=True)
    plots_dir.mkdir(parents=True, exist_ok=True)

    log_path = out_dir / "run.log"
    handler = logging.FileHandler(log_path, mode="w", encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    # Library modules log under the "src" hierarchy; route them into this run's log too.
    for name in (f"terminal_demo_{out_dir.name}", "src"):
        target = logging.getLogger(name)
        target.setLevel(logging.INFO)
        target.handlers.clear()
        target.addHandler(handler)
        target.addHandler(logging.StreamHandler(sys.stdout))
    logger = logging.getLogger(f"terminal_demo_{out_dir.name}")

    config = get_replay_config(args.scenario, demo=True)
    if args.hours is not None:
        config = replace(config, sim_time_mins=int(args.hours * 60))
    policy = _build_policy(args)
    knowledge = knowledge_base_from_dict(_load_json(Path(args.layout))) if args.layout else None

    logger.info("Starting replay: scenario=%s seed=%s", config.name, args.seed)
    service, ops_df = run_replay(config, seed=args.seed, knowledge=knowledge, policy=policy)
    logger.info("Replay recorded %s operations.", len(ops_df))

    operations_path = out_dir / "operations.csv"
    ops_df.to_csv(operations_path, index=False)
    logger.info("Wrote operations to %s", operations_path)

    zones_df = zones_to_dataframe(service.knowledge.storage_zones)
    zones_path = out_dir / "zones.csv"
    zones_df.to_csv(zones_path, index=False)
    logger.info("Wrote zones to %s", zones_path)

    customs_df = customs_results_to_dataframe(service.facts.operations)
    customs_path = out_dir / "customs.csv"
    customs_df.to_csv(customs_path, index=False)
    logger.info("Wrote %s customs screening rows to %s", len(customs_df), customs_path)

    occupancy_plot = plots_dir / "zone_occupancy.png"
    thresholds = (policy.optimization_threshold_pct, policy.redistribution_threshold_pct)
    if plot_zone_occupancy(zones_df, thresholds, occupancy_plot):
        logger.info("Saved plot %s", occupancy_plot)
    else:
        logger.warning("Skipped zone occupancy plot (no zones).")

    metadata = {
        "scenario_name": config.name,
        "scenario_description": config.description,
        "seed": args.seed,
        "demo": True,
        "timestamp_utc": datetime.now(timezone.utc).replace(microsecond=0).isoformat(),
        "git_commit": get_git_commit(ROOT),
        "operation_count": int(len(ops_df)),
        "operation_counts": {str(k): int(v) for k, v in operation_counts(ops_df).items()},
        "final_stats": service.stats(),
        "outputs": {
            "operations_csv": str(operations_path.as_posix()),
            "zones_csv": str(zones_path.as_posix()),
            "customs_csv": str(customs_path.as_posix()),
            "plots_dir": str(plots_dir.as_posix()),
            "run_log": str(log_path.as_posix()),
        },
        "replay_config": replay_to_dict(config),
        "policy_used": policy_to_dict(policy),
    }
    metadata_path = out_dir / "metadata.json"
    metadata_path.write_text(json.dumps(metadata, indent=2), encoding="utf-8")
    logger.info("Wrote metadata to %s", metadata_path)
    logger.info("Replay complete.")
    return metadata


def main() -> int:
    args = parse_args()
    try:
        run_demo(args)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
