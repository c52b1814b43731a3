from __future__ import annotations

from typing import Iterable, List

import pandas as pd

from src.terminal.facts import Operation
from src.terminal.knowledge import StorageZone


OPERATION_COLUMNS = ["operation_id", "type", "timestamp"]


def operations_to_dataframe(operations: Iterable[Operation]) -> pd.DataFrame:
    rows: List[dict] = []
    for op in operations:
        row = {"operation_id": op.id, "type": op.type, "timestamp": op.timestamp}
        # Flatten scalar payload fields; nested plans/results stay in the JSON status dump.
        for key, value in op.payload.items():
            if isinstance(value, (str, int, float, bool)) or value is None:
                row[key] = value
        rows.append(row)
    if not rows:
        return pd.DataFrame(columns=OPERATION_COLUMNS)
    df = pd.DataFrame(rows)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df


def zones_to_dataframe(zones: Iterable[StorageZone]) -> pd.DataFrame:
    df = pd.DataFrame(
        [{"zone_id": z.id, "type": z.type, "capacity": z.capacity, "occupied": z.occupied} for z in zones]
    )
    if df.empty:
        return pd.DataFrame(columns=["zone_id", "type", "capacity", "occupied", "free", "occupancy_pct"])
    df["free"] = (df["capacity"] - df["occupied"]).clip(lower=0)
    df["occupancy_pct"] = df["occupied"] / df["capacity"] * 100.0
    return df


CUSTOMS_COLUMNS = [
    "operation_id",
    "timestamp",
    "container_number",
    "risk_score",
    "needs_inspection",
    "inspection_type",
    "estimated_time",
]


def customs_results_to_dataframe(operations: Iterable[Operation]) -> pd.DataFrame:
    """One row per container screened by a `customs_control` audit record."""
    rows: List[dict] = []
    for op in operations:
        if op.type != "customs_control":
            continue
        for result in op.payload.get("containers", []):
            rows.append({"operation_id": op.id, "timestamp": op.timestamp, **result})
    if not rows:
        return pd.DataFrame(columns=CUSTOMS_COLUMNS)
    df = pd.DataFrame(rows, columns=CUSTOMS_COLUMNS)
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    return df


def operation_counts(df: pd.DataFrame) -> pd.Series:
    """Number of audit records per operation type, largest first."""
    if df.empty or "type" not in df.columns:
        return pd.Series(dtype="int64")
    return df["type"].value_counts()
