"""JSON / CSV export of simulation and benchmark results."""

from __future__ import annotations

import csv
import json
import os
from dataclasses import asdict, fields

from benchmark import AggregateStats, BenchmarkResult, RunRecord
from simulation import SimulationResult, TrajectoryPoint

TRAJECTORY_FIELDS = [f.name for f in fields(TrajectoryPoint)]
RUN_FIELDS = [f.name for f in fields(RunRecord)]
AGGREGATE_FIELDS = [f.name for f in fields(AggregateStats)]


def _ensure_parent(path: str) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


def results_to_dict(results: list[SimulationResult], total_simulation_time: float) -> dict:
    return {
        "vehicles": [r.to_dict() for r in results],
        "total_simulation_time": total_simulation_time,
    }


def write_result_json(path: str, results: list[SimulationResult],
                      total_simulation_time: float) -> None:
    """Write the multi-vehicle result: {"vehicles": [...], "total_simulation_time": t}."""
    _ensure_parent(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(results_to_dict(results, total_simulation_time), f, indent=2)


def write_trajectory_csv(path: str, trajectory: list[TrajectoryPoint]) -> None:
    """Write one trajectory, one row per point."""
    _ensure_parent(path)
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=TRAJECTORY_FIELDS)
        w.writeheader()
        for point in trajectory:
            w.writerow(asdict(point))


def write_benchmark_json(path: str, benchmark: BenchmarkResult) -> None:
    _ensure_parent(path)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(benchmark.to_dict(), f, indent=2)


def write_benchmark_csv(path: str, runs: list[RunRecord]) -> None:
    """Write one row per run; a missing arrival time is an empty cell."""
    _ensure_parent(path)
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=RUN_FIELDS)
        w.writeheader()
        for run in runs:
            row = asdict(run)
            if row["arrival_time"] is None:
                row["arrival_time"] = ""
            w.writerow(row)


def write_aggregate_csv(path: str, aggregate: list[AggregateStats]) -> None:
    """Write one summary row per vehicle type."""
    _ensure_parent(path)
    with open(path, "w", newline="") as f:
        w = csv.DictWriter(f, fieldnames=AGGREGATE_FIELDS)
        w.writeheader()
        for stats in aggregate:
            w.writerow(asdict(stats))


def load_trajectory_json(path: str) -> dict[str, list[TrajectoryPoint]]:
    """Read a file written by write_result_json into {vehicle_type: trajectory}."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)

    if "vehicles" not in data:
        raise ValueError(f"{path}: missing 'vehicles' key")

    trajectories: dict[str, list[TrajectoryPoint]] = {}
    for i, vehicle in enumerate(data["vehicles"]):
        try:
            name = vehicle["vehicle_type"]
            points = [
                TrajectoryPoint(**{k: float(p[k]) for k in TRAJECTORY_FIELDS})
                for p in vehicle["trajectory"]
            ]
        except KeyError as exc:
            raise ValueError(f"{path}: vehicle #{i} is missing key {exc}") from exc
        trajectories[name] = points
    return trajectories
