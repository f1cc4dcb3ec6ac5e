"""
benchmark.py
------------

Repeated navigation runs and their aggregate statistics.

Every iteration simulates each requested vehicle type once, from fresh
random initial conditions. Runs are independent and are spread over a
thread pool; each run gets its own generator spawned from one seed, so a
benchmark with a fixed seed is reproducible regardless of scheduling.

Statistics per vehicle type: success rate, mean / std / min / max arrival
time (successful runs only), mean / std distance traveled, mean final
distance and mean final angle error.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass

import numpy as np

from simulation import Simulation, SimulationParams
from vehicle import VehicleType, parse_vehicle_type
from world_map import Map, default_map

logger = logging.getLogger(__name__)

DEFAULT_VEHICLES = (VehicleType.HEAVY, VehicleType.STANDARD, VehicleType.AGILE)


@dataclass(frozen=True)
class RunRecord:
    """Outcome of one simulation inside a benchmark."""
    iteration: int
    vehicle_type: str
    success: bool
    arrival_time: float | None
    distance_traveled: float
    final_distance: float
    final_angle_error: float
    initial_x: float
    initial_y: float
    initial_angle: float


@dataclass(frozen=True)
class AggregateStats:
    vehicle_type: str
    total_runs: int
    successes: int
    success_rate: float         # [%]
    avg_arrival_time: float
    std_arrival_time: float
    min_arrival_time: float
    max_arrival_time: float
    avg_distance_traveled: float
    std_distance_traveled: float
    avg_final_distance: float
    avg_final_angle_error: float


@dataclass
class BenchmarkResult:
    num_iterations: int
    dt: float
    max_time: float
    map_width: float
    map_height: float
    target_x: float
    target_y: float
    runs: list[RunRecord]
    aggregate: list[AggregateStats]

    def to_dict(self) -> dict:
        iterations: dict[int, list[dict]] = {}
        for run in self.runs:
            record = asdict(run)
            iterations.setdefault(record.pop("iteration"), []).append(record)
        return {
            "num_iterations": self.num_iterations,
            "dt": self.dt,
            "max_time": self.max_time,
            "map_width": self.map_width,
            "map_height": self.map_height,
            "target_x": self.target_x,
            "target_y": self.target_y,
            "iterations": [
                {"iteration": i, "vehicles": vehicles}
                for i, vehicles in sorted(iterations.items())
            ],
            "aggregate": [asdict(a) for a in self.aggregate],
        }


def calculate_stats(values) -> tuple[float, float, float, float]:
    """(mean, population std, min, max); zeros for an empty sequence."""
    arr = np.asarray(list(values), dtype=float)
    if arr.size == 0:
        return 0.0, 0.0, 0.0, 0.0
    return float(arr.mean()), float(arr.std()), float(arr.min()), float(arr.max())


def default_workers() -> int:
    """Half of the available cores, at least one."""
    return max(1, (os.cpu_count() or 2) // 2)


def run_single(sim_map: Map, vehicle_type: VehicleType, params: SimulationParams,
               rng: np.random.Generator, iteration: int = 0) -> RunRecord:
    result = Simulation(sim_map, vehicle_type, params, rng=rng).run()
    m = result.metrics
    return RunRecord(
        iteration=iteration,
        vehicle_type=result.vehicle_type,
        success=m.success,
        arrival_time=m.arrival_time,
        distance_traveled=m.distance_traveled,
        final_distance=m.final_distance_to_target,
        final_angle_error=m.final_angle_error,
        initial_x=result.initial_x,
        initial_y=result.initial_y,
        initial_angle=result.initial_angle,
    )


def unique_vehicle_types(vehicle_types) -> list[VehicleType]:
    """Parsed vehicle types in first-seen order, each listed once."""
    return list(dict.fromkeys(parse_vehicle_type(t) for t in vehicle_types))


def aggregate(runs: list[RunRecord], vehicle_types, iterations: int) -> list[AggregateStats]:
    """One entry per distinct vehicle type; repeated names share one entry."""
    stats = []
    for vehicle_type in unique_vehicle_types(vehicle_types):
        label = vehicle_type.label
        own = [r for r in runs if r.vehicle_type == label]
        successes = sum(1 for r in own if r.success)

        avg_t, std_t, min_t, max_t = calculate_stats(
            r.arrival_time for r in own if r.arrival_time is not None
        )
        avg_d, std_d, _, _ = calculate_stats(r.distance_traveled for r in own)
        avg_final, _, _, _ = calculate_stats(r.final_distance for r in own)
        avg_angle, _, _, _ = calculate_stats(r.final_angle_error for r in own)

        stats.append(AggregateStats(
            vehicle_type=label,
            total_runs=iterations,
            successes=successes,
            success_rate=successes / iterations * 100.0,
            avg_arrival_time=avg_t,
            std_arrival_time=std_t,
            min_arrival_time=min_t,
            max_arrival_time=max_t,
            avg_distance_traveled=avg_d,
            std_distance_traveled=std_d,
            avg_final_distance=avg_final,
            avg_final_angle_error=avg_angle,
        ))
    return stats


def run_benchmark(iterations: int, vehicle_types=DEFAULT_VEHICLES,
                  params: SimulationParams | None = None,
                  sim_map: Map | None = None,
                  seed: int | None = None,
                  workers: int | None = None) -> BenchmarkResult:
    """
    Run `iterations` x len(vehicle_types) independent simulations.

    :param iterations: number of iterations (>= 1)
    :param vehicle_types: VehicleType values or names
    :param params: simulation parameters (defaults if None)
    :param sim_map: map (1000 x 800, target (500, 700) if None)
    :param seed: seed for the initial conditions; None for fresh entropy
    :param workers: thread pool size, default_workers() if None
    """
    if iterations < 1:
        raise ValueError("Number of iterations must be greater than 0")
    vehicle_types = unique_vehicle_types(vehicle_types)
    if not vehicle_types:
        raise ValueError("At least one vehicle type must be specified")

    params = params if params is not None else SimulationParams()
    sim_map = sim_map if sim_map is not None else default_map()
    workers = workers if workers is not None else default_workers()

    jobs = [(i, vehicle_type) for i in range(iterations) for vehicle_type in vehicle_types]
    seeds = np.random.SeedSequence(seed).spawn(len(jobs))

    def job(index: int) -> RunRecord:
        iteration, vehicle_type = jobs[index]
        rng = np.random.default_rng(seeds[index])
        return run_single(sim_map, vehicle_type, params, rng, iteration)

    logger.info("Benchmark: %d iterations x %d vehicle types on %d workers",
                iterations, len(vehicle_types), workers)
    with ThreadPoolExecutor(max_workers=workers) as pool:
        runs = list(pool.map(job, range(len(jobs))))

    return BenchmarkResult(
        num_iterations=iterations,
        dt=params.dt,
        max_time=params.max_time,
        map_width=sim_map.width,
        map_height=sim_map.height,
        target_x=sim_map.target.position.x,
        target_y=sim_map.target.position.y,
        runs=runs,
        aggregate=aggregate(runs, vehicle_types, iterations),
    )
