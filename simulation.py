"""
simulation.py
-------------

Closed-loop navigation simulation.

Ties together:
- the map (world_map.py) - target position and required arrival angle,
- the vehicle (vehicle.py) - point-mass kinematic state,
- the fuzzy navigation controller (fuzzy_controller.py).

Each call to Simulation.step() advances time by dt:
    1. distance to the target,
    2. arrival check (distance AND heading thresholds) - before any motion,
    3. angular error with arrival bias, relative velocity,
    4. controller evaluation, output clamped to +-maneuverability,
    5. heading integration (speed is constant),
    6. position integration, distance traveled,
    7. time advance,
    8. trajectory point.

A run ends when the vehicle arrives or when max_time is reached; a timeout
is a normal outcome, distinguished only by has_arrived / arrival_time.

Simulations share no mutable state, so run_vehicles() can advance several
of them on a thread pool.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass

import numpy as np

from fuzzy_controller import NavigationController
from geometry import (
    Point,
    clamp,
    compute_angular_error_with_arrival,
    euclidean_distance,
    normalize_angle,
)
from vehicle import Vehicle, VehicleType, parse_vehicle_type
from world_map import Map

logger = logging.getLogger(__name__)

PROGRESS_INTERVAL_S = 5.0
VELOCITY_THRESHOLD_MARGIN = 5.0


# -------------------------------------------------------------------------
# Parameters and results
# -------------------------------------------------------------------------

@dataclass
class SimulationParams:
    """
    Simulation parameters.

    dt                  - time step [s]
    max_time            - mission timeout [s]
    distance_threshold  - arrival distance [units]
    angle_threshold_deg - arrival heading tolerance [deg]
    velocity_fraction   - constant speed as a fraction of max velocity;
                          None draws it from the map's random range
    """
    dt: float = 0.05
    max_time: float = 600.0
    distance_threshold: float = 25.0
    angle_threshold_deg: float = 2.0
    velocity_fraction: float | None = 0.10

    def __post_init__(self) -> None:
        if not self.dt > 0.0:
            raise ValueError(f"dt must be positive, got {self.dt}")
        if not self.max_time > 0.0:
            raise ValueError(f"max_time must be positive, got {self.max_time}")
        if not self.distance_threshold > 0.0:
            raise ValueError(f"distance_threshold must be positive, got {self.distance_threshold}")
        if not self.angle_threshold_deg > 0.0:
            raise ValueError(f"angle_threshold_deg must be positive, got {self.angle_threshold_deg}")
        if self.velocity_fraction is not None and not 0.0 < self.velocity_fraction <= 1.0:
            raise ValueError(f"velocity_fraction must be in (0, 1], got {self.velocity_fraction}")

    @property
    def angle_threshold(self) -> float:
        return math.radians(self.angle_threshold_deg)


@dataclass(frozen=True)
class TrajectoryPoint:
    t: float
    x: float
    y: float
    angle: float                # [deg]
    velocity: float
    distance_to_target: float


@dataclass(frozen=True)
class SimulationMetrics:
    success: bool
    arrival_time: float | None
    distance_traveled: float
    final_angle_error: float    # [deg]
    final_distance_to_target: float


@dataclass
class SimulationResult:
    vehicle_type: str
    trajectory: list[TrajectoryPoint]
    metrics: SimulationMetrics
    initial_x: float
    initial_y: float
    initial_angle: float        # [deg]
    time_elapsed: float = 0.0

    def to_dict(self) -> dict:
        return {
            "vehicle_type": self.vehicle_type,
            "trajectory": [asdict(p) for p in self.trajectory],
            "metrics": asdict(self.metrics),
        }


# -------------------------------------------------------------------------
# Simulation
# -------------------------------------------------------------------------

class Simulation:
    """
    One vehicle navigating towards the map's target.

    :param sim_map: environment with the target
    :param vehicle_type: VehicleType or its name
    :param params: SimulationParams (defaults if None)
    :param rng: generator for the random initial conditions; a fresh
                unseeded generator if None
    :param start_position: overrides the random start position
    :param start_angle: overrides the random start heading [rad]
    """

    def __init__(self, sim_map: Map, vehicle_type: VehicleType | str,
                 params: SimulationParams | None = None,
                 rng: np.random.Generator | None = None,
                 start_position: Point | None = None,
                 start_angle: float | None = None) -> None:
        self.map = sim_map
        self.params = params if params is not None else SimulationParams()
        rng = rng if rng is not None else np.random.default_rng()

        vehicle_type = parse_vehicle_type(vehicle_type)
        if start_position is None:
            start_position = sim_map.random_start_position(rng)
        if start_angle is None:
            start_angle = sim_map.random_start_angle(rng)
        fraction = self.params.velocity_fraction
        if fraction is None:
            fraction = sim_map.random_start_velocity_fraction(rng)

        self.vehicle = Vehicle.create(vehicle_type, start_position, start_angle)
        self.vehicle.state.velocity = self.vehicle.characteristics.max_velocity * fraction
        self.controller = NavigationController(self.vehicle.characteristics)

        self.time = 0.0
        self.trajectory: list[TrajectoryPoint] = []

        self.distance_threshold = self.params.distance_threshold
        self.angle_threshold = self.params.angle_threshold
        # informational only, arrival does not depend on speed
        self.velocity_threshold = self.vehicle.state.velocity + VELOCITY_THRESHOLD_MARGIN

        self.initial_position = start_position
        self.initial_angle = self.vehicle.state.angle

    # ---------------------------------------------------------------------

    @property
    def dt(self) -> float:
        return self.params.dt

    @property
    def max_time(self) -> float:
        return self.params.max_time

    @property
    def has_arrived(self) -> bool:
        return self.vehicle.has_arrived

    @property
    def is_finished(self) -> bool:
        return self.vehicle.has_arrived or self.time >= self.max_time

    def distance_to_target(self) -> float:
        return euclidean_distance(self.vehicle.state.position, self.map.target.position)

    def heading_error(self) -> float:
        """|required arrival angle - heading| [rad], wrapped."""
        return abs(normalize_angle(self.map.target.required_angle - self.vehicle.state.angle))

    def _record(self, distance_to_target: float) -> None:
        state = self.vehicle.state
        self.trajectory.append(TrajectoryPoint(
            t=self.time,
            x=state.position.x,
            y=state.position.y,
            angle=math.degrees(state.angle),
            velocity=state.velocity,
            distance_to_target=distance_to_target,
        ))

    # ---------------------------------------------------------------------

    def step(self) -> None:
        """Advance the simulation by one time step (no-op after arrival)."""
        if self.vehicle.has_arrived:
            return

        vehicle = self.vehicle
        state = vehicle.state
        target = self.map.target
        distance = self.distance_to_target()

        heading_error = self.heading_error()
        if distance < self.distance_threshold and heading_error < self.angle_threshold:
            vehicle.has_arrived = True
            self._record(distance)
            logger.info(
                "%s arrived at t=%.2fs (distance %.2f, angle error %.2f deg)",
                vehicle.vehicle_type.label, self.time, distance, math.degrees(heading_error),
            )
            return

        angular_error = compute_angular_error_with_arrival(
            state.position, state.angle, target.position, target.required_angle, distance,
        )
        relative_velocity = state.velocity / vehicle.characteristics.max_velocity

        control = self.controller.compute_control(distance, angular_error, relative_velocity)
        m = vehicle.characteristics.maneuverability
        adjustment = clamp(control.angular_adjustment, -m, m)

        vehicle.set_heading(state.angle + adjustment * self.dt)

        pos = state.position
        vehicle.update_position(Point(
            pos.x + state.velocity * math.cos(state.angle) * self.dt,
            pos.y + state.velocity * math.sin(state.angle) * self.dt,
        ))

        self.time += self.dt
        vehicle.time_elapsed = self.time

        self._record(distance)

    def run(self) -> SimulationResult:
        """Step until arrival or timeout and return the result."""
        logger.info(
            "Simulating %s from (%.1f, %.1f) @ %.1f deg, target (%.1f, %.1f) @ %.1f deg",
            self.vehicle.vehicle_type.label,
            self.initial_position.x, self.initial_position.y,
            math.degrees(self.initial_angle),
            self.map.target.position.x, self.map.target.position.y,
            math.degrees(self.map.target.required_angle),
        )

        interval = max(1, int(round(PROGRESS_INTERVAL_S / self.dt)))
        steps = 0
        while not self.is_finished:
            self.step()
            steps += 1
            if steps % interval == 0:
                pos = self.vehicle.state.position
                logger.debug(
                    "[t=%6.2fs] pos=(%6.1f, %6.1f) dist=%6.1f angle=%6.1f deg",
                    self.time, pos.x, pos.y, self.distance_to_target(),
                    math.degrees(self.vehicle.state.angle),
                )

        result = self.result()
        m = result.metrics
        if m.success:
            logger.info("%s: arrived in %.2fs after %.1f units (%d steps)",
                        result.vehicle_type, m.arrival_time, m.distance_traveled, steps)
        else:
            logger.info("%s: timeout at %.2fs, %.1f units from target (%d steps)",
                        result.vehicle_type, self.time, m.final_distance_to_target, steps)
        return result

    def metrics(self) -> SimulationMetrics:
        success = self.vehicle.has_arrived
        return SimulationMetrics(
            success=success,
            arrival_time=self.time if success else None,
            distance_traveled=self.vehicle.distance_traveled,
            final_angle_error=math.degrees(self.heading_error()),
            final_distance_to_target=self.distance_to_target(),
        )

    def result(self) -> SimulationResult:
        return SimulationResult(
            vehicle_type=self.vehicle.vehicle_type.label,
            trajectory=list(self.trajectory),
            metrics=self.metrics(),
            initial_x=self.initial_position.x,
            initial_y=self.initial_position.y,
            initial_angle=math.degrees(self.initial_angle),
            time_elapsed=self.time,
        )

    def __repr__(self) -> str:
        return (f"<Simulation {self.vehicle.vehicle_type.label} t={self.time:.2f}s "
                f"arrived={self.vehicle.has_arrived}>")


# -------------------------------------------------------------------------
# Several vehicles
# -------------------------------------------------------------------------

def spawn_generators(seed: int | None, n: int) -> list[np.random.Generator]:
    """n independent generators derived from one seed (entropy if None)."""
    return [np.random.default_rng(s) for s in np.random.SeedSequence(seed).spawn(n)]


def run_vehicles(sim_map: Map, vehicle_types, params: SimulationParams | None = None,
                 seed: int | None = None, workers: int | None = None) -> list[SimulationResult]:
    """
    Simulate each vehicle type independently on the same map.

    :param workers: None or 1 runs sequentially, otherwise the size of the
                    thread pool
    :return: results in the order of vehicle_types
    """
    vehicle_types = [parse_vehicle_type(t) for t in vehicle_types]
    if not vehicle_types:
        raise ValueError("At least one vehicle type must be specified")

    simulations = [
        Simulation(sim_map, vehicle_type, params, rng=rng)
        for vehicle_type, rng in zip(vehicle_types, spawn_generators(seed, len(vehicle_types)))
    ]

    if workers is None or workers <= 1:
        return [sim.run() for sim in simulations]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(Simulation.run, simulations))


def total_simulation_time(results: list[SimulationResult]) -> float:
    """Time until the last vehicle finished."""
    return max((r.time_elapsed for r in results), default=0.0)
