import math

import numpy as np
import pytest

from geometry import Point
from simulation import (
    Simulation,
    SimulationParams,
    run_vehicles,
    spawn_generators,
    total_simulation_time,
)
from world_map import default_map


def make_sim(x, y, angle, vehicle="Standard", **params):
    return Simulation(default_map(), vehicle, SimulationParams(**params),
                      start_position=Point(x, y), start_angle=angle)


# -------------------------------------------------------------------------
# Parameters
# -------------------------------------------------------------------------

@pytest.mark.parametrize("kwargs", [
    {"dt": 0.0},
    {"max_time": -1.0},
    {"distance_threshold": 0.0},
    {"angle_threshold_deg": 0.0},
    {"velocity_fraction": 1.5},
])
def test_invalid_params(kwargs):
    with pytest.raises(ValueError):
        SimulationParams(**kwargs)


def test_angle_threshold_in_radians():
    assert SimulationParams().angle_threshold == pytest.approx(math.radians(2.0))


# -------------------------------------------------------------------------
# Arrival
# -------------------------------------------------------------------------

def test_arrives_when_close_and_aligned():
    sim = make_sim(500, 690, math.pi / 2)
    sim.step()
    assert sim.has_arrived
    assert sim.time == 0.0
    assert len(sim.trajectory) == 1
    assert sim.trajectory[0].distance_to_target == pytest.approx(10.0)

    metrics = sim.metrics()
    assert metrics.success
    assert metrics.arrival_time == 0.0
    assert metrics.final_angle_error == pytest.approx(0.0)


def test_close_but_misaligned_does_not_arrive():
    sim = make_sim(500, 690, 0.0)
    sim.step()
    assert not sim.has_arrived
    assert sim.time == pytest.approx(sim.dt)


def test_aligned_but_far_does_not_arrive():
    sim = make_sim(500, 500, math.pi / 2)
    sim.step()
    assert not sim.has_arrived


def test_just_outside_angle_threshold_does_not_arrive():
    sim = make_sim(500, 690, math.pi / 2 + math.radians(3.0))
    sim.step()
    assert not sim.has_arrived


def test_step_after_arrival_is_noop():
    sim = make_sim(500, 690, math.pi / 2)
    sim.step()
    position = sim.vehicle.state.position
    sim.step()
    sim.step()
    assert sim.time == 0.0
    assert len(sim.trajectory) == 1
    assert sim.vehicle.state.position == position
    assert sim.is_finished


# -------------------------------------------------------------------------
# Stepping
# -------------------------------------------------------------------------

def test_constant_speed_and_monotone_distance():
    sim = Simulation(default_map(), "Standard", rng=np.random.default_rng(3))
    speed = sim.vehicle.state.velocity
    assert speed == pytest.approx(0.1 * 80.0)

    previous = 0.0
    for _ in range(400):
        sim.step()
        if sim.has_arrived:
            break
        traveled = sim.vehicle.distance_traveled
        assert traveled >= previous
        assert traveled - previous == pytest.approx(speed * sim.dt)
        previous = traveled
        assert sim.vehicle.state.velocity == speed


def test_trajectory_records_distance_before_move():
    sim = make_sim(200, 50, math.radians(60))
    initial = sim.distance_to_target()
    sim.step()
    point = sim.trajectory[0]
    assert point.distance_to_target == pytest.approx(initial)
    assert point.t == pytest.approx(sim.dt)
    assert (point.x, point.y) != (200, 50)


def test_turn_rate_is_bounded():
    sim = make_sim(500, 50, math.radians(150), vehicle="Heavy")
    m = sim.vehicle.characteristics.maneuverability
    for _ in range(200):
        before = sim.vehicle.state.angle
        sim.step()
        change = abs(math.remainder(sim.vehicle.state.angle - before, 2 * math.pi))
        assert change <= m * sim.dt + 1e-12


def test_random_velocity_fraction():
    sim = Simulation(default_map(), "Agile", SimulationParams(velocity_fraction=None),
                     rng=np.random.default_rng(5))
    assert 5.0 <= sim.vehicle.state.velocity < 15.0


def test_timeout_is_a_normal_outcome():
    sim = make_sim(0, 0, -math.pi / 2, vehicle="Heavy", max_time=2.0)
    result = sim.run()
    assert not result.metrics.success
    assert result.metrics.arrival_time is None
    assert result.time_elapsed >= 2.0
    assert len(result.trajectory) == pytest.approx(2.0 / 0.05, abs=1)


@pytest.mark.parametrize("angle, expected", [
    (-3 * math.pi / 4, 135.0),     # raw difference 225 deg
    (-math.pi / 4, 135.0),
    (math.pi, 90.0),
])
def test_final_angle_error_is_wrapped(angle, expected):
    metrics = make_sim(500, 100, angle).metrics()
    assert metrics.final_angle_error == pytest.approx(expected)
    assert 0.0 <= metrics.final_angle_error <= 180.0


# -------------------------------------------------------------------------
# End to end
# -------------------------------------------------------------------------

def test_heavy_end_to_end():
    sim = Simulation(default_map(), "Heavy", SimulationParams(dt=0.05, max_time=600.0),
                     rng=np.random.default_rng(2024))
    result = sim.run()

    assert result.trajectory
    assert result.vehicle_type == "Heavy"
    if result.metrics.success:
        assert result.trajectory[-1].distance_to_target < 25.0
        assert result.metrics.arrival_time is not None
        assert result.metrics.final_angle_error < 2.0
    else:
        assert result.metrics.arrival_time is None

    data = result.to_dict()
    assert set(data) == {"vehicle_type", "trajectory", "metrics"}
    assert set(data["trajectory"][0]) == {"t", "x", "y", "angle", "velocity", "distance_to_target"}


def test_concurrent_and_sequential_runs_match():
    types = ["Heavy", "Standard", "Agile"]
    params = SimulationParams(max_time=30.0)
    sequential = run_vehicles(default_map(), types, params, seed=11)
    concurrent = run_vehicles(default_map(), types, params, seed=11, workers=3)

    assert [r.vehicle_type for r in concurrent] == types
    assert sequential == concurrent


def test_run_vehicles_requires_a_type():
    with pytest.raises(ValueError):
        run_vehicles(default_map(), [])


def test_spawned_generators_are_reproducible():
    a = [g.uniform() for g in spawn_generators(5, 3)]
    b = [g.uniform() for g in spawn_generators(5, 3)]
    assert a == b
    assert len(set(a)) == 3


def test_total_simulation_time():
    results = run_vehicles(default_map(), ["Agile", "Heavy"], SimulationParams(max_time=1.0), seed=1)
    assert total_simulation_time(results) == max(r.time_elapsed for r in results)
    assert total_simulation_time([]) == 0.0
