import math

import numpy as np
import pytest

from fuzzy_controller import (
    ANGULAR_ADJUSTMENT,
    ANGULAR_ERROR,
    DISTANCE,
    RELATIVE_VELOCITY,
    VELOCITY_ADJUSTMENT,
    NavigationController,
    build_rules,
)
from vehicle import VehicleType, create_vehicle_preset


@pytest.fixture
def controller():
    return NavigationController(create_vehicle_preset(VehicleType.STANDARD))


def test_topology(controller):
    names = [v.name for v in controller.input_variables]
    assert names == [DISTANCE, ANGULAR_ERROR, RELATIVE_VELOCITY]
    assert controller.output_variable.name == ANGULAR_ADJUSTMENT
    assert controller.output_variable.set_names == [
        "hard_left", "soft_left", "hold", "soft_right", "hard_right",
    ]
    assert len(controller.system.rules) == 11
    assert controller.system.validate() == []


def test_relative_velocity_is_not_referenced_by_rules():
    variables = {a.variable for rule in build_rules() for a in rule.antecedents}
    assert RELATIVE_VELOCITY not in variables


def test_output_range_scales_with_maneuverability(controller):
    m = controller.maneuverability
    assert controller.output_variable.range == (-m, m)
    assert m == pytest.approx(math.radians(35.0))


def test_aligned_holds_course(controller):
    out = controller.compute_control(500.0, 0.0, 0.1)
    assert out.angular_adjustment == pytest.approx(0.0, abs=1e-9)
    assert out.velocity_adjustment == VELOCITY_ADJUSTMENT == 0.0


def test_turns_towards_positive_error(controller):
    m = controller.maneuverability
    out = controller.compute_control(500.0, math.radians(45.0), 0.1)
    # far & deviated_right -> hard_right only
    assert out.angular_adjustment == pytest.approx(2.0 / 3.0 * m, rel=1e-3)


def test_response_is_antisymmetric(controller):
    for distance in (30.0, 150.0, 600.0):
        for deg in (7.0, 30.0, 80.0, 130.0):
            left = controller.compute_control(distance, -math.radians(deg), 0.1)
            right = controller.compute_control(distance, math.radians(deg), 0.1)
            assert left.angular_adjustment == pytest.approx(-right.angular_adjustment, abs=1e-9)


def test_near_target_turns_softly(controller):
    m = controller.maneuverability
    near = controller.compute_control(20.0, math.radians(45.0), 0.1).angular_adjustment
    far = controller.compute_control(600.0, math.radians(45.0), 0.1).angular_adjustment
    assert 0.0 < near < far <= m


def test_very_deviated_overrides_distance(controller):
    m = controller.maneuverability
    for distance in (10.0, 300.0, 900.0):
        out = controller.compute_control(distance, math.radians(130.0), 0.1)
        assert out.angular_adjustment == pytest.approx(2.0 / 3.0 * m, rel=1e-3)


def test_output_within_bounds(controller):
    m = controller.maneuverability
    rng = np.random.default_rng(7)
    for _ in range(200):
        out = controller.compute_control(
            float(rng.uniform(0, 1200)),
            float(rng.uniform(-math.pi, math.pi)),
            float(rng.uniform(0, 1)),
        )
        assert -m <= out.angular_adjustment <= m


def test_same_input_scales_between_vehicles():
    heavy = NavigationController(create_vehicle_preset(VehicleType.HEAVY))
    agile = NavigationController(create_vehicle_preset(VehicleType.AGILE))
    ratio = agile.maneuverability / heavy.maneuverability
    error = math.radians(25.0)
    assert agile.compute_control(250.0, error, 0.1).angular_adjustment == pytest.approx(
        ratio * heavy.compute_control(250.0, error, 0.1).angular_adjustment, rel=1e-6
    )
