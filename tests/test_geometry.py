import math

import numpy as np
import pytest

from geometry import (
    APPROACH_START,
    Point,
    approach_point,
    clamp,
    compute_angular_error,
    compute_angular_error_with_arrival,
    euclidean_distance,
    normalize_angle,
)


def test_euclidean_distance():
    assert euclidean_distance(Point(0, 0), Point(3, 4)) == 5.0


def test_normalize_angle_values():
    assert normalize_angle(0.5) == 0.5
    assert normalize_angle(math.pi) == math.pi
    assert normalize_angle(3 * math.pi / 2) == pytest.approx(-math.pi / 2)
    assert normalize_angle(-3 * math.pi / 2) == pytest.approx(math.pi / 2)
    assert normalize_angle(4 * math.pi + 0.25) == pytest.approx(0.25)


def test_normalize_angle_range_property():
    rng = np.random.default_rng(42)
    for angle in rng.uniform(-1e4, 1e4, 5000):
        wrapped = normalize_angle(float(angle))
        assert -math.pi <= wrapped <= math.pi
        assert math.sin(wrapped) == pytest.approx(math.sin(angle), abs=1e-6)
        assert math.cos(wrapped) == pytest.approx(math.cos(angle), abs=1e-6)


def test_clamp():
    assert clamp(5.0, -1.0, 1.0) == 1.0
    assert clamp(-5.0, -1.0, 1.0) == -1.0
    assert clamp(0.2, -1.0, 1.0) == 0.2


def test_angular_error_sign():
    origin = Point(0, 0)
    assert compute_angular_error(origin, 0.0, Point(0, 10)) == pytest.approx(math.pi / 2)
    assert compute_angular_error(origin, 0.0, Point(0, -10)) == pytest.approx(-math.pi / 2)
    # -170 - 170 = -340 deg, wrapped to +20 deg
    aim = Point(10 * math.cos(math.radians(-170)), 10 * math.sin(math.radians(-170)))
    assert compute_angular_error(origin, math.radians(170), aim) == pytest.approx(math.radians(20))


def test_approach_point_offset():
    target = Point(500, 700)
    assert approach_point(target, math.pi / 2, 0.0) == target

    p = approach_point(target, math.pi / 2, APPROACH_START)
    assert p.x == pytest.approx(500.0)
    assert p.y == pytest.approx(600.0)

    p = approach_point(target, math.pi / 2, 60.0)
    assert p.y == pytest.approx(700.0 - 100.0 * 0.5 ** 1.5)


def test_arrival_bias_only_inside_approach_radius():
    target = Point(500, 700)
    far = Point(300, 400)
    d = euclidean_distance(far, target)
    assert d > APPROACH_START
    assert compute_angular_error_with_arrival(far, 0.3, target, math.pi / 2, d) == \
        compute_angular_error(far, 0.3, target)

    near = Point(450, 650)
    d = euclidean_distance(near, target)
    biased = compute_angular_error_with_arrival(near, 0.3, target, math.pi / 2, d)
    aim = approach_point(target, math.pi / 2, d)
    assert biased == pytest.approx(compute_angular_error(near, 0.3, aim))
    assert biased != pytest.approx(compute_angular_error(near, 0.3, target))
