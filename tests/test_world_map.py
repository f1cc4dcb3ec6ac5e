import math

import numpy as np
import pytest

from world_map import REQUIRED_ARRIVAL_ANGLE, Map, default_map


def test_default_map():
    m = default_map()
    assert (m.width, m.height) == (1000.0, 800.0)
    assert (m.target.position.x, m.target.position.y) == (500.0, 700.0)
    assert m.target.required_angle == REQUIRED_ARRIVAL_ANGLE == math.pi / 2


@pytest.mark.parametrize("args", [
    (1000, 800, 1200, 700),
    (1000, 800, 500, -1),
    (1000, 800, 500, 801),
])
def test_target_outside_map_rejected(args):
    with pytest.raises(ValueError, match="outside the map"):
        Map.create(*args)


def test_non_positive_size_rejected():
    with pytest.raises(ValueError, match="must be positive"):
        Map.create(0, 800, 0, 0)


def test_target_on_border_accepted():
    m = Map.create(100, 100, 100, 0)
    assert m.target.position.x == 100.0


def test_random_start_conditions():
    m = default_map()
    rng = np.random.default_rng(0)
    for _ in range(500):
        p = m.random_start_position(rng)
        assert 0.0 <= p.x < 1000.0
        assert 0.0 <= p.y < 0.08 * 800.0

        angle = m.random_start_angle(rng)
        assert math.radians(30) <= angle < math.radians(150)

        fraction = m.random_start_velocity_fraction(rng)
        assert 0.05 <= fraction < 0.15


def test_random_start_is_reproducible():
    m = default_map()
    a = m.random_start_position(np.random.default_rng(99))
    b = m.random_start_position(np.random.default_rng(99))
    assert a == b
