"""
world_map.py
------------

Rectangular environment the vehicle navigates in.

The map holds:
- its size (width x height),
- a start zone - a horizontal band at the bottom of the map,
- the target: a position plus the heading the vehicle must have on arrival
  (90 deg, i.e. pointing north).

Random initial conditions are drawn from a numpy Generator passed in by the
caller, so runs are reproducible for a seeded generator.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np

from geometry import Point

START_ZONE_HEIGHT_FRACTION = 0.08
REQUIRED_ARRIVAL_ANGLE = math.pi / 2.0

START_ANGLE_RANGE = (math.radians(30.0), math.radians(150.0))
START_VELOCITY_FRACTION_RANGE = (0.05, 0.15)


@dataclass(frozen=True)
class StartZone:
    height_fraction: float = START_ZONE_HEIGHT_FRACTION


@dataclass(frozen=True)
class Target:
    position: Point
    required_angle: float = REQUIRED_ARRIVAL_ANGLE


@dataclass(frozen=True)
class Map:
    width: float
    height: float
    target: Target
    start_zone: StartZone = field(default_factory=StartZone)

    def __post_init__(self) -> None:
        if self.width <= 0.0 or self.height <= 0.0:
            raise ValueError(f"Map size must be positive, got {self.width}x{self.height}")
        t = self.target.position
        if not (0.0 <= t.x <= self.width and 0.0 <= t.y <= self.height):
            raise ValueError(
                f"Target ({t.x}, {t.y}) lies outside the map {self.width}x{self.height}"
            )

    @classmethod
    def create(cls, width: float, height: float, target_x: float, target_y: float) -> Map:
        return cls(
            width=float(width),
            height=float(height),
            target=Target(Point(float(target_x), float(target_y))),
        )

    def random_start_position(self, rng: np.random.Generator) -> Point:
        """Uniform position inside the start zone."""
        x = rng.uniform(0.0, self.width)
        y = rng.uniform(0.0, self.height * self.start_zone.height_fraction)
        return Point(float(x), float(y))

    def random_start_angle(self, rng: np.random.Generator) -> float:
        """Heading between 30 and 150 deg, i.e. roughly upward."""
        return float(rng.uniform(*START_ANGLE_RANGE))

    def random_start_velocity_fraction(self, rng: np.random.Generator) -> float:
        """Fraction of max velocity between 5% and 15%."""
        return float(rng.uniform(*START_VELOCITY_FRACTION_RANGE))


def default_map() -> Map:
    """1000 x 800 map with the target at the top centre (500, 700)."""
    return Map.create(1000.0, 800.0, 500.0, 700.0)
