"""
vehicle.py
----------

Point-mass vehicle used by the navigation simulation.

A vehicle is described by:
- its type tag (Heavy, Standard, Agile, UltraAgile),
- characteristics:
    size             - characteristic dimension [units]
    maneuverability  - maximum turning rate [rad/s]
    max_velocity     - maximum speed [units/s]
    max_acceleration - maximum acceleration [units/s^2]
- kinematic state: position, heading, speed,
- mission bookkeeping: has_arrived, distance_traveled, time_elapsed.

Module defines the data types, the preset table and the factory
create_vehicle_preset(vehicle_type), plus parse_vehicle_type(name) for
callers that receive type names as text.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from geometry import Point, euclidean_distance, normalize_angle


class VehicleType(str, Enum):
    HEAVY = "Heavy"
    STANDARD = "Standard"
    AGILE = "Agile"
    ULTRA_AGILE = "UltraAgile"

    @property
    def label(self) -> str:
        return self.value


@dataclass(frozen=True)
class VehicleCharacteristics:
    """
    Physical and performance characteristics.

    size             - characteristic dimension [units]
    maneuverability  - maximum turning rate [rad/s]
    max_velocity     - maximum speed [units/s]
    max_acceleration - maximum acceleration [units/s^2]
    """
    size: float
    maneuverability: float
    max_velocity: float
    max_acceleration: float


@dataclass
class VehicleState:
    position: Point
    angle: float        # heading [rad], 0 = east, pi/2 = north
    velocity: float = 0.0

    def __post_init__(self) -> None:
        self.angle = normalize_angle(self.angle)


@dataclass
class Vehicle:
    vehicle_type: VehicleType
    characteristics: VehicleCharacteristics
    state: VehicleState
    has_arrived: bool = False
    distance_traveled: float = 0.0
    time_elapsed: float = 0.0

    @classmethod
    def create(cls, vehicle_type: VehicleType, position: Point, angle: float,
               characteristics: VehicleCharacteristics | None = None) -> Vehicle:
        if characteristics is None:
            characteristics = create_vehicle_preset(vehicle_type)
        return cls(
            vehicle_type=vehicle_type,
            characteristics=characteristics,
            state=VehicleState(position=position, angle=angle),
        )

    def set_heading(self, angle: float) -> None:
        self.state.angle = normalize_angle(angle)

    def update_position(self, new_position: Point) -> None:
        """Move to new_position and add the step length to distance_traveled."""
        self.distance_traveled += euclidean_distance(self.state.position, new_position)
        self.state.position = new_position

    def __repr__(self) -> str:
        p = self.state.position
        return (f"<Vehicle {self.vehicle_type.label} pos=({p.x:.1f}, {p.y:.1f}) "
                f"angle={math.degrees(self.state.angle):.1f} deg v={self.state.velocity:.1f}>")


# -------------------------------------------------------------------------
# Presets
# -------------------------------------------------------------------------

PRESETS: dict[VehicleType, VehicleCharacteristics] = {
    VehicleType.HEAVY: VehicleCharacteristics(
        size=15.0,
        maneuverability=math.radians(20.0),
        max_velocity=50.0,
        max_acceleration=10.0,
    ),
    VehicleType.STANDARD: VehicleCharacteristics(
        size=10.0,
        maneuverability=math.radians(35.0),
        max_velocity=80.0,
        max_acceleration=20.0,
    ),
    VehicleType.AGILE: VehicleCharacteristics(
        size=6.0,
        maneuverability=math.radians(60.0),
        max_velocity=100.0,
        max_acceleration=30.0,
    ),
    VehicleType.ULTRA_AGILE: VehicleCharacteristics(
        size=8.0,
        maneuverability=math.radians(90.0),
        max_velocity=70.0,
        max_acceleration=25.0,
    ),
}


def create_vehicle_preset(vehicle_type: VehicleType) -> VehicleCharacteristics:
    """Characteristics for the given vehicle type."""
    return PRESETS[VehicleType(vehicle_type)]


def parse_vehicle_type(name: str | VehicleType) -> VehicleType:
    """
    Vehicle type from its name, case-insensitive ("heavy", "Standard", ...).

    :raises ValueError: for an unknown name
    """
    if isinstance(name, VehicleType):
        return name
    key = str(name).strip().lower().replace("_", "").replace("-", "")
    for vehicle_type in VehicleType:
        if vehicle_type.value.lower() == key:
            return vehicle_type
    valid = ", ".join(t.value for t in VehicleType)
    raise ValueError(f"Unknown vehicle type: {name}. Valid types: {valid}")
