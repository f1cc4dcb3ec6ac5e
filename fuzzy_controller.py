"""
fuzzy_controller.py
-------------------

Mamdani fuzzy controller steering a vehicle towards its target.

The controller is a fixed instance of FuzzySystem with three inputs:
- distance_to_target [0, 1000]  : near, medium, far
- angular_error      [-pi, pi]  : aligned, deviated_left, deviated_right,
                                  very_deviated_left, very_deviated_right
- relative_velocity  [0, 1]     : slow, medium, fast (fuzzified but not
                                  referenced by any rule)

and one output:
- angular_adjustment [-m, m]    : hard_left, soft_left, hold, soft_right,
                                  hard_right

where m is the vehicle's maneuverability [rad/s]; the output sets scale with
it, while the angular error sets are fixed in degrees for every vehicle.

Rule base (all AND):
    far    & aligned        -> hold
    far    & deviated_right -> hard_right
    far    & deviated_left  -> hard_left
    medium & aligned        -> hold
    medium & deviated_right -> soft_right
    medium & deviated_left  -> soft_left
    near   & aligned        -> hold
    near   & deviated_left  -> soft_left
    near   & deviated_right -> soft_right
    very_deviated_left      -> hard_left     (regardless of distance)
    very_deviated_right     -> hard_right    (regardless of distance)

Velocity is not controlled: the second output, velocity_adjustment, is the
constant-velocity policy value 0.0.
"""

from __future__ import annotations

import math
from typing import NamedTuple

from fuzzy_system import FuzzyRule, FuzzySet, FuzzySystem, LinguisticVariable
from membership import trapezoidal, triangular
from vehicle import VehicleCharacteristics

DISTANCE = "distance_to_target"
ANGULAR_ERROR = "angular_error"
RELATIVE_VELOCITY = "relative_velocity"
ANGULAR_ADJUSTMENT = "angular_adjustment"

DISTANCE_RANGE = (0.0, 1000.0)

# constant-velocity policy: the controller never changes speed
VELOCITY_ADJUSTMENT = 0.0


class ControlOutput(NamedTuple):
    angular_adjustment: float   # [rad/s]
    velocity_adjustment: float  # [units/s^2], always VELOCITY_ADJUSTMENT


# -------------------------------------------------------------------------
# Linguistic variables
# -------------------------------------------------------------------------

def _deg(*values: float) -> list[float]:
    return [math.radians(v) for v in values]


def distance_variable() -> LinguisticVariable:
    var = LinguisticVariable(DISTANCE, DISTANCE_RANGE)
    var.add_set(FuzzySet("near", trapezoidal(0.0, 0.0, 50.0, 100.0)))
    var.add_set(FuzzySet("medium", triangular(80.0, 200.0, 400.0)))
    var.add_set(FuzzySet("far", trapezoidal(350.0, 500.0, 1000.0, 1000.0)))
    return var


def angular_error_variable() -> LinguisticVariable:
    """
    Angular error sets, fixed in degrees.

    "left" sets cover negative errors and "right" sets positive ones; each
    maps to an output set of the same sign, so the correction reduces the
    error.
    """
    var = LinguisticVariable(ANGULAR_ERROR, (-math.pi, math.pi))
    var.add_set(FuzzySet("aligned", trapezoidal(*_deg(-10.0, -5.0, 5.0, 10.0))))
    var.add_set(FuzzySet("deviated_left", triangular(*_deg(-90.0, -45.0, -10.0))))
    var.add_set(FuzzySet("deviated_right", triangular(*_deg(10.0, 45.0, 90.0))))
    var.add_set(FuzzySet(
        "very_deviated_left",
        trapezoidal(-math.pi, *_deg(-150.0, -120.0, -70.0)),
    ))
    var.add_set(FuzzySet(
        "very_deviated_right",
        trapezoidal(*_deg(70.0, 120.0, 150.0), math.pi),
    ))
    return var


def relative_velocity_variable() -> LinguisticVariable:
    var = LinguisticVariable(RELATIVE_VELOCITY, (0.0, 1.0))
    var.add_set(FuzzySet("slow", triangular(0.0, 0.0, 0.3)))
    var.add_set(FuzzySet("medium", triangular(0.2, 0.5, 0.8)))
    var.add_set(FuzzySet("fast", trapezoidal(0.7, 1.0, 1.0, 1.0)))
    return var


def angular_adjustment_variable(maneuverability: float) -> LinguisticVariable:
    """Output sets as fractions of the maneuverability m."""
    m = maneuverability
    var = LinguisticVariable(ANGULAR_ADJUSTMENT, (-m, m))
    var.add_set(FuzzySet("hard_left", triangular(-m, -0.7 * m, -0.3 * m)))
    var.add_set(FuzzySet("soft_left", triangular(-0.4 * m, -0.2 * m, 0.0)))
    var.add_set(FuzzySet("hold", triangular(-0.1 * m, 0.0, 0.1 * m)))
    var.add_set(FuzzySet("soft_right", triangular(0.0, 0.2 * m, 0.4 * m)))
    var.add_set(FuzzySet("hard_right", triangular(0.3 * m, 0.7 * m, m)))
    return var


# (distance set or None, angular error set) -> output set
RULE_TABLE: list[tuple[str | None, str, str]] = [
    ("far", "aligned", "hold"),
    ("far", "deviated_right", "hard_right"),
    ("far", "deviated_left", "hard_left"),
    ("medium", "aligned", "hold"),
    ("medium", "deviated_right", "soft_right"),
    ("medium", "deviated_left", "soft_left"),
    ("near", "aligned", "hold"),
    ("near", "deviated_left", "soft_left"),
    ("near", "deviated_right", "soft_right"),
    (None, "very_deviated_left", "hard_left"),
    (None, "very_deviated_right", "hard_right"),
]


def build_rules() -> list[FuzzyRule]:
    rules = []
    for distance_set, error_set, output_set in RULE_TABLE:
        antecedents = [(ANGULAR_ERROR, error_set)]
        if distance_set is not None:
            antecedents.insert(0, (DISTANCE, distance_set))
        rules.append(FuzzyRule.when(antecedents, [(ANGULAR_ADJUSTMENT, output_set)]))
    return rules


# -------------------------------------------------------------------------
# Controller
# -------------------------------------------------------------------------

class NavigationController:
    """
    Fuzzy navigation controller for one vehicle.

    Inputs:
        distance_to_target - distance to the target [units]
        angular_error      - signed heading error [rad]
        relative_velocity  - speed / max speed

    Output:
        angular_adjustment - turning rate command [rad/s], within
                             [-maneuverability, maneuverability]
    """

    def __init__(self, characteristics: VehicleCharacteristics) -> None:
        self.characteristics = characteristics
        self.maneuverability = characteristics.maneuverability

        system = FuzzySystem("Navigation Controller")
        system.add_input(distance_variable())
        system.add_input(angular_error_variable())
        system.add_input(relative_velocity_variable())
        system.set_output(angular_adjustment_variable(self.maneuverability))
        for rule in build_rules():
            system.add_rule(rule)
        self.system = system

    @property
    def input_variables(self) -> list[LinguisticVariable]:
        return self.system.input_variables

    @property
    def output_variable(self) -> LinguisticVariable:
        return self.system.output_variable

    def compute_control(self, distance_to_target: float, angular_error: float,
                        relative_velocity: float) -> ControlOutput:
        """
        Evaluate the rule base.

        :param distance_to_target: distance to the target [units]
        :param angular_error: signed heading error [rad]
        :param relative_velocity: current speed / max speed
        :return: ControlOutput(angular_adjustment, velocity_adjustment)
        """
        _, angular_adjustment = self.system.evaluate({
            DISTANCE: distance_to_target,
            ANGULAR_ERROR: angular_error,
            RELATIVE_VELOCITY: relative_velocity,
        })
        return ControlOutput(angular_adjustment, VELOCITY_ADJUSTMENT)

    def __repr__(self) -> str:
        return (f"<NavigationController maneuverability="
                f"{math.degrees(self.maneuverability):.1f} deg/s, rules={len(self.system.rules)}>")
