"""
geometry.py
-----------

Planar geometry helpers for navigation.

Angles are in radians, 0 = east, pi/2 = north, positive counter-clockwise.

The non-obvious part is compute_angular_error_with_arrival(): inside
APPROACH_START units of the target the vehicle steers at an approach point
placed behind the target along the required arrival direction, at a distance

    offset = MAX_OFFSET * (distance / APPROACH_START) ** 1.5

The offset shrinks to 0 together with the distance, which bends the path
gradually so that the heading matches the arrival angle on reaching the
target instead of turning sharply at the last moment.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

APPROACH_START = 120.0
MAX_OFFSET = 100.0
APPROACH_EXPONENT = 1.5


@dataclass(frozen=True)
class Point:
    x: float
    y: float


def euclidean_distance(p1: Point, p2: Point) -> float:
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def normalize_angle(angle: float) -> float:
    """Wrap an angle into [-pi, pi]."""
    if -math.pi <= angle <= math.pi:
        return angle
    wrapped = math.fmod(angle + math.pi, 2.0 * math.pi)
    if wrapped < 0.0:
        wrapped += 2.0 * math.pi
    return wrapped - math.pi


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def compute_angular_error(position: Point, heading: float, aim: Point) -> float:
    """
    Signed heading error towards `aim`, wrapped to [-pi, pi].

    Positive means the aim point lies counter-clockwise of the heading.
    """
    desired = math.atan2(aim.y - position.y, aim.x - position.x)
    return normalize_angle(desired - heading)


def approach_point(target: Point, required_angle: float, distance: float) -> Point:
    """
    Aim point used during the final approach.

    Displaced from the target opposite to the arrival direction; coincides
    with the target at distance 0.
    """
    ratio = distance / APPROACH_START
    offset = MAX_OFFSET * ratio ** APPROACH_EXPONENT
    return Point(
        target.x - offset * math.cos(required_angle),
        target.y - offset * math.sin(required_angle),
    )


def compute_angular_error_with_arrival(position: Point, heading: float,
                                       target: Point, required_angle: float,
                                       distance: float) -> float:
    """
    Angular error with arrival-angle bias.

    :param position: current vehicle position
    :param heading: current heading [rad]
    :param target: target position
    :param required_angle: required arrival heading [rad]
    :param distance: current distance to the target
    :return: signed error in [-pi, pi]
    """
    if distance > APPROACH_START:
        return compute_angular_error(position, heading, target)
    aim = approach_point(target, required_angle, distance)
    return compute_angular_error(position, heading, aim)
