"""
plotting.py
-----------

Matplotlib figures for the navigation simulator.

- plot_trajectories(...)       - vehicle paths over the map, start points,
                                 target and required arrival direction,
- plot_membership_functions(.) - all fuzzy sets of one linguistic variable,
- export_controller_memberships(...) - PNG per controller variable,
- state_at / draw_positions / draw_time_series - playback of a run at
                                 time t (ui.py).

Figures are built as matplotlib.figure.Figure objects, so they can be
saved from scripts (Agg) or embedded in the Tk window (ui.py).
"""

from __future__ import annotations

import bisect
import logging
import math
import os

import numpy as np
from matplotlib.figure import Figure
from matplotlib.patches import Rectangle

from fuzzy_controller import NavigationController
from fuzzy_system import LinguisticVariable
from simulation import TrajectoryPoint
from vehicle import VehicleType, create_vehicle_preset, parse_vehicle_type
from world_map import Map

logger = logging.getLogger(__name__)

VEHICLE_COLORS = {
    "Heavy": "tab:red",
    "Standard": "tab:blue",
    "Agile": "tab:green",
    "UltraAgile": "tab:purple",
}

ARROW_LENGTH = 60.0


def draw_trajectories(ax, sim_map: Map, trajectories: dict[str, list[TrajectoryPoint]]) -> None:
    """Draw the map, target and each trajectory onto an existing axes."""
    ax.clear()

    zone_h = sim_map.height * sim_map.start_zone.height_fraction
    ax.add_patch(Rectangle((0.0, 0.0), sim_map.width, zone_h, alpha=0.15, color="grey"))
    ax.plot([0, sim_map.width, sim_map.width, 0, 0],
            [0, 0, sim_map.height, sim_map.height, 0], color="black", linewidth=1)

    target = sim_map.target
    tx, ty = target.position.x, target.position.y
    ax.plot(tx, ty, marker="*", markersize=14, color="gold",
            markeredgecolor="black", label="Target")
    ax.annotate(
        "", xy=(tx + ARROW_LENGTH * math.cos(target.required_angle),
                ty + ARROW_LENGTH * math.sin(target.required_angle)),
        xytext=(tx, ty), arrowprops={"arrowstyle": "->", "color": "black"},
    )

    for name, points in trajectories.items():
        if not points:
            continue
        xs = [p.x for p in points]
        ys = [p.y for p in points]
        color = VEHICLE_COLORS.get(name)
        ax.plot(xs, ys, color=color, linewidth=1.5, label=name)
        ax.plot(xs[0], ys[0], marker="o", color=color)

    ax.set_xlim(0, sim_map.width)
    ax.set_ylim(0, sim_map.height)
    ax.set_aspect("equal")
    ax.set_xlabel("x")
    ax.set_ylabel("y")
    ax.grid(True)
    ax.legend(loc="lower right")


def plot_trajectories(sim_map: Map, trajectories: dict[str, list[TrajectoryPoint]],
                      title: str = "Vehicle trajectories") -> Figure:
    fig = Figure(figsize=(10, 8), dpi=100)
    ax = fig.add_subplot(111)
    draw_trajectories(ax, sim_map, trajectories)
    ax.set_title(title)
    return fig


# -------------------------------------------------------------------------
# Playback
# -------------------------------------------------------------------------

def state_at(trajectory: list[TrajectoryPoint], t: float) -> TrajectoryPoint | None:
    """Last recorded point at or before `t`; the first point before the run starts."""
    if not trajectory:
        return None
    i = bisect.bisect_right([p.t for p in trajectory], t)
    return trajectory[max(i - 1, 0)]


def end_time(trajectories: dict[str, list[TrajectoryPoint]]) -> float:
    return max((points[-1].t for points in trajectories.values() if points), default=0.0)


def draw_positions(ax, trajectories: dict[str, list[TrajectoryPoint]], t: float) -> list:
    """
    Mark every vehicle at time `t` with a dot and a heading tick.

    :return: the created artists, so the caller can remove them before
             drawing the next frame
    """
    artists = []
    for name, points in trajectories.items():
        p = state_at(points, t)
        if p is None:
            continue
        color = VEHICLE_COLORS.get(name)
        heading = math.radians(p.angle)
        artists += ax.plot(p.x, p.y, marker="o", markersize=9, color=color,
                           markeredgecolor="black")
        artists += ax.plot([p.x, p.x + 0.5 * ARROW_LENGTH * math.cos(heading)],
                           [p.y, p.y + 0.5 * ARROW_LENGTH * math.sin(heading)],
                           color=color, linewidth=2)
    return artists


def draw_time_series(ax_distance, ax_heading, trajectories: dict[str, list[TrajectoryPoint]],
                     t: float | None = None) -> None:
    """Distance to target and heading over time, with a marker line at `t`."""
    for ax in (ax_distance, ax_heading):
        ax.clear()
        ax.grid(True)

    for name, points in trajectories.items():
        if not points:
            continue
        ts = [p.t for p in points]
        color = VEHICLE_COLORS.get(name)
        ax_distance.plot(ts, [p.distance_to_target for p in points], color=color, label=name)
        ax_heading.plot(ts, [p.angle for p in points], color=color, label=name)

    ax_distance.set_ylabel("distance")
    ax_heading.set_ylabel("heading [deg]")
    ax_heading.set_xlabel("t [s]")
    if t is not None:
        for ax in (ax_distance, ax_heading):
            ax.axvline(t, color="black", linestyle="--", linewidth=1)


# -------------------------------------------------------------------------
# Membership functions
# -------------------------------------------------------------------------

def plot_membership_functions(variable: LinguisticVariable, steps: int = 500,
                              scale: float = 1.0, unit: str = "") -> Figure:
    """
    Plot every fuzzy set of `variable` over its range.

    :param scale: factor applied to the x axis only (e.g. rad -> deg)
    :param unit: x axis unit label
    """
    fig = Figure(figsize=(8, 4), dpi=100)
    ax = fig.add_subplot(111)

    xs = variable.universe(steps)
    for fuzzy_set in variable.fuzzy_sets:
        ax.plot(xs * scale, np.asarray(fuzzy_set.evaluate(xs)), label=fuzzy_set.name)

    label = variable.name if not unit else f"{variable.name} [{unit}]"
    ax.set_xlabel(label)
    ax.set_ylabel("membership")
    ax.set_ylim(-0.05, 1.05)
    ax.set_title(variable.name)
    ax.grid(True)
    ax.legend()
    return fig


def export_controller_memberships(vehicle_type, output_dir: str) -> list[str]:
    """
    Save one PNG per linguistic variable of the vehicle's controller.

    Angular variables are drawn in degrees.

    :return: paths of the written files
    """
    vehicle_type = parse_vehicle_type(vehicle_type)
    controller = NavigationController(create_vehicle_preset(vehicle_type))
    os.makedirs(output_dir, exist_ok=True)

    paths = []
    for variable in controller.input_variables + [controller.output_variable]:
        angular = variable.name.startswith("angular")
        fig = plot_membership_functions(
            variable,
            scale=math.degrees(1.0) if angular else 1.0,
            unit="deg" if angular else "",
        )
        fig.suptitle(vehicle_type.label)
        path = os.path.join(output_dir, f"{vehicle_type.label}_{variable.name}.png")
        fig.savefig(path)
        paths.append(path)
        logger.info("Saved %s", path)
    return paths


def export_all_vehicle_types(output_dir: str) -> list[str]:
    """Membership PNGs for every vehicle preset, one set of files per type."""
    paths = []
    for vehicle_type in VehicleType:
        paths += export_controller_memberships(vehicle_type, output_dir)
    return paths


def save_figure(fig: Figure, path: str, dpi: int | None = None) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    fig.savefig(path, dpi=dpi)
