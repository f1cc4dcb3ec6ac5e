"""
ui.py
------

Graphical interface of the navigation simulator.

Uses:
- Tkinter as the GUI framework,
- Matplotlib (FigureCanvasTkAgg) for the trajectory view.

The window lets the user:
- pick the vehicle types to simulate,
- set the time step, the timeout and an optional seed (or draw a new one),
- run the simulations (simulation.run_vehicles),
- replay the runs: a time slider and a play / pause button move every
  vehicle along its path, next to distance-to-target and heading plots,
- see each vehicle's state at the shown time.

Input -> UI -> simulation.py -> results -> plot.
"""

from __future__ import annotations

import logging
import random
import tkinter as tk
from tkinter import ttk, messagebox

import matplotlib
matplotlib.use("TkAgg")
from matplotlib.figure import Figure
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg

from plotting import draw_positions, draw_time_series, draw_trajectories, end_time, state_at
from simulation import SimulationParams, run_vehicles
from vehicle import VehicleType
from world_map import Map, default_map

logger = logging.getLogger(__name__)

FRAME_INTERVAL_MS = 50
PLAYBACK_SPEED = 10.0       # simulated seconds per wall-clock second


class App(tk.Tk):
    """
    Main GUI window.

    Builds the control panel, the plot area and the playback bar and
    handles the "Run simulation" button.
    """

    def __init__(self, sim_map: Map | None = None) -> None:
        super().__init__()

        self.title("Fuzzy Navigation Simulator")
        self.geometry("1200x850")
        self.configure(background="#f1f1f1")

        self.sim_map = sim_map if sim_map is not None else default_map()

        self.default_dt = 0.05
        self.default_max_time = 600.0

        self.trajectories = {}
        self.position_artists = []
        self.cursors = []
        self.playing = False
        self._after_id = None

        self._build_controls()
        self._build_figure()
        self._build_playback()

    # ---------------------------------------------------------------------

    def _build_controls(self):
        frame = ttk.Frame(self)
        frame.pack(side=tk.TOP, fill=tk.X, pady=10)

        ttk.Label(frame, text="Vehicles:").grid(row=0, column=0, padx=5)
        self.vehicle_vars: dict[VehicleType, tk.BooleanVar] = {}
        for col, vehicle_type in enumerate(VehicleType, start=1):
            var = tk.BooleanVar(value=vehicle_type is not VehicleType.ULTRA_AGILE)
            ttk.Checkbutton(frame, text=vehicle_type.label, variable=var).grid(
                row=0, column=col, padx=5)
            self.vehicle_vars[vehicle_type] = var

        ttk.Label(frame, text="dt [s]:").grid(row=1, column=0, padx=5)
        self.entry_dt = ttk.Entry(frame, width=10)
        self.entry_dt.insert(0, str(self.default_dt))
        self.entry_dt.grid(row=1, column=1, padx=5)

        ttk.Label(frame, text="Max time [s]:").grid(row=1, column=2, padx=5)
        self.entry_time = ttk.Entry(frame, width=10)
        self.entry_time.insert(0, str(self.default_max_time))
        self.entry_time.grid(row=1, column=3, padx=5)

        ttk.Label(frame, text="Seed:").grid(row=1, column=4, padx=5)
        self.entry_seed = ttk.Entry(frame, width=10)
        self.entry_seed.grid(row=1, column=5, padx=5)

        btn = ttk.Button(frame, text="Run simulation", command=self.run_simulation)
        btn.grid(row=0, column=6, rowspan=2, padx=20)

        btn = ttk.Button(frame, text="Randomize", command=self.randomize)
        btn.grid(row=0, column=7, rowspan=2, padx=5)

        self.summary = tk.StringVar(value="")
        ttk.Label(self, textvariable=self.summary, justify=tk.LEFT).pack(side=tk.TOP, fill=tk.X, padx=10)

    # ---------------------------------------------------------------------

    def _build_figure(self):
        frame = ttk.Frame(self)
        frame.pack(side=tk.TOP, fill=tk.BOTH, expand=True, pady=10)

        # map on the left, time series stacked on the right
        self.figure = Figure(figsize=(11, 6), dpi=100)
        grid = self.figure.add_gridspec(2, 3)
        self.ax = self.figure.add_subplot(grid[:, :2])
        self.ax_distance = self.figure.add_subplot(grid[0, 2])
        self.ax_heading = self.figure.add_subplot(grid[1, 2], sharex=self.ax_distance)
        draw_trajectories(self.ax, self.sim_map, {})
        draw_time_series(self.ax_distance, self.ax_heading, {})
        self.figure.tight_layout()

        self.canvas = FigureCanvasTkAgg(self.figure, master=frame)
        self.canvas.get_tk_widget().pack(fill=tk.BOTH, expand=True)

    def _build_playback(self):
        frame = ttk.Frame(self)
        frame.pack(side=tk.TOP, fill=tk.X, padx=10, pady=5)

        self.play_button = ttk.Button(frame, text="Play", command=self.toggle_play)
        self.play_button.pack(side=tk.LEFT, padx=5)

        self.time_var = tk.DoubleVar(value=0.0)
        self.scale = ttk.Scale(frame, from_=0.0, to=0.0, orient=tk.HORIZONTAL,
                               variable=self.time_var, command=self._on_scale)
        self.scale.pack(side=tk.LEFT, fill=tk.X, expand=True, padx=5)

        self.time_label = tk.StringVar(value="t = 0.00 s")
        ttk.Label(frame, textvariable=self.time_label, width=14).pack(side=tk.LEFT, padx=5)

        self.state_text = tk.StringVar(value="")
        ttk.Label(self, textvariable=self.state_text, justify=tk.LEFT,
                  font=("TkFixedFont", 9)).pack(side=tk.TOP, fill=tk.X, padx=10, pady=(0, 10))

    # ---------------------------------------------------------------------

    def selected_vehicles(self) -> list[VehicleType]:
        return [t for t, var in self.vehicle_vars.items() if var.get()]

    def randomize(self):
        """Put a fresh seed in the seed field and rerun."""
        self.entry_seed.delete(0, tk.END)
        self.entry_seed.insert(0, str(random.randrange(2 ** 31)))
        self.run_simulation()

    def run_simulation(self):
        """
        Read the user's input, simulate the selected vehicles and draw
        their trajectories.
        """
        try:
            seed_text = self.entry_seed.get().strip()
            params = SimulationParams(
                dt=float(self.entry_dt.get()),
                max_time=float(self.entry_time.get()),
            )
            seed = int(seed_text) if seed_text else None
        except ValueError as exc:
            messagebox.showerror("Error", f"Invalid input: {exc}")
            return

        vehicle_types = self.selected_vehicles()
        if not vehicle_types:
            messagebox.showerror("Error", "Select at least one vehicle.")
            return

        self.pause()
        results = run_vehicles(self.sim_map, vehicle_types, params, seed=seed)
        self.trajectories = {r.vehicle_type: r.trajectory for r in results}

        draw_trajectories(self.ax, self.sim_map, self.trajectories)
        self.ax.set_title("Vehicle trajectories")
        draw_time_series(self.ax_distance, self.ax_heading, self.trajectories)
        self.cursors = [ax.axvline(0.0, color="black", linestyle="--", linewidth=1)
                        for ax in (self.ax_distance, self.ax_heading)]
        self.position_artists = []

        lines = []
        for r in results:
            m = r.metrics
            if m.success:
                lines.append(f"{r.vehicle_type}: arrived in {m.arrival_time:.2f}s, "
                             f"{m.distance_traveled:.1f} units")
            else:
                lines.append(f"{r.vehicle_type}: timeout, {m.final_distance_to_target:.1f} "
                             f"units from target")
        self.summary.set("\n".join(lines))

        self.scale.configure(to=end_time(self.trajectories))
        self.show_time(0.0)

    # ---------------------------------------------------------------------
    # Playback
    # ---------------------------------------------------------------------

    def show_time(self, t: float):
        """Move every vehicle marker and the time cursors to time `t`."""
        t = min(max(t, 0.0), end_time(self.trajectories))
        self.time_var.set(t)
        self.time_label.set(f"t = {t:.2f} s")

        for artist in self.position_artists:
            artist.remove()
        self.position_artists = draw_positions(self.ax, self.trajectories, t)
        for cursor in self.cursors:
            cursor.set_xdata([t, t])

        lines = []
        for name, points in self.trajectories.items():
            p = state_at(points, t)
            if p is not None:
                lines.append(f"{name:>10}: x={p.x:7.1f}  y={p.y:7.1f}  heading={p.angle:7.1f} deg  "
                             f"v={p.velocity:5.2f}  distance={p.distance_to_target:7.1f}")
        self.state_text.set("\n".join(lines))

        self.canvas.draw_idle()

    def _on_scale(self, value):
        self.show_time(float(value))

    def toggle_play(self):
        if self.playing:
            self.pause()
        elif self.trajectories:
            if self.time_var.get() >= end_time(self.trajectories):
                self.show_time(0.0)
            self.playing = True
            self.play_button.configure(text="Pause")
            self._after_id = self.after(FRAME_INTERVAL_MS, self._tick)

    def pause(self):
        self.playing = False
        if self._after_id is not None:
            self.after_cancel(self._after_id)
            self._after_id = None
        self.play_button.configure(text="Play")

    def _tick(self):
        self._after_id = None
        t = self.time_var.get() + PLAYBACK_SPEED * FRAME_INTERVAL_MS / 1000.0
        self.show_time(t)
        if t >= end_time(self.trajectories):
            self.pause()
        else:
            self._after_id = self.after(FRAME_INTERVAL_MS, self._tick)


if __name__ == "__main__":
    app = App()
    app.mainloop()
