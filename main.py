"""
main.py
--------

Command-line entry point of the navigation simulator.

Subcommands:
    simulate     - one run per vehicle type, JSON (+ optional CSV / PNG) output
    benchmark    - N iterations per vehicle type, aggregate statistics
    memberships  - PNG plots of a controller's membership functions
    gui          - Tk window (ui.py)
    serve        - HTTP API (api.py)

    main.py -> simulation / benchmark / export / plotting
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from dataclasses import replace

from config import AppConfig, configure_logging, load_config
from vehicle import VehicleType, parse_vehicle_type

logger = logging.getLogger(__name__)

VEHICLE_NAMES = [t.label for t in VehicleType]


def vehicle_arg(name: str) -> str:
    try:
        return parse_vehicle_type(name).label
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from e


# -------------------------------------------------------------------------
# Subcommands
# -------------------------------------------------------------------------

def cmd_simulate(args, cfg: AppConfig) -> int:
    from export import write_result_json, write_trajectory_csv
    from simulation import run_vehicles, total_simulation_time

    sim_map = cfg.build_map()
    print("\n=== Fuzzy navigation simulation ===")
    print(f"Map: {sim_map.width:.0f} x {sim_map.height:.0f}, target "
          f"({sim_map.target.position.x:.0f}, {sim_map.target.position.y:.0f})")
    print(f"Vehicles: {', '.join(cfg.vehicle_types)}\n")

    results = run_vehicles(sim_map, cfg.vehicle_types, cfg.simulation_params(),
                           seed=cfg.seed, workers=cfg.workers)

    for r in results:
        m = r.metrics
        if m.success:
            print(f"{r.vehicle_type:>10}: SUCCESS  t={m.arrival_time:7.2f}s  "
                  f"distance={m.distance_traveled:7.1f}  angle error={m.final_angle_error:5.2f} deg")
        else:
            print(f"{r.vehicle_type:>10}: TIMEOUT  final distance={m.final_distance_to_target:7.1f}  "
                  f"angle error={m.final_angle_error:6.2f} deg")

    total = total_simulation_time(results)
    write_result_json(args.output, results, total)
    print(f"\nTotal simulation time: {total:.2f}s")
    print(f"Trajectories written to {args.output}")

    if args.csv_dir:
        for r in results:
            path = os.path.join(args.csv_dir, f"trajectory_{r.vehicle_type}.csv")
            write_trajectory_csv(path, r.trajectory)
        print(f"CSV files written to {args.csv_dir}")

    if args.plot:
        from plotting import plot_trajectories, save_figure
        fig = plot_trajectories(sim_map, {r.vehicle_type: r.trajectory for r in results})
        save_figure(fig, args.plot)
        print(f"Plot written to {args.plot}")
    return 0


def cmd_benchmark(args, cfg: AppConfig) -> int:
    from benchmark import run_benchmark
    from export import write_aggregate_csv, write_benchmark_csv, write_benchmark_json

    print(f"\n=== Benchmark: {args.iterations} iterations ===")
    result = run_benchmark(args.iterations, cfg.vehicle_types, cfg.simulation_params(),
                           sim_map=cfg.build_map(), seed=cfg.seed, workers=cfg.workers)

    print(f"\n{'Vehicle':>10} | {'Success':>8} | {'Avg time':>9} | {'Std time':>9} | "
          f"{'Avg dist':>9} | {'Avg final dist':>14}")
    print("-" * 74)
    for s in result.aggregate:
        print(f"{s.vehicle_type:>10} | {s.success_rate:7.1f}% | {s.avg_arrival_time:8.2f}s | "
              f"{s.std_arrival_time:8.2f}s | {s.avg_distance_traveled:9.1f} | "
              f"{s.avg_final_distance:14.1f}")

    json_path = os.path.join(cfg.output_dir, "benchmark_results.json")
    csv_path = os.path.join(cfg.output_dir, "benchmark_runs.csv")
    summary_path = os.path.join(cfg.output_dir, f"benchmark_{args.iterations}iterations_summary.csv")
    write_benchmark_json(json_path, result)
    write_benchmark_csv(csv_path, result.runs)
    write_aggregate_csv(summary_path, result.aggregate)
    print(f"\nResults written to {json_path}, {csv_path} and {summary_path}")
    return 0


def cmd_memberships(args, cfg: AppConfig) -> int:
    from plotting import export_all_vehicle_types, export_controller_memberships

    if args.all:
        paths = export_all_vehicle_types(args.output_dir)
    else:
        paths = export_controller_memberships(args.vehicle, args.output_dir)
    for path in paths:
        print(f"Saved {path}")
    return 0


def cmd_gui(args, cfg: AppConfig) -> int:
    from ui import App

    app = App(cfg.build_map())
    app.mainloop()
    return 0


def cmd_serve(args, cfg: AppConfig) -> int:
    from api import create_app

    app = create_app(cfg)
    logger.info("Serving on %s:%d", args.host, args.port)
    app.run(host=args.host, port=args.port, debug=False, use_reloader=False)
    return 0


# -------------------------------------------------------------------------
# Argument parsing
# -------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--config", default=None, help="JSON config file")
    common.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")

    ap = argparse.ArgumentParser(description="Fuzzy-logic vehicle navigation simulator")
    sub = ap.add_subparsers(dest="command", required=True)

    sp = sub.add_parser("simulate", parents=[common], help="simulate each vehicle type once")
    sp.add_argument("--vehicles", nargs="+", default=None, type=vehicle_arg)
    sp.add_argument("--dt", type=float, default=None)
    sp.add_argument("--max-time", type=float, default=None)
    sp.add_argument("--seed", type=int, default=None)
    sp.add_argument("--workers", type=int, default=None)
    sp.add_argument("--output", default=os.path.join("output", "trajectory_multi.json"))
    sp.add_argument("--csv-dir", default=None)
    sp.add_argument("--plot", default=None, help="save a trajectory plot (PNG)")
    sp.set_defaults(func=cmd_simulate)

    bp = sub.add_parser("benchmark", parents=[common], help="repeat the simulation N times")
    bp.add_argument("iterations", nargs="?", type=int, default=30)
    bp.add_argument("--vehicles", nargs="+", default=None, type=vehicle_arg)
    bp.add_argument("--dt", type=float, default=None)
    bp.add_argument("--max-time", type=float, default=None)
    bp.add_argument("--seed", type=int, default=None)
    bp.add_argument("--workers", type=int, default=None)
    bp.add_argument("--output-dir", default=None)
    bp.set_defaults(func=cmd_benchmark)

    mp = sub.add_parser("memberships", parents=[common], help="plot controller membership functions")
    mp.add_argument("--vehicle", default="Standard", type=vehicle_arg)
    mp.add_argument("--all", action="store_true", help="plot every vehicle type")
    mp.add_argument("--output-dir", default=os.path.join("output", "memberships"))
    mp.set_defaults(func=cmd_memberships)

    gp = sub.add_parser("gui", parents=[common], help="open the Tk window")
    gp.set_defaults(func=cmd_gui)

    hp = sub.add_parser("serve", parents=[common], help="run the HTTP API")
    hp.add_argument("--host", default="127.0.0.1")
    hp.add_argument("--port", type=int, default=5000)
    hp.set_defaults(func=cmd_serve)
    return ap


def apply_overrides(cfg: AppConfig, args) -> AppConfig:
    """Command-line values take precedence over the config file."""
    overrides = {}
    for arg, key in (("vehicles", "vehicle_types"), ("dt", "dt"), ("max_time", "max_time"),
                     ("seed", "seed"), ("workers", "workers"), ("output_dir", "output_dir"),
                     ("log_level", "log_level")):
        value = getattr(args, arg, None)
        if value is not None:
            overrides[key] = value
    return replace(cfg, **overrides)


def main(argv=None) -> int:
    ap = build_parser()
    args = ap.parse_args(argv)

    if getattr(args, "iterations", 1) < 1:
        ap.error("iterations must be greater than 0")

    try:
        cfg = apply_overrides(load_config(args.config), args)
    except (OSError, ValueError) as e:
        ap.error(str(e))

    configure_logging(cfg.log_level)
    return args.func(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
