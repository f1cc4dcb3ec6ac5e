"""
api.py
------

HTTP interface of the navigation simulator (Flask).

    GET  /               - health check
    GET  /health         - health check
    POST /api/simulate   - run one simulation per vehicle type
    POST /api/benchmark  - run a benchmark and return aggregate statistics

Request bodies are JSON objects; every field is optional and falls back to
the application config. Invalid input gives HTTP 400, anything else that
goes wrong HTTP 500, both as {"error": ..., "details": ...}.
"""

from __future__ import annotations

import logging
from dataclasses import asdict

from flask import Flask, jsonify, request

from benchmark import run_benchmark
from config import AppConfig
from simulation import SimulationParams, run_vehicles, total_simulation_time
from vehicle import parse_vehicle_type
from world_map import Map

logger = logging.getLogger(__name__)

VERSION = "1.0.0"
DEFAULT_ITERATIONS = 30


# -------------------------------------------------------------------------
# Request parsing
# -------------------------------------------------------------------------

def _body() -> dict:
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("Request body must be a JSON object")
    return data


def _number(data: dict, key: str, default: float) -> float:
    value = data.get(key, default)
    if isinstance(value, bool):
        raise ValueError(f"'{key}' must be a number")
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"'{key}' must be a number") from exc


def _integer(data: dict, key: str, default: int | None) -> int | None:
    value = data.get(key, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"'{key}' must be an integer")
    try:
        return int(value)
    except ValueError as exc:
        raise ValueError(f"'{key}' must be an integer") from exc


def _vehicle_types(data: dict, default: list[str]):
    names = data.get("vehicle_types", default)
    if not isinstance(names, list):
        raise ValueError("'vehicle_types' must be a list")
    if not names:
        raise ValueError("At least one vehicle type must be specified")
    return [parse_vehicle_type(name) for name in names]


def _error(status: int, error: str, details: str):
    return jsonify({"error": error, "details": details}), status


# -------------------------------------------------------------------------
# Application
# -------------------------------------------------------------------------

def create_app(config: AppConfig | None = None) -> Flask:
    cfg = config if config is not None else AppConfig()

    app = Flask(__name__)
    app.config["SIMULATOR"] = cfg

    @app.route("/")
    @app.route("/health")
    def health():
        return jsonify({
            "status": "healthy",
            "version": VERSION,
            "message": "Fuzzy navigation simulation API is running",
        })

    @app.route("/api/simulate", methods=["POST"])
    def simulate():
        try:
            data = _body()
            vehicle_types = _vehicle_types(data, cfg.vehicle_types)
            params = SimulationParams(
                dt=_number(data, "dt", cfg.dt),
                max_time=_number(data, "max_time", cfg.max_time),
            )
            sim_map = Map.create(
                _number(data, "map_width", cfg.map_width),
                _number(data, "map_height", cfg.map_height),
                _number(data, "target_x", cfg.target_x),
                _number(data, "target_y", cfg.target_y),
            )
            seed = _integer(data, "seed", cfg.seed)
        except ValueError as e:
            return _error(400, "Bad Request", str(e))

        try:
            results = run_vehicles(sim_map, vehicle_types, params, seed=seed, workers=cfg.workers)
            arrived = sum(1 for r in results if r.metrics.success)
            logger.info("API simulate: %d/%d vehicles arrived", arrived, len(results))
            return jsonify({
                "success": True,
                "vehicles": [r.to_dict() for r in results],
                "total_simulation_time": total_simulation_time(results),
                "message": f"Simulation completed: {arrived}/{len(results)} "
                           f"vehicles arrived successfully",
            })
        except Exception as e:
            logger.exception("Simulation failed")
            return _error(500, "Internal Server Error", str(e))

    @app.route("/api/benchmark", methods=["POST"])
    def benchmark():
        try:
            data = _body()
            iterations = _integer(data, "iterations", DEFAULT_ITERATIONS)
            if iterations is None or iterations < 1:
                raise ValueError("Number of iterations must be greater than 0")
            vehicle_types = _vehicle_types(data, cfg.vehicle_types)
            threads = _integer(data, "threads", cfg.workers)
            if threads is not None and threads < 1:
                raise ValueError("'threads' must be at least 1")
            params = SimulationParams(
                dt=_number(data, "dt", cfg.dt),
                max_time=_number(data, "max_time", cfg.max_time),
            )
            seed = _integer(data, "seed", cfg.seed)
        except ValueError as e:
            return _error(400, "Bad Request", str(e))

        try:
            result = run_benchmark(iterations, vehicle_types, params,
                                   sim_map=cfg.build_map(), seed=seed, workers=threads)
            return jsonify({
                "success": True,
                "num_iterations": result.num_iterations,
                "aggregate_stats": [asdict(a) for a in result.aggregate],
                "message": f"Benchmark completed: {iterations} iterations x "
                           f"{len(vehicle_types)} vehicle types",
            })
        except Exception as e:
            logger.exception("Benchmark failed")
            return _error(500, "Internal Server Error", str(e))

    return app


if __name__ == "__main__":
    create_app().run(debug=True, use_reloader=False)
