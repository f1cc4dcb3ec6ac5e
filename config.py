"""
config.py
---------

Application configuration and logging setup.

Defaults live in the AppConfig dataclass (mirrored in DEFAULT_CONFIG); a
JSON file may override any subset of its keys:

    {
        "dt": 0.05,
        "max_time": 600.0,
        "map_width": 1000.0,
        "map_height": 800.0,
        "target_x": 500.0,
        "target_y": 700.0,
        "vehicle_types": ["Heavy", "Standard", "Agile"],
        "seed": null,
        "workers": null,
        "output_dir": "output",
        "log_level": "INFO"
    }
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field, fields
from typing import Any

from simulation import SimulationParams
from vehicle import parse_vehicle_type
from world_map import Map

LOG_FORMAT = "[%(levelname)s %(asctime)s %(name)s] %(message)s"
LOG_DATEFMT = "%m-%d %H:%M:%S"


@dataclass
class AppConfig:
    dt: float = 0.05
    max_time: float = 600.0
    map_width: float = 1000.0
    map_height: float = 800.0
    target_x: float = 500.0
    target_y: float = 700.0
    vehicle_types: list[str] = field(default_factory=lambda: ["Heavy", "Standard", "Agile"])
    seed: int | None = None
    workers: int | None = None
    output_dir: str = "output"
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        for name in ("dt", "max_time", "map_width", "map_height", "target_x", "target_y"):
            try:
                setattr(self, name, float(getattr(self, name)))
            except (TypeError, ValueError) as exc:
                raise ValueError(f"Config value '{name}' must be a number") from exc
        self.vehicle_types = [parse_vehicle_type(t).label for t in self.vehicle_types]
        if not isinstance(logging.getLevelName(self.log_level.upper()), int):
            raise ValueError(f"Unknown log level: {self.log_level}")
        if self.workers is not None and self.workers < 1:
            raise ValueError(f"workers must be at least 1, got {self.workers}")
        # both raise ValueError on invalid values
        self.simulation_params()
        self.build_map()

    def simulation_params(self) -> SimulationParams:
        return SimulationParams(dt=self.dt, max_time=self.max_time)

    def build_map(self) -> Map:
        return Map.create(self.map_width, self.map_height, self.target_x, self.target_y)


DEFAULT_CONFIG: dict[str, Any] = asdict(AppConfig())


def load_config(path: str | None) -> AppConfig:
    """
    Load configuration from a JSON file; defaults when path is None.

    :raises ValueError: on unknown keys or invalid values
    :raises FileNotFoundError: if the file does not exist
    """
    if not path:
        return AppConfig()

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"{path}: expected a JSON object")

    known = {f.name for f in fields(AppConfig)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise ValueError(f"{path}: unknown config keys {unknown}")
    return AppConfig(**data)


def save_config(path: str, cfg: AppConfig) -> None:
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(asdict(cfg), f, indent=2)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT, datefmt=LOG_DATEFMT)
