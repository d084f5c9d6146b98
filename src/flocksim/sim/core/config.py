from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from pathlib import Path

import yaml

logger = logging.getLogger(__name__)


@dataclass
class BoidConfig:
    speed: float = 20.0
    rotation_rate: float = 3.0
    view_radius: float = 50.0
    separation_radius: float = 20.0


@dataclass
class SteeringConfig:
    # A weight of zero (or less) switches the rule off entirely.
    cohesion_weight: float = 0.1
    alignment_weight: float = 0.15
    separation_weight: float = 0.2
    manual_weight: float = 1.0


@dataclass
class SimulationConfig:
    time_step: float = 1.0 / 60.0
    world_width: float = 800.0
    world_height: float = 600.0
    cell_size: float = 50.0
    seed: int = 42
    initial_population: int = 0
    max_population: int = 2000
    record_debug_targets: bool = False
    config_version: str = "v1"
    boid: BoidConfig = field(default_factory=BoidConfig)
    steering: SteeringConfig = field(default_factory=SteeringConfig)

    @staticmethod
    def from_yaml(path: Path) -> "SimulationConfig":
        data = yaml.safe_load(Path(path).read_text()) or {}
        config = load_config(data)
        logger.info("Loaded simulation config %s from %s", config.config_version, path)
        return config

    def validate(self) -> "SimulationConfig":
        for name in ("world_width", "world_height", "cell_size"):
            value = getattr(self, name)
            if not math.isfinite(value) or value <= 0:
                raise ValueError(f"{name} must be a positive finite number, got {value!r}")
        if not math.isfinite(self.time_step) or self.time_step <= 0:
            raise ValueError(f"time_step must be a positive finite number, got {self.time_step!r}")
        if self.initial_population < 0:
            raise ValueError(f"initial_population must not be negative, got {self.initial_population}")
        if self.max_population < self.initial_population:
            raise ValueError("max_population must be at least initial_population")
        for name, value in vars(self.boid).items():
            if not math.isfinite(value):
                raise ValueError(f"boid.{name} must be finite, got {value!r}")
        boid = self.boid
        if boid.speed < 0:
            raise ValueError(f"boid.speed must not be negative, got {boid.speed}")
        if boid.rotation_rate < 0:
            raise ValueError(f"boid.rotation_rate must not be negative, got {boid.rotation_rate}")
        if boid.view_radius <= 0 or boid.separation_radius <= 0:
            raise ValueError("boid.view_radius and boid.separation_radius must be positive")
        for name, value in vars(self.steering).items():
            if not math.isfinite(value) or value < 0:
                raise ValueError(f"steering.{name} must be a non-negative finite number, got {value!r}")
        return self


@dataclass
class AppConfig:
    simulation: SimulationConfig = field(default_factory=SimulationConfig)
    broadcast_interval: int = 2


def load_config(raw: dict) -> SimulationConfig:
    boid = BoidConfig(**raw.get("boid", {}))
    steering = SteeringConfig(**raw.get("steering", {}))
    sim_values = {k: v for k, v in raw.items() if k not in {"boid", "steering"}}
    config = SimulationConfig(boid=boid, steering=steering, **sim_values)
    return config.validate()
