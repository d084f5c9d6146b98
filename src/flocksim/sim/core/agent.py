from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict

from pygame.math import Vector2


@dataclass(slots=True)
class Boid:
    id: int
    position: Vector2
    heading: Vector2
    speed: float = 20.0
    rotation_rate: float = 3.0
    view_radius: float = 50.0
    separation_radius: float = 20.0
    # Per-rule target vectors from the last tick, only filled when debug recording is on.
    debug_targets: Dict[str, Vector2] = field(default_factory=dict)
