from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True)
class TickMetrics:
    tick: int
    population: int
    spawned: int
    neighbor_checks: int
    separation_steered: int
    alignment_steered: int
    cohesion_steered: int
    manual_steered: int
    wrapped: int
    skipped: bool = False
    tick_duration_ms: float = 0.0
