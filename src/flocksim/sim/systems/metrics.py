from __future__ import annotations

from ..types.metrics import TickMetrics
from .flocking import RuleStats


def create_metrics(
    tick: int,
    population: int,
    spawned: int,
    separation: RuleStats,
    alignment: RuleStats,
    cohesion: RuleStats,
    manual_steered: int,
    wrapped: int,
    duration_ms: float,
) -> TickMetrics:
    return TickMetrics(
        tick=tick,
        population=population,
        spawned=spawned,
        neighbor_checks=separation.neighbor_checks + alignment.neighbor_checks + cohesion.neighbor_checks,
        separation_steered=separation.steered,
        alignment_steered=alignment.steered,
        cohesion_steered=cohesion.steered,
        manual_steered=manual_steered,
        wrapped=wrapped,
        tick_duration_ms=duration_ms,
    )


def skipped_metrics(tick: int, population: int, spawned: int) -> TickMetrics:
    return TickMetrics(
        tick=tick,
        population=population,
        spawned=spawned,
        neighbor_checks=0,
        separation_steered=0,
        alignment_steered=0,
        cohesion_steered=0,
        manual_steered=0,
        wrapped=0,
        skipped=True,
    )
