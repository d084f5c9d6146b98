from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence

from pygame.math import Vector2

from ..core.agent import Boid
from ..core.errors import FlockInvariantError
from ..core.spatial_grid import Entry, SpatialGrid
from ..utils.math2d import _is_degenerate
from .steering import blend, steering_strength


@dataclass(slots=True)
class RuleStats:
    steered: int = 0
    neighbor_checks: int = 0


def snapshot_headings(boids: Sequence[Boid]) -> Dict[int, Vector2]:
    return {boid.id: Vector2(boid.heading) for boid in boids}


def neighbors_of(grid: SpatialGrid, boid: Boid, radius: float) -> List[Entry]:
    # The grid hands the querying boid back to us; drop it by id, not by count.
    return [entry for entry in grid.query_within(boid.position, radius) if entry[1] != boid.id]


def cohesion_target(boid: Boid, neighbors: Sequence[Entry]) -> Vector2 | None:
    if not neighbors:
        return None
    sum_x = 0.0
    sum_y = 0.0
    for position, _ in neighbors:
        sum_x += position.x
        sum_y += position.y
    count = len(neighbors)
    target = Vector2(sum_x / count - boid.position.x, sum_y / count - boid.position.y)
    if _is_degenerate(target):
        return None
    return target


def alignment_target(neighbors: Sequence[Entry], headings: Dict[int, Vector2]) -> Vector2 | None:
    if not neighbors:
        return None
    sum_x = 0.0
    sum_y = 0.0
    for _, other_id in neighbors:
        try:
            heading = headings[other_id]
        except KeyError:
            raise FlockInvariantError(
                f"boid {other_id} is in the spatial grid but missing from the heading snapshot"
            ) from None
        sum_x += heading.x
        sum_y += heading.y
    count = len(neighbors)
    target = Vector2(sum_x / count, sum_y / count)
    if _is_degenerate(target):
        return None
    return target


def separation_target(boid: Boid, neighbors: Sequence[Entry]) -> Vector2 | None:
    if not neighbors:
        return None
    sum_x = 0.0
    sum_y = 0.0
    for position, _ in neighbors:
        sum_x += position.x - boid.position.x
        sum_y += position.y - boid.position.y
    count = len(neighbors)
    target = Vector2(-sum_x / count, -sum_y / count)
    if _is_degenerate(target):
        return None
    return target.normalize()


def _apply_rule(
    name: str,
    boids: Sequence[Boid],
    radius_of: Callable[[Boid], float],
    target_of: Callable[[Boid, List[Entry]], Vector2 | None],
    grid: SpatialGrid,
    delta_time: float,
    weight: float,
    record_debug: bool,
) -> RuleStats:
    stats = RuleStats()
    if weight <= 0.0:
        return stats
    # Targets come from the grid and the heading snapshot only, so computing them
    # all before writing any heading back keeps the rule independent of boid order.
    pending: List[tuple[Boid, Vector2]] = []
    for boid in boids:
        neighbors = neighbors_of(grid, boid, radius_of(boid))
        stats.neighbor_checks += len(neighbors)
        target = target_of(boid, neighbors)
        if target is not None:
            pending.append((boid, target))

    for boid, target in pending:
        strength = steering_strength(boid.rotation_rate, delta_time, weight)
        boid.heading = blend(boid.heading, target, strength)
        if record_debug:
            boid.debug_targets[name] = target
    stats.steered = len(pending)
    return stats


def apply_separation(
    boids: Sequence[Boid], grid: SpatialGrid, delta_time: float, weight: float, record_debug: bool = False
) -> RuleStats:
    return _apply_rule(
        "separation",
        boids,
        lambda boid: boid.separation_radius,
        separation_target,
        grid,
        delta_time,
        weight,
        record_debug,
    )


def apply_alignment(
    boids: Sequence[Boid],
    grid: SpatialGrid,
    headings: Dict[int, Vector2],
    delta_time: float,
    weight: float,
    record_debug: bool = False,
) -> RuleStats:
    return _apply_rule(
        "alignment",
        boids,
        lambda boid: boid.view_radius,
        lambda _boid, neighbors: alignment_target(neighbors, headings),
        grid,
        delta_time,
        weight,
        record_debug,
    )


def apply_cohesion(
    boids: Sequence[Boid], grid: SpatialGrid, delta_time: float, weight: float, record_debug: bool = False
) -> RuleStats:
    return _apply_rule(
        "cohesion",
        boids,
        lambda boid: boid.view_radius,
        cohesion_target,
        grid,
        delta_time,
        weight,
        record_debug,
    )
