from __future__ import annotations

import math
from typing import Iterable

from pygame.math import Vector2

from ..core.agent import Boid
from ..core.errors import FlockInvariantError
from ..utils.math2d import _is_degenerate


def integrate(boid: Boid, delta_time: float) -> None:
    if _is_degenerate(boid.heading):
        raise FlockInvariantError(f"boid {boid.id} has a zero heading")
    boid.position += boid.heading.normalize() * (boid.speed * delta_time)


def wrap_position(position: Vector2, width: float, height: float) -> bool:
    """Teleport ``position`` to the opposite edge on each axis it has left.

    Coordinates are kept in the half-open range ``[0, width)``: a coordinate
    on or past the far edge goes to 0, and one below 0 goes to the largest
    float under the far edge. Wrapping a wrapped position is a no-op. Axes
    wrap independently. Returns True when either axis moved.
    """
    wrapped = False
    if position.x < 0.0:
        position.x = math.nextafter(width, 0.0)
        wrapped = True
    elif position.x >= width:
        position.x = 0.0
        wrapped = True
    if position.y < 0.0:
        position.y = math.nextafter(height, 0.0)
        wrapped = True
    elif position.y >= height:
        position.y = 0.0
        wrapped = True
    return wrapped


def apply_motion(boids: Iterable[Boid], delta_time: float, width: float, height: float) -> int:
    wrapped = 0
    for boid in boids:
        integrate(boid, delta_time)
        if wrap_position(boid.position, width, height):
            wrapped += 1
    return wrapped
