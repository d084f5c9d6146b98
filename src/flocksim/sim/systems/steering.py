from __future__ import annotations

import logging
from typing import Iterable, Mapping, Union

from pygame.math import Vector2

from ..core.agent import Boid
from ..types.steer import SteerInput
from ..utils.math2d import _clamp_value, _is_degenerate, _perpendicular_left, _perpendicular_right, _safe_normalize

logger = logging.getLogger(__name__)

SteerSignal = Union[SteerInput, Mapping[int, SteerInput]]


def steering_strength(rotation_rate: float, delta_time: float, weight: float) -> float:
    return _clamp_value(rotation_rate * delta_time * weight, 0.0, 1.0)


def blend(current_heading: Vector2, target: Vector2, strength: float) -> Vector2:
    """Turn ``current_heading`` toward ``target`` by ``strength`` and return a unit vector.

    The target is normalized first, so only its direction matters. Callers are
    expected to skip the call when they have no usable target; a zero target, or
    a blend that cancels out (target exactly opposite at strength 0.5), leaves the
    heading where it was instead of producing a zero vector.
    """
    target_unit = _safe_normalize(target)
    if _is_degenerate(target_unit):
        logger.debug("Ignoring blend toward a zero target")
        return Vector2(current_heading)
    strength = _clamp_value(strength, 0.0, 1.0)
    mixed = current_heading.lerp(target_unit, strength)
    if _is_degenerate(mixed):
        logger.debug("Blend of %s toward %s cancelled out; keeping heading", current_heading, target_unit)
        return Vector2(current_heading)
    return mixed.normalize()


def manual_target(heading: Vector2, steer: SteerInput) -> Vector2 | None:
    if steer is SteerInput.LEFT:
        return _perpendicular_left(heading)
    if steer is SteerInput.RIGHT:
        return _perpendicular_right(heading)
    return None


def apply_manual_steering(
    boids: Iterable[Boid],
    steer: SteerSignal,
    delta_time: float,
    weight: float,
    record_debug: bool = False,
) -> int:
    """Nudge headings sideways from a decoded steer signal.

    ``steer`` is either one signal broadcast to every boid or a per-boid mapping;
    boids missing from the mapping get ``SteerInput.NONE``. Returns how many
    boids were turned.
    """
    if weight <= 0.0:
        return 0
    per_boid = isinstance(steer, Mapping)
    steered = 0
    for boid in boids:
        signal = steer.get(boid.id, SteerInput.NONE) if per_boid else steer
        target = manual_target(boid.heading, signal)
        if target is None:
            continue
        strength = steering_strength(boid.rotation_rate, delta_time, weight)
        boid.heading = blend(boid.heading, target, strength)
        if record_debug:
            boid.debug_targets["manual"] = target
        steered += 1
    return steered
