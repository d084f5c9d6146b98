from __future__ import annotations

import math

from pygame.math import Vector2

UP = Vector2(0.0, 1.0)

_EPSILON_SQ = 1e-10


def _safe_normalize(vector: Vector2) -> Vector2:
    return _safe_normalize_xy(vector.x, vector.y)


def _safe_normalize_xy(x: float, y: float) -> Vector2:
    magnitude_sq = x * x + y * y
    if magnitude_sq < _EPSILON_SQ:
        return Vector2()
    inv = 1.0 / math.sqrt(magnitude_sq)
    return Vector2(x * inv, y * inv)


def _is_degenerate(vector: Vector2) -> bool:
    return vector.x * vector.x + vector.y * vector.y < _EPSILON_SQ


def _perpendicular_left(vector: Vector2) -> Vector2:
    return Vector2(-vector.y, vector.x)


def _perpendicular_right(vector: Vector2) -> Vector2:
    return Vector2(vector.y, -vector.x)


def _rotation_from_up(heading: Vector2) -> float:
    """Signed angle in degrees that turns +Y onto ``heading`` (sprite orientation)."""
    if _is_degenerate(heading):
        return 0.0
    angle = UP.angle_to(heading)
    if angle > 180.0:
        angle -= 360.0
    elif angle <= -180.0:
        angle += 360.0
    return angle


def _clamp_value(value: float, min_value: float, max_value: float) -> float:
    return max(min_value, min(max_value, value))
