from __future__ import annotations

import math

import pytest
from pygame.math import Vector2

from flocksim.sim.systems.steering import apply_manual_steering, blend, manual_target, steering_strength
from flocksim.sim.types.steer import SteerInput


@pytest.mark.parametrize(
    "current, target, strength",
    [
        (Vector2(0, 1), Vector2(1, 0), 0.01),
        (Vector2(1, 0), Vector2(-3, 4), 0.5),
        (Vector2(0.6, 0.8), Vector2(100, -7), 0.9),
        (Vector2(-1, 0), Vector2(0.001, 0.002), 0.25),
    ],
)
def test_blend_returns_unit_vector(current, target, strength):
    result = blend(current, target, strength)
    assert abs(result.length() - 1.0) < 1e-5


def test_blend_matches_normalized_lerp():
    s = 0.2
    result = blend(Vector2(0, 1), Vector2(5, 0), s)
    expected = Vector2(s, 1.0 - s).normalize()
    assert result.x == pytest.approx(expected.x)
    assert result.y == pytest.approx(expected.y)


def test_blend_strength_extremes():
    current = Vector2(0, 1)
    assert blend(current, Vector2(3, 0), 0.0) == Vector2(0, 1)
    full = blend(current, Vector2(3, 0), 1.0)
    assert full.x == pytest.approx(1.0)
    assert full.y == pytest.approx(0.0)


def test_blend_clamps_strength_above_one():
    result = blend(Vector2(0, 1), Vector2(1, 0), 4.0)
    assert result.x == pytest.approx(1.0)
    assert result.y == pytest.approx(0.0)


def test_blend_keeps_heading_for_zero_target():
    current = Vector2(0.6, 0.8)
    result = blend(current, Vector2(0, 0), 0.5)
    assert result == current
    assert result is not current


def test_blend_keeps_heading_when_targets_cancel():
    result = blend(Vector2(1, 0), Vector2(-1, 0), 0.5)
    assert result == Vector2(1, 0)


def test_steering_strength_scales_with_rate_time_and_weight():
    assert steering_strength(3.0, 1.0 / 60.0, 0.2) == pytest.approx(0.01)
    assert steering_strength(6.0, 1.0 / 60.0, 0.2) == pytest.approx(0.02)
    assert steering_strength(3.0, 1.0, 1.0) == 1.0
    assert steering_strength(3.0, 1.0 / 60.0, 0.0) == 0.0


def test_manual_target_is_perpendicular():
    heading = Vector2(1, 0)
    assert manual_target(heading, SteerInput.LEFT) == Vector2(0, 1)
    assert manual_target(heading, SteerInput.RIGHT) == Vector2(0, -1)
    assert manual_target(heading, SteerInput.NONE) is None


def test_manual_steering_turns_every_boid(make_boid):
    boids = [make_boid(0, 0, 0, hx=1, hy=0), make_boid(1, 50, 50, hx=0, hy=1)]

    steered = apply_manual_steering(boids, SteerInput.LEFT, 1.0 / 60.0, 1.0)

    assert steered == 2
    # Left is counter-clockwise: +X turns toward +Y, +Y turns toward -X.
    assert boids[0].heading.y > 0
    assert boids[1].heading.x < 0
    for boid in boids:
        assert abs(boid.heading.length() - 1.0) < 1e-5


def test_manual_steering_right_turns_clockwise(make_boid):
    boid = make_boid(0, 0, 0, hx=1, hy=0)
    apply_manual_steering([boid], SteerInput.RIGHT, 1.0 / 60.0, 1.0)
    assert boid.heading.y < 0
    assert math.isclose(boid.heading.length(), 1.0, rel_tol=1e-6)


def test_manual_steering_none_leaves_heading_untouched(make_boid):
    boid = make_boid(0, 0, 0, hx=0.6, hy=0.8)
    before = boid.heading

    assert apply_manual_steering([boid], SteerInput.NONE, 1.0 / 60.0, 1.0) == 0
    assert boid.heading is before


def test_manual_steering_accepts_per_boid_signals(make_boid):
    boids = [make_boid(0, 0, 0, hx=1, hy=0), make_boid(1, 0, 0, hx=1, hy=0), make_boid(2, 0, 0, hx=1, hy=0)]

    steered = apply_manual_steering(boids, {0: SteerInput.LEFT, 1: SteerInput.RIGHT}, 0.1, 1.0)

    assert steered == 2
    assert boids[0].heading.y > 0
    assert boids[1].heading.y < 0
    assert boids[2].heading == Vector2(1, 0)


def test_manual_steering_disabled_by_zero_weight(make_boid):
    boid = make_boid(0, 0, 0, hx=1, hy=0)
    assert apply_manual_steering([boid], SteerInput.LEFT, 0.1, 0.0) == 0
    assert boid.heading == Vector2(1, 0)


def test_steer_input_parse():
    assert SteerInput.parse("LEFT") is SteerInput.LEFT
    assert SteerInput.parse(" right ") is SteerInput.RIGHT
    assert SteerInput.parse(None) is SteerInput.NONE
    with pytest.raises(ValueError):
        SteerInput.parse("up")
