from __future__ import annotations

import pytest
from pygame.math import Vector2

from flocksim.sim.core.errors import FlockInvariantError
from flocksim.sim.systems.motion import apply_motion, integrate, wrap_position

WIDTH = 800.0
HEIGHT = 600.0


def test_integrate_moves_along_heading(make_boid):
    boid = make_boid(0, 100, 100, hx=1, hy=0, speed=20.0)

    integrate(boid, 0.5)

    assert boid.position.x == pytest.approx(110.0)
    assert boid.position.y == pytest.approx(100.0)


def test_integrate_renormalizes_heading(make_boid):
    boid = make_boid(0, 0, 0, speed=10.0)
    boid.heading = Vector2(0, 3)

    integrate(boid, 1.0)

    assert boid.position.y == pytest.approx(10.0)


def test_integrate_rejects_zero_heading(make_boid):
    boid = make_boid(0, 0, 0)
    boid.heading = Vector2()

    with pytest.raises(FlockInvariantError):
        integrate(boid, 0.1)


def test_wrap_is_a_no_op_inside_bounds():
    position = Vector2(400, 300)
    assert not wrap_position(position, WIDTH, HEIGHT)
    assert not wrap_position(position, WIDTH, HEIGHT)
    assert position == Vector2(400, 300)


def test_wrap_from_right_edge_then_stays():
    position = Vector2(WIDTH, 120)

    assert wrap_position(position, WIDTH, HEIGHT)
    assert position == Vector2(0, 120)
    assert not wrap_position(position, WIDTH, HEIGHT)
    assert position == Vector2(0, 120)


def test_wrap_past_right_edge_keeps_y():
    position = Vector2(WIDTH + 5, HEIGHT / 2)

    wrap_position(position, WIDTH, HEIGHT)

    assert position == Vector2(0, HEIGHT / 2)


def test_wrap_from_left_and_bottom_edges_lands_inside_far_edge():
    left = Vector2(-0.5, 42)
    wrap_position(left, WIDTH, HEIGHT)
    assert left.x < WIDTH
    assert left.x == pytest.approx(WIDTH)
    assert left.y == 42

    bottom = Vector2(42, -1)
    wrap_position(bottom, WIDTH, HEIGHT)
    assert bottom.x == 42
    assert bottom.y < HEIGHT
    assert bottom.y == pytest.approx(HEIGHT)


def test_wrap_axes_independently_near_corner():
    one_axis = Vector2(-1, 10)
    wrap_position(one_axis, WIDTH, HEIGHT)
    assert one_axis.x == pytest.approx(WIDTH)
    assert one_axis.y == 10

    both_axes = Vector2(WIDTH + 1, -1)
    wrap_position(both_axes, WIDTH, HEIGHT)
    assert both_axes.x == 0
    assert both_axes.y == pytest.approx(HEIGHT)


@pytest.mark.parametrize("start", [(-0.5, 42), (42, -1), (-1, -1), (WIDTH, HEIGHT), (WIDTH + 3, -2)])
def test_wrap_is_a_no_op_on_its_own_output(start):
    position = Vector2(start)
    assert wrap_position(position, WIDTH, HEIGHT)
    wrapped_once = Vector2(position)

    assert not wrap_position(position, WIDTH, HEIGHT)
    assert position == wrapped_once
    assert 0.0 <= position.x < WIDTH
    assert 0.0 <= position.y < HEIGHT


def test_stationary_boid_stays_put_after_left_exit(make_boid):
    boid = make_boid(0, -0.5, 300, hx=-1, hy=0, speed=20.0)
    assert apply_motion([boid], 0.1, WIDTH, HEIGHT) == 1
    landed = Vector2(boid.position)

    boid.speed = 0.0
    for _ in range(3):
        assert apply_motion([boid], 0.1, WIDTH, HEIGHT) == 0

    assert boid.position == landed
    assert boid.position.x == pytest.approx(WIDTH)


def test_apply_motion_counts_wrapped_boids(make_boid):
    boids = [
        make_boid(0, WIDTH - 0.1, 300, hx=1, hy=0, speed=20.0),
        make_boid(1, 400, 300, hx=1, hy=0, speed=20.0),
    ]

    wrapped = apply_motion(boids, 0.1, WIDTH, HEIGHT)

    assert wrapped == 1
    assert boids[0].position.x == 0.0
    assert boids[1].position.x == pytest.approx(402.0)
