"""Desktop window for the flock: click to spawn, hold left/right (or A/D) to steer."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Mapping, Optional, Tuple

import pygame
from pygame.math import Vector2

from ..sim.core.agent import Boid
from ..sim.core.config import SimulationConfig
from ..sim.core.world import Flock
from ..sim.types.steer import SteerInput

logger = logging.getLogger(__name__)

BACKGROUND = (27, 29, 34)
BOID_COLOR = (232, 232, 232)
DEBUG_COLORS = {
    "separation": (235, 90, 90),
    "alignment": (90, 200, 120),
    "cohesion": (90, 140, 235),
    "manual": (240, 200, 80),
}

_LEFT_KEYS = (pygame.K_LEFT, pygame.K_a)
_RIGHT_KEYS = (pygame.K_RIGHT, pygame.K_d)


def decode_steer(pressed: Mapping[int, bool]) -> SteerInput:
    left = any(pressed[key] for key in _LEFT_KEYS)
    right = any(pressed[key] for key in _RIGHT_KEYS)
    if left and not right:
        return SteerInput.LEFT
    if right and not left:
        return SteerInput.RIGHT
    return SteerInput.NONE


def screen_to_world(pos: Tuple[int, int], height: float) -> Vector2:
    return Vector2(pos[0], height - pos[1])


def world_to_screen(position: Vector2, height: float) -> Vector2:
    return Vector2(position.x, height - position.y)


def boid_triangle(boid: Boid, height: float, size: float = 8.0) -> list[Vector2]:
    center = world_to_screen(boid.position, height)
    forward = Vector2(boid.heading.x, -boid.heading.y)
    side = Vector2(-forward.y, forward.x)
    return [
        center + forward * size,
        center - forward * (size * 0.6) + side * (size * 0.5),
        center - forward * (size * 0.6) - side * (size * 0.5),
    ]


def _draw(surface: pygame.Surface, flock: Flock, debug: bool) -> None:
    height = flock.config.world_height
    surface.fill(BACKGROUND)
    for boid in flock.agents:
        pygame.draw.polygon(surface, BOID_COLOR, boid_triangle(boid, height))
        if not debug:
            continue
        start = world_to_screen(boid.position, height)
        for name, target in boid.debug_targets.items():
            if target.length_squared() == 0:
                continue
            tip = Vector2(target.x, -target.y).normalize() * 20.0
            pygame.draw.line(surface, DEBUG_COLORS.get(name, BOID_COLOR), start, start + tip)


def run_viewer(config: SimulationConfig, debug: bool = False, max_fps: int = 60) -> None:
    if debug:
        config.record_debug_targets = True
    flock = Flock(config)
    pygame.init()
    try:
        surface = pygame.display.set_mode((int(config.world_width), int(config.world_height)))
        pygame.display.set_caption("Boids")
        clock = pygame.time.Clock()
        logger.info("Viewer started (%dx%d)", config.world_width, config.world_height)
        running = True
        while running:
            delta_time = clock.tick(max_fps) / 1000.0
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                    flock.queue_spawn(screen_to_world(event.pos, config.world_height))
            flock.step(delta_time, decode_steer(pygame.key.get_pressed()))
            _draw(surface, flock, debug)
            pygame.display.flip()
    finally:
        pygame.quit()
    logger.info("Viewer closed after %d ticks", flock.tick)


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(description="Interactive boids flock")
    parser.add_argument("--config", type=Path, default=None, help="YAML simulation config")
    parser.add_argument("--population", type=int, default=None, help="Boids spawned at random positions on start")
    parser.add_argument("--debug", action="store_true", help="Draw per-rule steering targets")
    parser.add_argument("--fps", type=int, default=60)
    parser.add_argument("--log-level", default="INFO", help="Python logging level")
    args = parser.parse_args(argv)
    logging.basicConfig(level=args.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    config = SimulationConfig.from_yaml(args.config) if args.config else SimulationConfig()
    if args.population is not None:
        config.initial_population = args.population
        config.max_population = max(config.max_population, args.population)
    run_viewer(config, debug=args.debug, max_fps=args.fps)


if __name__ == "__main__":
    main()
