from __future__ import annotations

import logging
import math
from time import perf_counter
from typing import Any, Dict, List, Tuple

from pygame.math import Vector2

from .agent import Boid
from .config import SimulationConfig
from .rng import DeterministicRng
from .spatial_grid import SpatialGrid
from ..systems import flocking, metrics as metrics_system, motion, steering
from ..systems.steering import SteerSignal
from ..types.metrics import TickMetrics
from ..types.snapshot import Snapshot, SnapshotMetadata, SnapshotWorld
from ..types.steer import SteerInput
from ..utils.math2d import _rotation_from_up

logger = logging.getLogger(__name__)


class Flock:
    """Owns the boids and runs one fixed-order update per ``step`` call.

    Order inside a tick: pending spawns, grid refresh, heading snapshot,
    separation, alignment, cohesion, manual steering, motion plus wrap.
    """

    def __init__(self, config: SimulationConfig):
        self._config = config.validate()
        self._rng = DeterministicRng(config.seed)
        self._grid = SpatialGrid(config.cell_size)
        self._boids: List[Boid] = []
        self._id_to_index: Dict[int, int] = {}
        self._spawn_queue: List[Vector2] = []
        self._next_id = 0
        self._tick = 0
        self._metrics: TickMetrics | None = None
        self._bootstrap_population()

    @property
    def agents(self) -> List[Boid]:
        return self._boids

    @property
    def config(self) -> SimulationConfig:
        return self._config

    @property
    def metrics(self) -> TickMetrics | None:
        return self._metrics

    @property
    def tick(self) -> int:
        return self._tick

    def get(self, boid_id: int) -> Boid | None:
        index = self._id_to_index.get(boid_id)
        return None if index is None else self._boids[index]

    def reset(self) -> None:
        self._boids.clear()
        self._id_to_index.clear()
        self._spawn_queue.clear()
        self._grid.clear()
        self._rng.reset()
        self._next_id = 0
        self._tick = 0
        self._metrics = None
        self._bootstrap_population()
        logger.info("Flock reset with %d boids", len(self._boids))

    def spawn(self, position: Vector2 | Tuple[float, float]) -> int | None:
        """Create a boid at ``position`` with the configured defaults and a random heading.

        Returns the new id, or None when the position is not finite or the
        population cap is reached.
        """
        position = Vector2(position)
        if not (math.isfinite(position.x) and math.isfinite(position.y)):
            logger.warning("Spawn at %s rejected: position is not finite", tuple(position))
            return None
        if len(self._boids) >= self._config.max_population:
            logger.warning("Spawn at %s rejected: population cap %d reached", tuple(position), self._config.max_population)
            return None
        defaults = self._config.boid
        boid = Boid(
            id=self._next_id,
            position=Vector2(position),
            heading=self._rng.next_heading(),
            speed=defaults.speed,
            rotation_rate=defaults.rotation_rate,
            view_radius=defaults.view_radius,
            separation_radius=defaults.separation_radius,
        )
        self._id_to_index[boid.id] = len(self._boids)
        self._boids.append(boid)
        self._next_id += 1
        logger.debug("Spawned boid %d at (%.1f, %.1f)", boid.id, boid.position.x, boid.position.y)
        return boid.id

    def queue_spawn(self, position: Vector2 | Tuple[float, float]) -> None:
        """Defer a spawn to the start of the next tick, ahead of the grid refresh."""
        self._spawn_queue.append(Vector2(position))

    def step(self, delta_time: float, steer: SteerSignal = SteerInput.NONE) -> TickMetrics:
        start = perf_counter()
        config = self._config
        weights = config.steering
        record_debug = config.record_debug_targets
        tick = self._tick
        self._tick += 1

        spawned = self._flush_spawn_queue()

        if not math.isfinite(delta_time) or delta_time <= 0.0:
            logger.debug("Skipping tick %d: invalid delta_time %r", tick, delta_time)
            metrics = metrics_system.skipped_metrics(tick, len(self._boids), spawned)
            self._metrics = metrics
            return metrics

        boids = self._boids
        if record_debug:
            for boid in boids:
                boid.debug_targets.clear()

        self._grid.refresh((boid.id, boid.position) for boid in boids)
        headings = flocking.snapshot_headings(boids)

        separation = flocking.apply_separation(boids, self._grid, delta_time, weights.separation_weight, record_debug)
        alignment = flocking.apply_alignment(
            boids, self._grid, headings, delta_time, weights.alignment_weight, record_debug
        )
        cohesion = flocking.apply_cohesion(boids, self._grid, delta_time, weights.cohesion_weight, record_debug)
        manual_steered = steering.apply_manual_steering(boids, steer, delta_time, weights.manual_weight, record_debug)
        wrapped = motion.apply_motion(boids, delta_time, config.world_width, config.world_height)

        elapsed_ms = (perf_counter() - start) * 1000.0
        metrics = metrics_system.create_metrics(
            tick,
            len(boids),
            spawned,
            separation,
            alignment,
            cohesion,
            manual_steered,
            wrapped,
            elapsed_ms,
        )
        self._metrics = metrics
        return metrics

    def snapshot(self) -> Snapshot:
        config = self._config
        metrics = self._metrics
        if metrics is None:
            metrics = metrics_system.skipped_metrics(self._tick, len(self._boids), 0)
        metadata = SnapshotMetadata(
            sim_dt=config.time_step,
            tick_rate=1.0 / config.time_step,
            seed=config.seed,
            config_version=config.config_version,
        )
        return Snapshot(
            tick=self._tick,
            metrics=metrics,
            agents=[self._agent_snapshot(boid) for boid in self._boids],
            world=SnapshotWorld(width=config.world_width, height=config.world_height),
            metadata=metadata,
        )

    def _agent_snapshot(self, boid: Boid) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "id": boid.id,
            "x": boid.position.x,
            "y": boid.position.y,
            "heading_x": boid.heading.x,
            "heading_y": boid.heading.y,
            "rotation": _rotation_from_up(boid.heading),
            "speed": boid.speed,
        }
        if self._config.record_debug_targets:
            payload["targets"] = {name: [vec.x, vec.y] for name, vec in boid.debug_targets.items()}
        return payload

    def _flush_spawn_queue(self) -> int:
        if not self._spawn_queue:
            return 0
        spawned = 0
        for position in self._spawn_queue:
            if self.spawn(position) is not None:
                spawned += 1
        self._spawn_queue.clear()
        return spawned

    def _bootstrap_population(self) -> None:
        for _ in range(self._config.initial_population):
            self.spawn(
                (
                    self._rng.next_range(0.0, self._config.world_width),
                    self._rng.next_range(0.0, self._config.world_height),
                )
            )
