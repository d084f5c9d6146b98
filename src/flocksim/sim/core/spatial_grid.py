from __future__ import annotations

import math
from typing import Dict, Iterable, List, Tuple

from pygame.math import Vector2

Entry = Tuple[Vector2, int]


class SpatialGrid:
    """Uniform hash grid over boid positions.

    ``refresh`` copies positions, so the grid is a snapshot of the tick start and
    later mutation of the boids does not move them inside the grid.

    ``query_within`` is inclusive (``distance <= radius``) and does not exclude
    anything: a boid querying around its own position gets itself back.
    """

    def __init__(self, cell_size: float) -> None:
        if cell_size <= 0:
            raise ValueError(f"cell_size must be positive, got {cell_size!r}")
        self._cell_size = cell_size
        self._cells: Dict[Tuple[int, int], List[Entry]] = {}
        self._active_keys: List[Tuple[int, int]] = []
        self._offset_cache: Dict[float, List[Tuple[int, int]]] = {}
        self._size = 0

    def __len__(self) -> int:
        return self._size

    def build_neighbor_cell_offsets(self, radius: float) -> List[Tuple[int, int]]:
        offsets = self._offset_cache.get(radius)
        if offsets is None:
            cell_range = int(math.ceil(radius / self._cell_size))
            offsets = [
                (dx, dy) for dx in range(-cell_range, cell_range + 1) for dy in range(-cell_range, cell_range + 1)
            ]
            self._offset_cache[radius] = offsets
        return offsets

    def clear(self) -> None:
        for key in self._active_keys:
            bucket = self._cells.get(key)
            if bucket:
                bucket.clear()
        self._active_keys.clear()
        self._size = 0

    def insert(self, boid_id: int, position: Vector2) -> None:
        key = self._cell_key(position)
        bucket = self._cells.get(key)
        if bucket is None:
            bucket = []
            self._cells[key] = bucket
            self._active_keys.append(key)
        elif not bucket:
            # Bucket exists but was cleared at the start of this tick; mark it active again.
            self._active_keys.append(key)
        bucket.append((Vector2(position), boid_id))
        self._size += 1

    def refresh(self, entries: Iterable[Tuple[int, Vector2]]) -> None:
        self.clear()
        for boid_id, position in entries:
            self.insert(boid_id, position)

    def query_within(self, point: Vector2, radius: float) -> List[Entry]:
        if radius < 0:
            return []
        found: List[Entry] = []
        base_x, base_y = self._cell_key(point)
        radius_sq = radius * radius
        pos_x = point.x
        pos_y = point.y
        cells = self._cells
        append = found.append

        for dx, dy in self.build_neighbor_cell_offsets(radius):
            bucket = cells.get((base_x + dx, base_y + dy))
            if not bucket:
                continue
            for entry in bucket:
                pos = entry[0]
                offset_x = pos.x - pos_x
                offset_y = pos.y - pos_y
                if offset_x * offset_x + offset_y * offset_y <= radius_sq:
                    append(entry)
        return found

    def _cell_key(self, position: Vector2) -> Tuple[int, int]:
        return (int(position.x // self._cell_size), int(position.y // self._cell_size))
