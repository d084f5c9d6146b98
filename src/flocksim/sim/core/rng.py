from __future__ import annotations

import random

from pygame.math import Vector2


class DeterministicRng:
    def __init__(self, seed: int):
        self._seed = seed
        self._random = random.Random(seed)

    def reset(self) -> None:
        self._random.seed(self._seed)

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_heading(self) -> Vector2:
        """Unit vector at an angle drawn uniformly from [0, 360) degrees."""
        angle = self._random.random() * 360.0
        vector = Vector2()
        vector.from_polar((1.0, angle))
        return vector
