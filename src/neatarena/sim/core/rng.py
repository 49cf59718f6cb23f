"""Seeded random streams.

The population owns one stream for evolution (mutation, crossover,
representative picks) and hands every agent world its own child stream, so
evaluating agents in any order or on any thread draws the same numbers.
"""
from __future__ import annotations

import math
import random
from typing import Optional, Sequence, TypeVar

from pygame.math import Vector2

T = TypeVar("T")

_MASK_64 = 0xFFFFFFFFFFFFFFFF


def derive_stream_seed(seed: int, salt: int) -> int:
    return (int(seed) ^ int(salt)) & _MASK_64


class DeterministicRng:
    def __init__(self, seed: int):
        self._random = random.Random(seed)

    def next_float(self) -> float:
        return self._random.random()

    def next_range(self, low: float, high: float) -> float:
        return self._random.uniform(low, high)

    def next_int(self, max_value: int) -> int:
        return self._random.randrange(max_value)

    def next_bool(self) -> bool:
        return self._random.randrange(2) == 1

    def next_unit_circle(self) -> Vector2:
        angle = self._random.uniform(0, 2 * math.pi)
        vector = Vector2()
        vector.from_polar((1, math.degrees(angle)))
        return vector

    def sample_choice(self, items: Sequence[T]) -> Optional[T]:
        if not items:
            return None
        return self._random.choice(items)

    def spawn(self, salt: int) -> "DeterministicRng":
        """Child stream for one world; consumes one draw from this stream."""
        return DeterministicRng(derive_stream_seed(self._random.getrandbits(64), salt))
