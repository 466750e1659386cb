"""Park-Miller linear congruential generator, so simulations replay exactly from a seed."""

from __future__ import annotations

import random
from typing import Optional, Sequence, TypeVar

MODULUS = 2147483647
MULTIPLIER = 16807

T = TypeVar("T")


class SeededRandom:
    def __init__(self, seed: Optional[int] = None) -> None:
        if seed is None:
            seed = random.randint(1, MODULUS - 1)
        initial = int(seed) % MODULUS
        if initial <= 0:
            # zero is a fixed point of the generator
            initial += MODULUS - 1
        self.initial_seed = initial
        self.seed = initial

    def reset(self) -> None:
        """Rewind to the initial seed so the same sequence is drawn again."""
        self.seed = self.initial_seed

    def next(self) -> float:
        self.seed = (self.seed * MULTIPLIER) % MODULUS
        return (self.seed - 1) / (MODULUS - 1)

    def next_int(self, minimum: int, maximum: int) -> int:
        return int(self.next() * (maximum - minimum + 1)) + minimum

    def pick(self, items: Sequence[T]) -> T:
        return items[int(self.next() * len(items))]


__all__ = ["SeededRandom"]
