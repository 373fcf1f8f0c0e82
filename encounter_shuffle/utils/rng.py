"""
Seeded random source.

Everything random in a shuffle run draws from one SeededRandom so that a
seed fully determines the output.
"""

from typing import List, Optional, Sequence, TypeVar
import numpy as np

T = TypeVar('T')


class SeededRandom:
    """Deterministic RNG exposing the two primitives the shuffler needs."""

    def __init__(self, seed: Optional[int] = None):
        self.seed = seed
        self._rng = np.random.default_rng(seed)

    def next_int(self, bound: int) -> int:
        """Uniform integer in [0, bound)."""
        if bound <= 0:
            raise ValueError(f"bound must be positive, got {bound}")
        return int(self._rng.integers(bound))

    def shuffle(self, items: List[T]) -> None:
        """In-place Fisher-Yates, walking down from the end."""
        i = len(items)
        while i:
            j = self.next_int(i)
            i -= 1
            items[i], items[j] = items[j], items[i]

    def pick(self, items: Sequence[T]) -> T:
        return items[self.next_int(len(items))]
