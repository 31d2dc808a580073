from typing import Sequence, TypeVar

import numpy as np

T = TypeVar("T")

class DRNG:
    """Deterministic Random Number Generator wrapper."""

    def __init__(self, seed: int):
        self.g = np.random.Generator(np.random.PCG64(seed))

    def random(self) -> float:
        """Return a random float in [0, 1)."""
        return float(self.g.random())

    def bernoulli(self, p: float) -> bool:
        """Return True with probability p."""
        return bool(self.g.random() < p)

    def uniform(self, a: float, b: float) -> float:
        """Return a random float in [a, b)."""
        return float(self.g.uniform(a, b))

    def integers(self, n: int) -> int:
        """Return a random int in [0, n)."""
        return int(self.g.integers(0, n))

    def choice(self, seq: Sequence[T]) -> T:
        """Pick one element of a non-empty sequence uniformly."""
        return seq[self.integers(len(seq))]
