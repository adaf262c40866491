"""Seeded permutation source shared by the randomization schemes."""
from typing import Any, List, Protocol, runtime_checkable

import numpy as np

from fielddesign.errors import InvalidSeed


@runtime_checkable
class Permuter(Protocol):
    """Stateful stream of uniformly random permutations."""

    def permutation(self, n: int) -> List[int]:
        """Return a random ordering of 0..n-1 and advance the stream."""
        ...


class SeededPermuter:
    """Permuter backed by a numpy PCG64 generator."""

    def __init__(self, seed: int):
        self.seed = check_seed(seed)
        self._rng = np.random.default_rng(self.seed)

    def permutation(self, n: int) -> List[int]:
        return [int(i) for i in self._rng.permutation(n)]

    def __repr__(self) -> str:
        return f"SeededPermuter(seed={self.seed})"


def check_seed(seed: Any) -> int:
    """Return seed as a plain int, or raise InvalidSeed."""
    if isinstance(seed, bool) or not isinstance(seed, (int, np.integer)):
        raise InvalidSeed(f"Seed must be a non-negative integer, got {seed!r}")
    if seed < 0:
        raise InvalidSeed(f"Seed must be a non-negative integer, got {seed}")
    return int(seed)


def make_permuter(seed: Any) -> Permuter:
    """Wrap a seed in a SeededPermuter; pass existing permuters through."""
    if isinstance(seed, Permuter):
        return seed
    return SeededPermuter(seed)
