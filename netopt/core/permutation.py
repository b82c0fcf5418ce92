"""Random permutations of instance indices for mini-batching."""

from __future__ import annotations

from typing import List

import numpy as np

from .types import Array


class PermutationGenerator:
    """Produce a fresh permutation of ``0..m-1`` on every :meth:`igen` call."""

    def __init__(self, m: int, rng: np.random.Generator) -> None:
        if m < 1:
            raise ValueError(f"need at least one index to permute, got m={m}")
        self.m = m
        self._rng = rng
        self._indices = np.arange(m)

    def igen(self) -> Array:
        return self._rng.permutation(self._indices)

    def batches(self, n_batches: int, *, drop_remainder: bool = True) -> List[Array]:
        """Permute, then chop into ``n_batches`` contiguous batches.

        Each batch holds ``m // n_batches`` indices.  The trailing
        ``m % n_batches`` indices are dropped, or appended to the last batch
        when ``drop_remainder`` is false.
        """

        return chop(self.igen(), n_batches, drop_remainder=drop_remainder)


def chop(indices: Array, n_batches: int, *, drop_remainder: bool = True) -> List[Array]:
    if n_batches < 1:
        raise ValueError(f"n_batches={n_batches} must be at least one")
    size = len(indices) // n_batches
    pieces = [indices[i * size : (i + 1) * size] for i in range(n_batches)]
    if not drop_remainder:
        pieces[-1] = indices[(n_batches - 1) * size :]
    return pieces


__all__ = ["PermutationGenerator", "chop"]
