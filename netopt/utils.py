"""Synthetic regression datasets for examples, the CLI and tests."""

from __future__ import annotations

from typing import Tuple

import numpy as np


def make_dataset(
    kind: str = "sine",
    n: int = 200,
    seed: int = 42,
    noise: float = 0.05,
    freq: float = 1.0,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return ``(x, y)`` with one instance per row.

    ``sine`` samples ``y = sin(freq * pi * x)`` on ``[-1, 1]``; ``linear``
    samples ``y = 2x`` on ``[0, 1]``.  Gaussian noise of scale ``noise`` is
    added to the responses.
    """

    rng = np.random.default_rng(seed)
    if kind == "sine":
        x = np.linspace(-1.0, 1.0, n).reshape(-1, 1)
        y = np.sin(freq * np.pi * x)
    elif kind == "linear":
        x = np.linspace(0.0, 1.0, n).reshape(-1, 1)
        y = 2.0 * x
    else:
        raise ValueError(f"Unknown synthetic dataset: {kind}")
    return x, y + noise * rng.standard_normal(size=y.shape)


__all__ = ["make_dataset"]
