"""One dimensional convolution and pooling operators."""

from __future__ import annotations

import numpy as np

from .types import Array


def convf(c: Array, x: Array) -> Array:
    """Return the 'full' convolution of cofilter ``c`` and vector ``x``."""

    return np.convolve(x, c, mode="full")


def convs(c: Array, x: Array) -> Array:
    """Return the 'same' convolution: the result is as long as ``x``."""

    full = convf(c, x)
    off = len(c) // 2
    return full[off : off + len(x)]


def conv(c: Array, x: Array) -> Array:
    """Return the 'valid' convolution of ``c`` over ``x`` (no reversal).

    ``x`` may be a vector or a matrix, in which case every row is filtered.
    """

    c = np.asarray(c, dtype=np.float64)
    x = np.asarray(x, dtype=np.float64)
    width = x.shape[-1] - len(c) + 1
    if width < 1:
        raise ValueError(f"cofilter of width {len(c)} is wider than input {x.shape[-1]}")
    windows = np.lib.stride_tricks.sliding_window_view(x, len(c), axis=-1)
    return windows @ c


def pool(x: Array, s: int = 2) -> Array:
    """Return max pooling over non-overlapping windows of size ``s``."""

    x = np.asarray(x, dtype=np.float64)
    n = x.shape[-1] // s
    trimmed = x[..., : n * s]
    return trimmed.reshape(*x.shape[:-1], n, s).max(axis=-1)


__all__ = ["conv", "convf", "convs", "pool"]
