"""Random initialisation of layer parameters."""

from __future__ import annotations

from typing import Optional

import numpy as np

from .netparam import NetParam
from .types import Array


def _limit(rows: int, limit: Optional[float]) -> float:
    if limit is None or limit <= 0.0:
        return 1.0 / np.sqrt(max(rows, 1))
    return float(limit)


# Uniform on [0, limit), limit defaults to 1/sqrt(rows)


def weight_vec(rows: int, rng: np.random.Generator, limit: Optional[float] = None) -> Array:
    return rng.uniform(0.0, _limit(rows, limit), size=rows)


def weight_mat(
    rows: int, cols: int, rng: np.random.Generator, limit: Optional[float] = None
) -> Array:
    return rng.uniform(0.0, _limit(rows, limit), size=(rows, cols))


# Standard normal


def weight_vec2(rows: int, rng: np.random.Generator) -> Array:
    return rng.standard_normal(rows)


def weight_mat2(rows: int, cols: int, rng: np.random.Generator) -> Array:
    return rng.standard_normal((rows, cols)) / np.sqrt(max(rows, 1))


# Nguyen & Widrow


def weight_vec3(rows: int, rng: np.random.Generator) -> Array:
    beta = 0.7 ** (1.0 / rows)
    wb = rng.uniform(-1.0, 1.0, size=rows)
    return wb * (beta / np.linalg.norm(wb))


def weight_mat3(rows: int, cols: int, rng: np.random.Generator) -> Array:
    beta = 0.7 ** (1.0 / rows)
    w = rng.uniform(-1.0, 1.0, size=(rows, cols))
    return w * (beta / np.linalg.norm(w))


def init_weights(param: NetParam, rng: np.random.Generator) -> None:
    """Re-randomise ``param`` in place, keeping its shapes and bias presence."""

    rows, cols = param.w.shape
    if param.b is None:
        param.set(weight_mat(rows, cols, rng))
    else:
        param.set(weight_mat(rows, cols, rng), weight_vec(param.b.shape[0], rng))


__all__ = [
    "weight_vec",
    "weight_mat",
    "weight_vec2",
    "weight_mat2",
    "weight_vec3",
    "weight_mat3",
    "init_weights",
]
