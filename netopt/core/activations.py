"""Activation function families for netopt.

Each family bundles the activation ``f`` with its derivative ``d``.  The
derivative is expressed in terms of the activation *output* ``yp = f(t)``,
which is what back-propagation has at hand after the forward pass.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

import numpy as np

from .types import Array

ArrayFn = Callable[[Array], Array]
Inverse = Callable[[Array], Array]

LRELU_ALPHA = 0.3
ELU_ALPHA = 1.0


@dataclass(frozen=True)
class ActivationFamily:
    """An activation function, its derivative and optional output bounds."""

    name: str
    f: ArrayFn
    d: ArrayFn
    bounds: Optional[Tuple[float, float]] = None

    def __call__(self, t: Array) -> Array:
        return self.f(t)


def identity(t: Array) -> Array:
    return np.asarray(t, dtype=np.float64)


def identity_deriv(yp: Array) -> Array:
    return np.ones_like(yp, dtype=np.float64)


def relu(t: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(t, 0.0)


def relu_deriv(yp: Array) -> Array:
    # inactive units (yp == 0) pass no gradient
    return (yp > 0.0).astype(np.float64)


def lrelu(t: Array, alpha: float = LRELU_ALPHA) -> Array:
    return np.maximum(alpha * t, t)


def lrelu_deriv(yp: Array, alpha: float = LRELU_ALPHA) -> Array:
    return np.where(yp >= 0.0, 1.0, alpha)


def elu(t: Array, alpha: float = ELU_ALPHA) -> Array:
    t = np.asarray(t, dtype=np.float64)
    return np.where(t > 0.0, t, alpha * np.expm1(np.minimum(t, 0.0)))


def elu_deriv(yp: Array, alpha: float = ELU_ALPHA) -> Array:
    return np.where(yp > 0.0, 1.0, yp + alpha)


def tanh(t: Array) -> Array:
    return np.tanh(t)


def tanh_deriv(yp: Array) -> Array:
    return 1.0 - yp**2


def sigmoid(t: Array) -> Array:
    return 1.0 / (1.0 + np.exp(-np.asarray(t, dtype=np.float64)))


def sigmoid_deriv(yp: Array) -> Array:
    return yp * (1.0 - yp)


f_id = ActivationFamily("id", identity, identity_deriv)
f_reLU = ActivationFamily("reLU", relu, relu_deriv)
f_lreLU = ActivationFamily("lreLU", lrelu, lrelu_deriv)
f_eLU = ActivationFamily("eLU", elu, elu_deriv)
f_tanh = ActivationFamily("tanh", tanh, tanh_deriv, (-1.0, 1.0))
f_sigmoid = ActivationFamily("sigmoid", sigmoid, sigmoid_deriv, (0.0, 1.0))

FAMILIES: Dict[str, ActivationFamily] = {
    family.name.lower(): family
    for family in (f_id, f_reLU, f_lreLU, f_eLU, f_tanh, f_sigmoid)
}


def get_activation(name: str) -> ActivationFamily:
    try:
        return FAMILIES[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(FAMILIES))
        raise KeyError(f"Unknown activation {name!r}. Available: {available}") from exc


# ------------------------------------------------------------------
# Rescaling to the range of an activation family


def _scaler(lo: Array, hi: Array, bounds: Tuple[float, float]) -> Tuple[ArrayFn, Inverse]:
    lb, ub = bounds
    span = np.where(hi != lo, hi - lo, 1.0)
    ratio = (ub - lb) / span

    def forward(v: Array) -> Array:
        return (v - lo) * ratio + lb

    def inverse(v: Array) -> Array:
        return (v - lb) / ratio + lo

    return forward, inverse


def _normaliser(mu: Array, sigma: Array) -> Tuple[ArrayFn, Inverse]:
    sigma = np.where(sigma > 0.0, sigma, 1.0)

    def forward(v: Array) -> Array:
        return (v - mu) / sigma

    def inverse(v: Array) -> Array:
        return v * sigma + mu

    return forward, inverse


def _transform(v: Array, family: ActivationFamily) -> Tuple[ArrayFn, Inverse]:
    # one set of statistics per column
    if family.bounds is not None:
        return _scaler(v.min(axis=0), v.max(axis=0), family.bounds)
    sigma = v.std(axis=0, ddof=1) if v.shape[0] > 1 else np.ones(v.shape[1:])
    return _normaliser(v.mean(axis=0), sigma)


def rescale_x(x: Array, family: ActivationFamily) -> Array:
    """Scale ``x`` into the bounds of ``family``, otherwise z-normalise it."""

    x = np.asarray(x, dtype=np.float64)
    forward, _ = _transform(x, family)
    return forward(x)


def rescale_y(y: Array, family: ActivationFamily) -> Tuple[Array, Inverse]:
    """Rescale responses for ``family`` and return the inverse transform."""

    y = np.asarray(y, dtype=np.float64)
    forward, inverse = _transform(y, family)
    return forward(y), inverse


__all__ = [
    "ActivationFamily",
    "FAMILIES",
    "get_activation",
    "f_id",
    "f_reLU",
    "f_lreLU",
    "f_eLU",
    "f_tanh",
    "f_sigmoid",
    "relu",
    "sigmoid",
    "rescale_x",
    "rescale_y",
]
