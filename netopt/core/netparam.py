"""Layer parameters: weight matrices with optional bias vectors."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Union, overload

import numpy as np

from .types import Array


class LinearMap(Protocol):
    """Anything that maps layer inputs to pre-activations."""

    def dot(self, v: Array) -> Array:
        """Map a single input vector."""

    def apply(self, x: Array) -> Array:
        """Map a matrix of inputs, one instance per row."""


@dataclass
class PlainMatrix:
    """A bare weight matrix without a bias term."""

    w: Array

    __array_ufunc__ = None

    def dot(self, v: Array) -> Array:
        return v @ self.w

    def apply(self, x: Array) -> Array:
        return x @ self.w

    def __rmatmul__(self, x: Array) -> Array:
        return self.apply(x)


class NetParam:
    """Weights ``w`` (fan-in by fan-out) bundled with an optional bias ``b``.

    Training mutates instances in place through ``+=``/``-=`` and
    :meth:`set`; the owner of a parameter list is the only writer while a
    training call is running.  Shape mismatches are left to numpy, which
    raises ``ValueError`` from the offending operation.
    """

    # defer ``ndarray @ NetParam`` to ``__rmatmul__``
    __array_ufunc__ = None

    def __init__(self, w: Array, b: Optional[Array] = None) -> None:
        self.w = np.asarray(w, dtype=np.float64)
        self.b = None if b is None else np.asarray(b, dtype=np.float64)

    def copy(self) -> "NetParam":
        return NetParam(self.w.copy(), None if self.b is None else self.b.copy())

    def trim(self, rows: int, cols: int) -> "NetParam":
        """Return a copy restricted to the leading ``rows`` x ``cols`` block."""

        bias = None if self.b is None else self.b[:cols].copy()
        return NetParam(self.w[:rows, :cols].copy(), bias)

    @overload
    def set(self, w: "NetParam") -> None: ...

    @overload
    def set(self, w: Array, b: Optional[Array] = None) -> None: ...

    def set(self, w, b=None) -> None:
        """Point this parameter at new weights (and bias)."""

        if isinstance(w, NetParam):
            self.w, self.b = w.w, w.b
        else:
            self.w = np.asarray(w, dtype=np.float64)
            self.b = None if b is None else np.asarray(b, dtype=np.float64)

    def __iadd__(self, delta: "NetParam") -> "NetParam":
        self.w += delta.w
        if delta.b is not None:
            self.b += delta.b
        return self

    def __isub__(self, delta: "NetParam") -> "NetParam":
        self.w -= delta.w
        if delta.b is not None:
            self.b -= delta.b
        return self

    def dot(self, v: Array) -> Array:
        out = v @ self.w
        return out if self.b is None else out + self.b

    def apply(self, x: Array) -> Array:
        out = x @ self.w
        return out if self.b is None else out + self.b

    def __rmatmul__(self, x: Array) -> Array:
        return self.apply(x)

    def approx_equal(self, other: "NetParam", tol: float = 1e-3) -> bool:
        if float(np.sum((self.w - other.w) ** 2)) > tol:
            return False
        if self.b is None or other.b is None:
            return self.b is None and other.b is None
        return float(np.sum((self.b - other.b) ** 2)) <= tol

    def to_matrix(self) -> Array:
        """Stack the bias as the first row on top of the weights."""

        if self.b is None:
            return self.w
        return np.vstack([self.b, self.w])

    @property
    def shape(self) -> tuple[int, int]:
        return self.w.shape  # type: ignore[return-value]

    def __repr__(self) -> str:
        return f"NetParam(w={self.w!r}, b={self.b!r})"


NetParams = List[NetParam]

Layer = Union[PlainMatrix, NetParam]


def copy_params(params: NetParams) -> NetParams:
    """Deep copy a list of layer parameters."""

    return [param.copy() for param in params]


__all__ = ["LinearMap", "PlainMatrix", "NetParam", "NetParams", "Layer", "copy_params"]
