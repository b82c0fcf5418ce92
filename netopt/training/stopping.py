"""Early stopping with best-parameter tracking."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple, Union

import numpy as np

from ..core.netparam import NetParam, copy_params
from ..core.types import Array

EPSILON = 1e-7

Snapshot = Union[Array, Sequence[NetParam]]


class StoppingRule:
    """Signal a stop once the loss has gone up ``up_limit`` times in a row.

    The lowest loss seen so far is kept together with a deep copy of the
    parameters that produced it, so the caller can roll back when stopping.
    """

    def __init__(self, up_limit: int = 4) -> None:
        self.up_limit = up_limit
        self.reset()

    def reset(self) -> None:
        self.up = 0
        self.loss0 = float("inf")
        self.best_loss = float("inf")
        self.snapshot: Optional[Snapshot] = None

    def stop_when(self, params: Snapshot, loss: float) -> Tuple[Optional[Snapshot], float]:
        """Record ``loss`` for ``params``; return the best snapshot when stopping."""

        if loss > self.loss0 + EPSILON:
            self.up += 1
        else:
            self.up = 0
            if loss < self.best_loss:
                self.snapshot = _copy(params)
                self.best_loss = loss
        self.loss0 = loss

        if self.up > self.up_limit:
            return self.snapshot, self.best_loss
        return None, self.best_loss


def _copy(params: Snapshot) -> Snapshot:
    if isinstance(params, np.ndarray):
        return params.copy()
    return copy_params(list(params))


__all__ = ["EPSILON", "StoppingRule"]
