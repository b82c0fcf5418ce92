"""Core typing contracts for netopt."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional

import numpy as np

Array = np.ndarray


@dataclass(frozen=True)
class Gradient:
    """Per-layer gradient: ``z[l].T @ delta[l]`` and the delta's column mean."""

    weights: Array
    bias: Optional[Array] = None


@dataclass(frozen=True)
class OptimizeResult:
    """Summary returned by every optimizer entry point."""

    loss: float
    epochs: int
    eta: float = float("nan")

    def __iter__(self) -> Iterator[float]:
        # unpacks like the classic ``(loss, epochs)`` pair
        yield self.loss
        yield self.epochs


@dataclass
class RuleState:
    """State persisted by an update rule between batches of one training call."""

    moments: List[Array] = field(default_factory=list)
    bias_moments: List[Optional[Array]] = field(default_factory=list)
    second_moments: List[Array] = field(default_factory=list)
    bias_second_moments: List[Optional[Array]] = field(default_factory=list)
