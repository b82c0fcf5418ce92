"""Per-batch parameter update rules for netopt optimizers.

Every rule turns the layer gradients of one batch into the changes that the
optimizer subtracts from its parameters.  With ``alpha = eta / batch_size``
the weight change is always a multiple of ``alpha``; the rules differ in what
they carry from batch to batch.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence, Tuple

import numpy as np

from .netparam import NetParam
from .types import Array, Gradient, RuleState

ADAM_EPSILON = 1e-7


class UpdateRule(Protocol):
    """Protocol implemented by the SGD, momentum and Adam update rules."""

    def init(self, params: Sequence[NetParam]) -> RuleState:
        """Initialise per-call state for ``params``."""

    def step(
        self,
        grads: Sequence[Gradient],
        state: RuleState,
        eta: float,
        batch_size: int,
        t: int,
    ) -> Tuple[List[NetParam], RuleState]:
        """Return the parameter changes and the (possibly updated) state."""


def _zeros_like_params(params: Sequence[NetParam]) -> Tuple[List[Array], List[Optional[Array]]]:
    weights = [np.zeros_like(param.w) for param in params]
    biases = [None if param.b is None else np.zeros_like(param.b) for param in params]
    return weights, biases


@dataclass
class SGDRule:
    """Plain stochastic gradient descent; nothing survives between batches."""

    def init(self, params: Sequence[NetParam]) -> RuleState:  # noqa: D401
        return RuleState()

    def step(
        self,
        grads: Sequence[Gradient],
        state: RuleState,
        eta: float,
        batch_size: int,
        t: int,
    ) -> Tuple[List[NetParam], RuleState]:
        alpha = eta / batch_size
        changes = [
            NetParam(grad.weights * alpha, None if grad.bias is None else grad.bias * eta)
            for grad in grads
        ]
        return changes, state


@dataclass
class MomentumRule:
    """SGD with an exponential moving average of the gradient.

    ``nu`` interpolates between SGD (``nu = 0``) and normalised stochastic
    heavy ball (``nu = 1``).
    """

    beta: float = 0.9
    nu: float = 0.9

    def init(self, params: Sequence[NetParam]) -> RuleState:
        moments, _ = _zeros_like_params(params)
        return RuleState(moments=moments)

    def step(
        self,
        grads: Sequence[Gradient],
        state: RuleState,
        eta: float,
        batch_size: int,
        t: int,
    ) -> Tuple[List[NetParam], RuleState]:
        alpha = eta / batch_size
        changes: List[NetParam] = []
        for idx, grad in enumerate(grads):
            p = self.beta * state.moments[idx] + (1.0 - self.beta) * grad.weights
            state.moments[idx] = p
            delta_w = ((1.0 - self.nu) * grad.weights + self.nu * p) * alpha
            delta_b = None if grad.bias is None else grad.bias * eta
            changes.append(NetParam(delta_w, delta_b))
        return changes, state


@dataclass
class AdamRule:
    """ADAptive Moment estimation; see https://arxiv.org/pdf/1412.6980.pdf."""

    beta1: float = 0.9
    beta2: float = 0.999
    epsilon: float = ADAM_EPSILON

    def init(self, params: Sequence[NetParam]) -> RuleState:
        moments, bias_moments = _zeros_like_params(params)
        second, bias_second = _zeros_like_params(params)
        return RuleState(
            moments=moments,
            bias_moments=bias_moments,
            second_moments=second,
            bias_second_moments=bias_second,
        )

    def step(
        self,
        grads: Sequence[Gradient],
        state: RuleState,
        eta: float,
        batch_size: int,
        t: int,
    ) -> Tuple[List[NetParam], RuleState]:
        alpha = eta / batch_size
        correct1 = 1.0 - self.beta1**t
        correct2 = 1.0 - self.beta2**t
        changes: List[NetParam] = []
        for idx, grad in enumerate(grads):
            p, v = self._moments(
                grad.weights, state.moments[idx], state.second_moments[idx]
            )
            state.moments[idx], state.second_moments[idx] = p, v
            delta_w = (p / correct1) / (np.sqrt(v / correct2) + self.epsilon) * alpha

            delta_b = None
            if grad.bias is not None:
                pb, vb = self._moments(
                    grad.bias, state.bias_moments[idx], state.bias_second_moments[idx]
                )
                state.bias_moments[idx], state.bias_second_moments[idx] = pb, vb
                delta_b = (pb / correct1) / (np.sqrt(vb / correct2) + self.epsilon) * alpha
            changes.append(NetParam(delta_w, delta_b))
        return changes, state

    def _moments(self, g: Array, p: Array, v: Array) -> Tuple[Array, Array]:
        p = self.beta1 * p + (1.0 - self.beta1) * g
        v = self.beta2 * v + (1.0 - self.beta2) * g**2
        return p, v


__all__ = ["UpdateRule", "SGDRule", "MomentumRule", "AdamRule", "ADAM_EPSILON"]
