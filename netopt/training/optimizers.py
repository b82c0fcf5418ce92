"""Mini-batch backpropagation optimizers with early stopping.

One generic loop trains a feed-forward network of any depth.  The optimizer
subclasses only decide which :class:`~netopt.core.rules.UpdateRule` turns
the per-batch gradients into parameter changes.  ``optimize2`` and
``optimize3`` are the same loop restricted to one and two parameter layers.
"""

from __future__ import annotations

import math
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Type, Union

import numpy as np
from loguru import logger

from ..core.activations import ActivationFamily
from ..core.initializers import init_weights
from ..core.netparam import NetParam, copy_params
from ..core.permutation import PermutationGenerator
from ..core.rules import AdamRule, MomentumRule, SGDRule, UpdateRule
from ..core.types import Array, Gradient, OptimizeResult, RuleState
from ..errors import InvalidConfigurationError, NoConvergenceError
from .config import ADJUST_FACTOR, ADJUST_PERIOD, DEFAULT_HPARAMS, NSTEPS, HyperParameters
from .monitor import LossMonitor
from .stopping import StoppingRule

Params = Union[NetParam, Sequence[NetParam]]
Families = Union[ActivationFamily, Sequence[ActivationFamily]]
OptimizeFn = Callable[..., OptimizeResult]


def _as_matrix(v: Array, name: str) -> Array:
    arr = np.asarray(v, dtype=np.float64)
    if arr.ndim == 1:
        arr = arr[:, None]
    if arr.ndim != 2:
        raise InvalidConfigurationError(f"{name} must be a vector or matrix, got ndim={arr.ndim}")
    return arr


def _as_list(items, kind) -> list:
    if isinstance(items, kind):
        return [items]
    return list(items)


def forward(x: Array, params: Sequence[NetParam], families: Sequence[ActivationFamily]) -> List[Array]:
    """Return the activations ``z[0] = x`` through ``z[nl]`` (the prediction)."""

    z = [x]
    for param, family in zip(params, families):
        z.append(family.f(param.apply(z[-1])))
    return z


def predict(x: Array, params: Sequence[NetParam], families: Sequence[ActivationFamily]) -> Array:
    return forward(x, params, families)[-1]


class Optimizer:
    """Base optimizer: epoch loop, mini-batching, early stopping and learning-rate growth.

    Parameters
    ----------
    hparams:
        Default hyper-parameters; every entry point also accepts an override.
    seed:
        Seed for the generator behind batch permutations and weight re-initialisation.
    rando:
        When false, batches come from the fixed stream ``default_rng(0)``.
    callbacks:
        Objects with ``on_epoch(epoch, metrics)`` (or plain callables) notified
        after every epoch with the full-dataset ``loss`` and current ``eta``.
    """

    name = "base"

    def __init__(
        self,
        hparams: HyperParameters = DEFAULT_HPARAMS,
        seed: int | None = None,
        rando: bool = True,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.hparams = hparams
        self.seed = seed
        self.rando = rando
        self.callbacks = list(callbacks or [])
        self.monitor = LossMonitor()
        self._rng = np.random.default_rng(seed)

    # ------------------------------------------------------------------
    # Hooks

    def make_rule(self, hparams: HyperParameters) -> UpdateRule:
        raise NotImplementedError

    # ------------------------------------------------------------------
    # Public API

    def perm_generator(self, m: int, rando: bool = True) -> PermutationGenerator:
        if rando:
            rng = np.random.default_rng(int(self._rng.integers(0, 2**32)))
        else:
            rng = np.random.default_rng(0)
        return PermutationGenerator(m, rng)

    @property
    def losses(self) -> List[float]:
        return self.monitor.losses

    def optimize(
        self,
        x: Array,
        y: Array,
        params: Params,
        eta: float | None = None,
        families: Families = (),
        hparams: HyperParameters | None = None,
    ) -> OptimizeResult:
        """Train ``params`` in place on ``(x, y)`` and return the stopping loss and epoch."""

        hp = (hparams or self.hparams).validate()
        x = _as_matrix(x, "x")
        y = _as_matrix(y, "y")
        layers: List[NetParam] = _as_list(params, NetParam)
        funcs: List[ActivationFamily] = _as_list(families, ActivationFamily)
        self._check(x, y, layers, funcs)

        eta0 = float(hp.eta if eta is None else eta)
        if not eta0 > 0.0:
            raise InvalidConfigurationError(f"eta must be positive, got {eta0}")

        m = x.shape[0]
        batch_size = min(hp.batch_size, m)
        n_batches = m // batch_size
        if n_batches < 1:
            raise InvalidConfigurationError(f"no full batch of size {batch_size} in {m} instances")
        logger.debug("{}.optimize: bSize = {}, nB = {}", type(self).__name__, batch_size, n_batches)

        rule = self.make_rule(hp)
        state = rule.init(layers)
        stopper = StoppingRule(hp.up_limit)
        permgen = self.perm_generator(m, self.rando)
        self.monitor.reset_loss()

        current_eta = eta0
        for epoch in range(1, hp.max_epochs + 1):
            for ib in permgen.batches(n_batches, drop_remainder=hp.drop_remainder):
                state = self._train_batch(x[ib], y[ib], layers, funcs, rule, state, current_eta, epoch)

            sse = self._sse(x, y, layers, funcs)
            self.monitor.collect_loss(sse)
            self._emit_epoch(epoch, {"loss": sse, "eta": current_eta})

            best, best_sse = stopper.stop_when(layers, sse)
            if best is not None:
                for param, snap in zip(layers, best):
                    param.set(snap)
                logger.debug("early stop at epoch {} with best sse = {}", epoch, best_sse)
                return OptimizeResult(best_sse, epoch - hp.up_limit, eta0)

            if epoch % ADJUST_PERIOD == 0:
                current_eta *= ADJUST_FACTOR

        return OptimizeResult(self._sse(x, y, layers, funcs), hp.max_epochs, eta0)

    def optimize2(
        self,
        x: Array,
        y: Array,
        params: Params,
        eta: float | None = None,
        families: Families = (),
        hparams: HyperParameters | None = None,
    ) -> OptimizeResult:
        """Train a two-layer (input/output) network with a single parameter layer."""

        layers = _as_list(params, NetParam)
        if len(layers) != 1:
            raise InvalidConfigurationError(f"optimize2 expects one parameter layer, got {len(layers)}")
        return self.optimize(x, y, layers, eta, families, hparams=hparams)

    def optimize3(
        self,
        x: Array,
        y: Array,
        params: Params,
        eta: float | None = None,
        families: Families = (),
        hparams: HyperParameters | None = None,
    ) -> OptimizeResult:
        """Train a three-layer network (one hidden layer)."""

        layers = _as_list(params, NetParam)
        if len(layers) != 2:
            raise InvalidConfigurationError(f"optimize3 expects two parameter layers, got {len(layers)}")
        return self.optimize(x, y, layers, eta, families, hparams=hparams)

    def auto_optimize(
        self,
        x: Array,
        y: Array,
        params: Params,
        eta_range: Tuple[float, float],
        families: Families,
        opti: OptimizeFn | None = None,
        hparams: HyperParameters | None = None,
    ) -> OptimizeResult:
        """Grid-search the learning rate over ``NSTEPS + 1`` evenly spaced values.

        Every trial starts from freshly initialised weights.  Trials whose loss
        is not finite are skipped.  On return ``params`` hold the best trial's
        values and the result's ``eta`` is the learning rate that produced them.
        """

        lo, hi = (float(v) for v in eta_range)
        if not 0.0 < lo <= hi:
            raise InvalidConfigurationError(f"eta range must satisfy 0 < lo <= hi, got {eta_range}")
        layers: List[NetParam] = _as_list(params, NetParam)
        opti = opti or self.optimize
        step = (hi - lo) / NSTEPS

        best = OptimizeResult(math.inf, -1, math.nan)
        best_params: Optional[List[NetParam]] = None
        for i in range(NSTEPS + 1):
            eta = lo + i * step
            for param in layers:
                init_weights(param, self._rng)
            result = opti(x, y, layers, eta, families, hparams=hparams)
            if not math.isfinite(result.loss):
                logger.warning("auto_optimize: eta = {} produced loss {}; skipping", eta, result.loss)
                continue
            logger.info("auto_optimize: eta = {}, sse = {}, epochs = {}", eta, result.loss, result.epochs)
            if result.loss < best.loss:
                best = OptimizeResult(result.loss, result.epochs, eta)
                best_params = copy_params(layers)

        if best_params is None:
            raise NoConvergenceError(f"no learning rate in [{lo}, {hi}] produced a finite loss")
        for param, snap in zip(layers, best_params):
            param.set(snap)
        logger.info("auto_optimize: best eta = {} with sse = {}", best.eta, best.loss)
        return best

    # ------------------------------------------------------------------
    # Internal helpers

    @staticmethod
    def _check(
        x: Array, y: Array, params: Sequence[NetParam], families: Sequence[ActivationFamily]
    ) -> None:
        if x.shape[0] == 0:
            raise InvalidConfigurationError("cannot train on an empty dataset")
        if y.shape[0] != x.shape[0]:
            raise InvalidConfigurationError(
                f"x has {x.shape[0]} instances but y has {y.shape[0]}"
            )
        if not params:
            raise InvalidConfigurationError("need at least one parameter layer")
        if len(params) != len(families):
            raise InvalidConfigurationError(
                f"{len(params)} parameter layers but {len(families)} activation families"
            )

    @staticmethod
    def _sse(x: Array, y: Array, params: Sequence[NetParam], families: Sequence[ActivationFamily]) -> float:
        return float(np.sum((y - predict(x, params, families)) ** 2))

    @staticmethod
    def _train_batch(
        x: Array,
        y: Array,
        params: Sequence[NetParam],
        families: Sequence[ActivationFamily],
        rule: UpdateRule,
        state: RuleState,
        eta: float,
        t: int,
    ) -> RuleState:
        z = forward(x, params, families)
        nl = len(params)
        eps = z[-1] - y
        deltas: List[Array] = [eps] * nl
        deltas[-1] = families[-1].d(z[-1]) * eps
        for l in range(nl - 2, -1, -1):
            deltas[l] = families[l].d(z[l + 1]) * (deltas[l + 1] @ params[l + 1].w.T)

        grads = [
            Gradient(z[l].T @ deltas[l], None if params[l].b is None else deltas[l].mean(axis=0))
            for l in range(nl)
        ]
        changes, state = rule.step(grads, state, eta, x.shape[0], t)
        for param, change in zip(params, changes):
            param -= change
        return state

    def _emit_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


class OptimizerSGD(Optimizer):
    """Stochastic gradient descent."""

    name = "sgd"

    def make_rule(self, hparams: HyperParameters) -> UpdateRule:
        return SGDRule()


class OptimizerSGDM(Optimizer):
    """Stochastic gradient descent with momentum (quasi-hyperbolic when ``nu < 1``)."""

    name = "sgdm"

    def make_rule(self, hparams: HyperParameters) -> UpdateRule:
        return MomentumRule(beta=hparams.beta, nu=hparams.nu)


class OptimizerAdam(Optimizer):
    """Adam with bias-corrected first and second moments."""

    name = "adam"

    def make_rule(self, hparams: HyperParameters) -> UpdateRule:
        return AdamRule(beta1=hparams.beta, beta2=hparams.beta2)


OPTIMIZERS: Dict[str, Type[Optimizer]] = {
    OptimizerSGD.name: OptimizerSGD,
    OptimizerSGDM.name: OptimizerSGDM,
    OptimizerAdam.name: OptimizerAdam,
}


def build_optimizer(name: str, **kwargs) -> Optimizer:
    """Instantiate the optimizer registered as ``name`` (``sgd``, ``sgdm`` or ``adam``)."""

    try:
        cls = OPTIMIZERS[name.lower()]
    except KeyError as exc:
        available = ", ".join(sorted(OPTIMIZERS))
        raise InvalidConfigurationError(f"Unknown optimizer '{name}'. Available: {available}") from exc
    return cls(**kwargs)


__all__ = [
    "OPTIMIZERS",
    "Optimizer",
    "OptimizerAdam",
    "OptimizerSGD",
    "OptimizerSGDM",
    "build_optimizer",
    "forward",
    "predict",
]
