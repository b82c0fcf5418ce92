"""Thin regression network wrappers around the netopt optimizers."""

from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np
from loguru import logger

from .core.activations import ActivationFamily, f_id, f_reLU, f_sigmoid, rescale_x, rescale_y
from .core.conv import conv
from .core.initializers import weight_mat, weight_vec
from .core.netparam import NetParam
from .core.types import Array, OptimizeResult
from .errors import InvalidConfigurationError
from .training.config import DEFAULT_HPARAMS, HyperParameters
from .training.metrics import regression_qof
from .training.monitor import LossMonitor
from .training.optimizers import Optimizer, build_optimizer, predict

Inverse = Callable[[Array], Array]
QoF = Dict[str, List[float]]


def _matrix(v: Array) -> Array:
    arr = np.asarray(v, dtype=np.float64)
    return arr[:, None] if arr.ndim == 1 else arr


class NeuralNet:
    """Shared behaviour of the fully connected networks.

    Subclasses build the initial parameter layers and choose the optimizer
    entry point; training, prediction and testing live here.
    """

    default_families: Tuple[ActivationFamily, ...] = (f_sigmoid,)

    def __init__(
        self,
        x: Array,
        y: Array,
        families: Sequence[ActivationFamily] | None = None,
        hparams: HyperParameters = DEFAULT_HPARAMS,
        optimizer: Union[str, Optimizer] = "sgdm",
        seed: int | None = None,
        itran: Optional[Inverse] = None,
    ) -> None:
        self.x = _matrix(x)
        self.y = _matrix(y)
        self.families: List[ActivationFamily] = list(families or self.default_families)
        self.hparams = hparams.validate()
        self.itran = itran
        self._rng = np.random.default_rng(seed)
        if isinstance(optimizer, Optimizer):
            self.optimizer = optimizer
        else:
            self.optimizer = build_optimizer(optimizer, hparams=self.hparams, seed=seed)
        self.params: List[NetParam] = []
        self._epochs = 0

    @property
    def n(self) -> int:
        return self.x.shape[1]

    @property
    def ny(self) -> int:
        return self.y.shape[1]

    @property
    def model_name(self) -> str:
        names = "_".join(family.name for family in self.families)
        return f"{type(self).__name__}_{names}"

    @property
    def parameters(self) -> List[NetParam]:
        return self.params

    @property
    def epochs(self) -> int:
        return self._epochs

    @property
    def losses(self) -> List[float]:
        return self.optimizer.losses

    def _entry(self) -> Callable[..., OptimizeResult]:
        return self.optimizer.optimize

    def _data(self, x: Array | None, y: Array | None) -> Tuple[Array, Array]:
        return (self.x if x is None else _matrix(x)), (self.y if y is None else _matrix(y))

    def train(self, x: Array | None = None, y: Array | None = None) -> OptimizeResult:
        """Fit the parameters with the configured optimizer and learning rate."""

        x_, y_ = self._data(x, y)
        result = self._entry()(x_, y_, self.params, self.hparams.eta, self.families, hparams=self.hparams)
        self._epochs = result.epochs
        logger.info("{}: sse = {}, epochs = {}", self.model_name, result.loss, result.epochs)
        return result

    def train2(self, x: Array | None = None, y: Array | None = None) -> OptimizeResult:
        """Fit the parameters, also searching the learning rate around ``eta``."""

        x_, y_ = self._data(x, y)
        eta = self.hparams.eta
        result = self.optimizer.auto_optimize(
            x_, y_, self.params, (0.25 * eta, 4.0 * eta), self.families,
            opti=self._entry(), hparams=self.hparams,
        )
        self._epochs = result.epochs
        logger.info("{}: best eta = {}, sse = {}", self.model_name, result.eta, result.loss)
        return result

    def predict(self, v: Array | None = None) -> Array:
        """Predict for one input vector or a matrix of inputs (one per row)."""

        if v is None:
            return predict(self.x, self.params, self.families)
        arr = np.asarray(v, dtype=np.float64)
        if arr.ndim == 1:
            return predict(arr[None, :], self.params, self.families)[0]
        return predict(arr, self.params, self.families)

    def test(self, x: Array | None = None, y: Array | None = None) -> Tuple[Array, QoF]:
        """Return the predictions and per-output quality of fit, in original units."""

        x_, y_ = self._data(x, y)
        yp = self.predict(x_)
        if self.itran is not None:
            y_, yp = self.itran(y_), self.itran(yp)
        return yp, regression_qof(y_, yp)

    @classmethod
    def rescale(
        cls,
        x: Array,
        y: Array,
        families: Sequence[ActivationFamily] | None = None,
        **kwargs,
    ) -> "NeuralNet":
        """Build a network on inputs and responses scaled to the activations' ranges."""

        families = list(families or cls.default_families)
        x_s = rescale_x(_matrix(x), families[0])
        itran = None
        y_s = _matrix(y)
        if families[-1].bounds is not None:
            y_s, itran = rescale_y(y_s, families[-1])
        return cls(x_s, y_s, families=families, itran=itran, **kwargs)


class NeuralNet2L(NeuralNet):
    """Input and output layers only: one weight matrix, no bias."""

    default_families = (f_sigmoid,)

    def __init__(self, x: Array, y: Array, families: Sequence[ActivationFamily] | None = None, **kwargs) -> None:
        super().__init__(x, y, families, **kwargs)
        if len(self.families) != 1:
            raise InvalidConfigurationError("NeuralNet2L takes exactly one activation family")
        self.params = [NetParam(weight_mat(self.n, self.ny, self._rng))]
        logger.debug("Create a NeuralNet2L with {} input and {} output nodes", self.n, self.ny)

    def _entry(self) -> Callable[..., OptimizeResult]:
        return self.optimizer.optimize2


class NeuralNet3L(NeuralNet):
    """One hidden layer of ``nz`` nodes (default ``2n + 1``) with biases."""

    default_families = (f_sigmoid, f_id)

    def __init__(
        self,
        x: Array,
        y: Array,
        families: Sequence[ActivationFamily] | None = None,
        nz: int | None = None,
        **kwargs,
    ) -> None:
        super().__init__(x, y, families, **kwargs)
        if len(self.families) != 2:
            raise InvalidConfigurationError("NeuralNet3L takes exactly two activation families")
        self.nz = nz if nz is not None and nz >= 1 else 2 * self.n + 1
        self.params = [
            NetParam(weight_mat(self.n, self.nz, self._rng), np.zeros(self.nz)),
            NetParam(weight_mat(self.nz, self.ny, self._rng), np.zeros(self.ny)),
        ]
        logger.debug(
            "Create a NeuralNet3L with {} input, {} hidden and {} output nodes", self.n, self.nz, self.ny
        )

    def _entry(self) -> Callable[..., OptimizeResult]:
        return self.optimizer.optimize3


class NeuralNetXL(NeuralNet):
    """Any number of hidden layers; one activation family per parameter layer."""

    default_families = (f_sigmoid, f_sigmoid, f_id)

    def __init__(
        self,
        x: Array,
        y: Array,
        families: Sequence[ActivationFamily] | None = None,
        nz: Sequence[int] | None = None,
        **kwargs,
    ) -> None:
        super().__init__(x, y, families, **kwargs)
        nl = len(self.families)
        if nl < 2:
            raise InvalidConfigurationError(f"NeuralNetXL needs at least two layers, got {nl}")
        if nz is None:
            nz = [max(1, (2 * self.n + 1) // l) for l in range(1, nl)]
        if len(nz) != nl - 1:
            raise InvalidConfigurationError(
                f"{len(nz)} hidden sizes given for {nl - 1} hidden layers"
            )
        self.nz = list(nz)
        self.sizes = [self.n, *self.nz, self.ny]
        self.params = [
            NetParam(weight_mat(rows, cols, self._rng), np.zeros(cols))
            for rows, cols in zip(self.sizes[:-1], self.sizes[1:])
        ]
        logger.debug("Create a {} with layer sizes {}", type(self).__name__, self.sizes)


class NeuralNetXLT(NeuralNetXL):
    """A NeuralNetXL whose layer ``l_tran`` starts from a layer of another network.

    The transferred layer is trimmed to the leading block that fits this
    network; the remaining layers are initialised as usual.
    """

    def __init__(
        self,
        x: Array,
        y: Array,
        families: Sequence[ActivationFamily] | None = None,
        nz: Sequence[int] | None = None,
        l_tran: int = 1,
        transfer: NetParam | None = None,
        **kwargs,
    ) -> None:
        super().__init__(x, y, families, nz, **kwargs)
        if not 0 <= l_tran < len(self.params):
            raise InvalidConfigurationError(
                f"transfer layer {l_tran} outside 0..{len(self.params) - 1}"
            )
        self.l_tran = l_tran
        if transfer is not None:
            layer = self.params[l_tran]
            trimmed = self.trim(transfer)
            if trimmed.w.shape != layer.w.shape:
                raise InvalidConfigurationError(
                    f"transferred layer {transfer.w.shape} is smaller than layer {l_tran} {layer.w.shape}"
                )
            # a donor without bias keeps the fresh zero bias
            layer.set(trimmed.w, layer.b if trimmed.b is None else trimmed.b)
            logger.debug("Transfer layer {} trimmed to {}", l_tran, trimmed.w.shape)

    def trim(self, tl: NetParam, lt: int | None = None) -> NetParam:
        """Return the leading block of ``tl`` that fits parameter layer ``lt``."""

        lt = self.l_tran if lt is None else lt
        return tl.trim(self.sizes[lt], self.sizes[lt + 1])


class CNN1D:
    """A single 1D cofilter feeding a fully connected output layer.

    ``train`` is plain full-batch gradient descent that stops as soon as the
    sum of squared errors stops decreasing.
    """

    def __init__(
        self,
        x: Array,
        y: Array,
        nc: int = 3,
        f: ActivationFamily = f_reLU,
        f1: ActivationFamily = f_reLU,
        hparams: HyperParameters = DEFAULT_HPARAMS,
        seed: int | None = None,
        itran: Optional[Inverse] = None,
        c: Array | None = None,
        b: NetParam | None = None,
    ) -> None:
        self.x = _matrix(x)
        self.y = _matrix(y)
        self.nc = nc
        self.f, self.f1 = f, f1
        self.hparams = hparams.validate()
        self.itran = itran
        self.monitor = LossMonitor()
        self._epochs = 0

        n, ny = self.x.shape[1], self.y.shape[1]
        self.nz = n - nc + 1
        if self.nz < 2:
            raise InvalidConfigurationError(f"the size of the hidden layer nz = {self.nz} is too small")
        rng = np.random.default_rng(seed)
        self.c = weight_vec(nc, rng) if c is None else np.array(c, dtype=np.float64)
        self.b = NetParam(weight_mat(self.nz, ny, rng), np.zeros(ny)) if b is None else b
        logger.debug("Create a CNN1D with {} input, {} hidden and {} output nodes", n, self.nz, ny)

    @property
    def model_name(self) -> str:
        return f"CNN1D_{self.f.name}_{self.f1.name}"

    @property
    def parameters(self) -> List[NetParam]:
        return [NetParam(self.c[:, None].copy()), self.b]

    @property
    def epochs(self) -> int:
        return self._epochs

    @property
    def losses(self) -> List[float]:
        return self.monitor.losses

    def train(self, x: Array | None = None, y: Array | None = None) -> OptimizeResult:
        x_ = self.x if x is None else _matrix(x)
        y_ = self.y if y is None else _matrix(y)
        eta = self.hparams.eta
        logger.debug("{}.train: eta = {}", self.model_name, eta)
        self.monitor.reset_loss()

        sse0 = float("inf")
        sse = sse0
        epoch = 0
        for epoch in range(1, self.hparams.max_epochs + 1):
            phi = self.f.f(conv(self.c, x_))
            yp = self.f1.f(self.b.apply(phi))
            eps = yp - y_
            delta1 = self.f1.d(yp) * eps
            delta0 = self.f.d(phi) * (delta1 @ self.b.w.T)
            self.update_param(x_, phi, delta0, delta1, eta, self.c, self.b)

            sse = float(np.sum((y_ - yp) ** 2))
            self.monitor.collect_loss(sse)
            logger.debug("sse for epoch {}: sse = {}", epoch, sse)
            if sse >= sse0:
                break
            sse0 = sse
        self._epochs = epoch
        return OptimizeResult(sse, epoch, eta)

    @staticmethod
    def update_param(
        x: Array, z: Array, delta0: Array, delta1: Array, eta: float, c: Array, b: NetParam
    ) -> None:
        """Update the cofilter ``c`` and dense layer ``b`` in place."""

        m = x.shape[0]
        windows = np.lib.stride_tricks.sliding_window_view(x, len(c), axis=-1)
        c -= np.einsum("ihj,ih->j", windows, delta0) / m * eta
        bias = None if b.b is None else delta1.mean(axis=0) * eta
        b -= NetParam(z.T @ delta1 * eta, bias)

    def predict(self, z: Array | None = None) -> Array:
        z = self.x if z is None else np.asarray(z, dtype=np.float64)
        if z.ndim == 1:
            return self.f1.f(self.b.dot(self.f.f(conv(self.c, z))))
        return self.f1.f(self.b.apply(self.f.f(conv(self.c, z))))

    def test(self, x: Array | None = None, y: Array | None = None) -> Tuple[Array, QoF]:
        x_ = self.x if x is None else _matrix(x)
        y_ = self.y if y is None else _matrix(y)
        yp = self.predict(x_)
        if self.itran is not None:
            y_, yp = self.itran(y_), self.itran(yp)
        return yp, regression_qof(y_, yp)

    @classmethod
    def rescale(
        cls,
        x: Array,
        y: Array,
        nc: int = 3,
        f: ActivationFamily = f_reLU,
        f1: ActivationFamily = f_reLU,
        **kwargs,
    ) -> "CNN1D":
        x_s = rescale_x(_matrix(x), f)
        itran = None
        y_s = _matrix(y)
        if f1.bounds is not None:
            y_s, itran = rescale_y(y_s, f1)
        return cls(x_s, y_s, nc=nc, f=f, f1=f1, itran=itran, **kwargs)


__all__ = ["CNN1D", "NeuralNet", "NeuralNet2L", "NeuralNet3L", "NeuralNetXL", "NeuralNetXLT"]
