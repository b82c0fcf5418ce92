"""netopt public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.netparam import NetParam, PlainMatrix, copy_params
from .core.types import OptimizeResult
from .errors import InvalidConfigurationError, NetOptError, NoConvergenceError
from .models import CNN1D, NeuralNet2L, NeuralNet3L, NeuralNetXL, NeuralNetXLT
from .training.config import DEFAULT_HPARAMS, HyperParameters, load_hyperparameters
from .training.optimizers import (
    Optimizer,
    OptimizerAdam,
    OptimizerSGD,
    OptimizerSGDM,
    build_optimizer,
)
from .training.stopping import StoppingRule
from .utils import make_dataset

__all__ = [
    "CNN1D",
    "DEFAULT_HPARAMS",
    "HyperParameters",
    "InvalidConfigurationError",
    "NetOptError",
    "NetParam",
    "NeuralNet2L",
    "NeuralNet3L",
    "NeuralNetXL",
    "NeuralNetXLT",
    "NoConvergenceError",
    "OptimizeResult",
    "Optimizer",
    "OptimizerAdam",
    "OptimizerSGD",
    "OptimizerSGDM",
    "PlainMatrix",
    "StoppingRule",
    "activations",
    "build_optimizer",
    "copy_params",
    "load_hyperparameters",
    "make_dataset",
    "types",
]
