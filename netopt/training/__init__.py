"""Training loops, hyper-parameters and stopping rules."""

from .config import DEFAULT_HPARAMS, HyperParameters, load_hyperparameters
from .metrics import regression_qof
from .monitor import LossMonitor
from .optimizers import (
    Optimizer,
    OptimizerAdam,
    OptimizerSGD,
    OptimizerSGDM,
    build_optimizer,
)
from .stopping import StoppingRule

__all__ = [
    "DEFAULT_HPARAMS",
    "HyperParameters",
    "LossMonitor",
    "Optimizer",
    "OptimizerAdam",
    "OptimizerSGD",
    "OptimizerSGDM",
    "StoppingRule",
    "build_optimizer",
    "load_hyperparameters",
    "regression_qof",
]
