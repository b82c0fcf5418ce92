"""Exception hierarchy for netopt."""

from __future__ import annotations


class NetOptError(Exception):
    """Base class for errors raised by netopt itself."""


class InvalidConfigurationError(NetOptError, ValueError):
    """Hyper-parameters or call arguments that cannot drive a training loop."""


class NoConvergenceError(NetOptError, RuntimeError):
    """Raised when no learning-rate trial produced a finite loss."""


__all__ = ["NetOptError", "InvalidConfigurationError", "NoConvergenceError"]
