"""Regression quality-of-fit metrics."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from ..core.types import Array

QOF_METRICS: Sequence[str] = ("sse", "mse", "rmse", "mae", "r2")


def sse(y: Array, yp: Array) -> float:
    """Sum of squared errors over every entry."""

    return float(np.sum((np.asarray(y) - np.asarray(yp)) ** 2))


def compute_metric(name: str, y: Array, yp: Array) -> float:
    key = name.lower()
    resid = y - yp
    if key == "sse":
        return float(np.sum(resid**2))
    if key == "mse":
        return float(np.mean(resid**2))
    if key == "rmse":
        return float(np.sqrt(np.mean(resid**2)))
    if key == "mae":
        return float(np.mean(np.abs(resid)))
    if key == "r2":
        ss_res = float(np.sum(resid**2))
        ss_tot = float(np.sum((y - np.mean(y)) ** 2))
        return 1.0 if ss_tot == 0 else 1.0 - ss_res / ss_tot
    raise ValueError(f"Unknown metric: {name}")


def regression_qof(y: Array, yp: Array) -> Dict[str, List[float]]:
    """Return each quality-of-fit metric as a list with one entry per output column."""

    y = np.asarray(y, dtype=np.float64)
    yp = np.asarray(yp, dtype=np.float64)
    if y.ndim == 1:
        y = y[:, None]
    if yp.ndim == 1:
        yp = yp[:, None]
    if y.shape != yp.shape:
        raise ValueError(f"target shape {y.shape} does not match prediction shape {yp.shape}")
    return {
        name: [compute_metric(name, y[:, k], yp[:, k]) for k in range(y.shape[1])]
        for name in QOF_METRICS
    }


__all__ = ["QOF_METRICS", "compute_metric", "regression_qof", "sse"]
