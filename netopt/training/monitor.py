"""Loss curve collection for optimizers and models."""

from __future__ import annotations

from pathlib import Path
from typing import List

from ..reporting.plots import PlotAdapter


class LossMonitor:
    """Keep the per-epoch loss of the most recent training call."""

    def __init__(self) -> None:
        self._losses: List[float] = []

    def collect_loss(self, loss: float) -> None:
        self._losses.append(float(loss))

    @property
    def losses(self) -> List[float]:
        return list(self._losses)

    def reset_loss(self) -> None:
        self._losses.clear()

    def plot_loss(self, run_dir: str | Path, name: str = "loss") -> Path:
        """Write the collected curve to ``run_dir/<name>.png`` and return its path."""

        plotter = PlotAdapter(run_dir, enable_plots=True, filename=f"{name}.png")
        for epoch, loss in enumerate(self._losses, start=1):
            plotter.on_epoch(epoch, {"loss": loss})
        plotter.close()
        return plotter.plot_path


__all__ = ["LossMonitor"]
