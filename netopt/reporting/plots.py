"""Headless-safe loss curve plotting."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping, Tuple


class PlotAdapter:
    """Collect per-epoch losses and optionally write them as a matplotlib figure."""

    def __init__(
        self,
        run_dir: str | Path,
        enable_plots: bool = False,
        *,
        filename: str = "loss.png",
        title: str = "Training Curve",
    ):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.plot_path = self.run_dir / filename
        self.title = title
        self._history: List[Tuple[int, float]] = []
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        self._history.append((epoch, float(metrics.get("loss", 0.0))))

    @property
    def history(self) -> List[Tuple[int, float]]:
        return list(self._history)

    def close(self) -> None:
        if not self.enable_plots or not self._history:
            return
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        epochs, losses = zip(*self._history)
        fig, ax = plt.subplots()
        ax.plot(epochs, losses)
        ax.set_xlabel("Epoch")
        ax.set_ylabel("SSE")
        ax.set_title(self.title)
        fig.savefig(self.plot_path)
        plt.close(fig)

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
