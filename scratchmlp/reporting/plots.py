"""Training curves rendered with a headless matplotlib backend."""

from __future__ import annotations

from pathlib import Path
from typing import Dict, List, Mapping, Tuple

Series = List[Tuple[int, float]]


class PlotAdapter:
    """Epoch sink that draws the loss curve next to the evaluated metrics.

    The loss arrives every epoch; other metrics only on evaluation epochs, so
    each one is kept as its own sparse series and drawn with markers.
    """

    def __init__(self, run_dir: str | Path, enable_plots: bool = False):
        self.enable_plots = enable_plots
        self.run_dir = Path(run_dir)
        self.loss: Series = []
        self.evaluated: Dict[str, Series] = {}
        if self.enable_plots:
            self.run_dir.mkdir(parents=True, exist_ok=True)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if not self.enable_plots:
            return
        for key, value in metrics.items():
            if key == "loss":
                self.loss.append((epoch, float(value)))
            else:
                self.evaluated.setdefault(key, []).append((epoch, float(value)))

    def close(self) -> Path | None:
        """Write ``loss.png`` and return its path, or ``None`` when nothing was drawn."""

        if not self.enable_plots or not self.loss:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt  # imported lazily for headless safety

        panels = 2 if self.evaluated else 1
        fig, axes = plt.subplots(1, panels, figsize=(5 * panels, 4), squeeze=False)
        loss_ax = axes[0][0]
        epochs, losses = zip(*self.loss)
        loss_ax.plot(epochs, losses)
        if min(losses) > 0:
            loss_ax.set_yscale("log")
        loss_ax.set_xlabel("Epoch")
        loss_ax.set_ylabel("Loss")
        loss_ax.set_title("Training loss")

        if self.evaluated:
            metric_ax = axes[0][1]
            for name in sorted(self.evaluated):
                xs, ys = zip(*self.evaluated[name])
                metric_ax.plot(xs, ys, marker="o", label=name)
            metric_ax.set_xlabel("Epoch")
            metric_ax.set_title("Evaluated metrics")
            metric_ax.legend()

        fig.tight_layout()
        plot_path = self.run_dir / "loss.png"
        fig.savefig(plot_path)
        plt.close(fig)
        return plot_path

    __call__ = on_epoch


__all__ = ["PlotAdapter"]
