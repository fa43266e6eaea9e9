"""Epoch metric sinks attached to :meth:`Network.train` as callbacks."""

from __future__ import annotations

import csv
import json
from pathlib import Path
from typing import Dict, Mapping

from .artifacts import git_sha


def _numeric(metrics: Mapping[str, object]) -> Dict[str, float]:
    return {k: float(v) for k, v in metrics.items() if isinstance(v, (int, float))}


class JsonlSink:
    """Append one JSON record per epoch."""

    def __init__(
        self,
        path: str | Path,
        *,
        split: str = "train",
        seed: int | None = None,
        sha: str | None = None,
    ) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self.seed = seed
        self.sha = sha or git_sha()

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        record: Dict[str, object] = {
            "epoch": int(epoch),
            "split": self.split,
            "seed": self.seed,
            "sha": self.sha,
        }
        record.update(_numeric(metrics))
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(record) + "\n")

    __call__ = on_epoch


class CsvSink:
    """Write epoch metrics to CSV; the header comes from the first record."""

    def __init__(self, path: str | Path, *, split: str = "train") -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text("")
        self.split = split
        self._fieldnames: list[str] | None = None

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        row: Dict[str, object] = {"epoch": int(epoch), "split": self.split}
        row.update(_numeric(metrics))
        if self._fieldnames is None:
            self._fieldnames = sorted(row)
        with self.path.open("a", encoding="utf-8", newline="") as handle:
            writer = csv.DictWriter(handle, fieldnames=self._fieldnames, extrasaction="ignore")
            if handle.tell() == 0:
                writer.writeheader()
            writer.writerow(row)

    __call__ = on_epoch


class MetricsCapture:
    """Keep epoch metrics in memory."""

    def __init__(self) -> None:
        self.history: list[tuple[int, Mapping[str, float]]] = []
        self.last: Mapping[str, float] = {}

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        payload = _numeric(metrics)
        self.history.append((int(epoch), payload))
        self.last = payload


__all__ = ["CsvSink", "JsonlSink", "MetricsCapture"]
