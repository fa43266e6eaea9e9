"""Evaluation metrics computed on network predictions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping

import numpy as np

from ..core.types import Array, DimensionMismatchError


@dataclass(frozen=True)
class MetricResult:
    name: str
    value: float


def default_metrics(task_type: str) -> List[str]:
    if task_type == "multiclass":
        return ["accuracy"]
    if task_type == "regression":
        return ["mse"]
    raise ValueError(f"Unknown task type: {task_type}")


def _class_indices(values: Array) -> Array:
    arr = np.asarray(values)
    if arr.ndim == 2 and arr.shape[1] > 1:
        return np.argmax(arr, axis=1)
    return arr.reshape(-1).astype(int)


def accuracy(predictions: Array, targets: Array) -> float:
    """Share of rows whose argmax matches the target class."""

    pred_idx = np.argmax(np.atleast_2d(predictions), axis=1)
    targ_idx = _class_indices(targets)
    if pred_idx.shape != targ_idx.shape:
        raise DimensionMismatchError(
            f"{pred_idx.shape[0]} predictions for {targ_idx.shape[0]} targets"
        )
    return float(np.mean(pred_idx == targ_idx))


def mse(predictions: Array, targets: Array) -> float:
    p = np.asarray(predictions, dtype=np.float64)
    t = np.asarray(targets, dtype=np.float64)
    if p.shape != t.shape:
        raise DimensionMismatchError(f"Prediction shape {p.shape} != target shape {t.shape}")
    return float(np.mean((p - t) ** 2))


_METRICS = {"accuracy": accuracy, "mse": mse}


def compute_metric(name: str, predictions: Array, targets: Array) -> MetricResult:
    key = name.lower()
    if key not in _METRICS:
        raise KeyError(f"Unknown metric: {name}")
    return MetricResult(name=key, value=_METRICS[key](predictions, targets))


def compute_metrics(names: Iterable[str], predictions: Array, targets: Array) -> Mapping[str, float]:
    results: Dict[str, float] = {}
    for name in names:
        metric = compute_metric(name, predictions, targets)
        results[metric.name] = metric.value
    return results


__all__ = ["MetricResult", "accuracy", "compute_metric", "compute_metrics", "default_metrics", "mse"]
