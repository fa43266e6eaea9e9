"""Loss functions and the registry used by the training loop."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Protocol

import numpy as np

from ..core.types import Array, DimensionMismatchError

EPSILON = 1e-15


class LossFunction(Protocol):
    """Scalar loss and dL/dy for a single example and for a batch."""

    name: str

    def calculate_loss(self, predicted: Array, target: Array) -> float: ...

    def calculate_batch_loss(self, predicted: Array, target: Array) -> float: ...

    def derive(self, predicted: Array, target: Array) -> Array: ...

    def derive_batch(self, predicted: Array, target: Array) -> Array: ...


def _pair(predicted: Array, target: Array, ndim: int) -> tuple[Array, Array]:
    p = np.asarray(predicted, dtype=np.float64)
    t = np.asarray(target, dtype=np.float64)
    if ndim == 2:
        p, t = np.atleast_2d(p), np.atleast_2d(t)
    if p.shape != t.shape:
        raise DimensionMismatchError(
            f"Predicted shape {p.shape} does not match target shape {t.shape}"
        )
    if p.size == 0:
        raise DimensionMismatchError("Loss of empty predictions")
    return p, t


@dataclass(frozen=True)
class MeanSquaredError:
    name: str = "mse"

    def calculate_loss(self, predicted: Array, target: Array) -> float:
        p, t = _pair(predicted, target, 1)
        return float(np.mean(np.square(p - t)))

    def calculate_batch_loss(self, predicted: Array, target: Array) -> float:
        # sum of per-example means, not averaged over the batch
        p, t = _pair(predicted, target, 2)
        return float(np.sum(np.mean(np.square(p - t), axis=1)))

    def derive(self, predicted: Array, target: Array) -> Array:
        p, t = _pair(predicted, target, 1)
        return 2.0 * (p - t)

    def derive_batch(self, predicted: Array, target: Array) -> Array:
        p, t = _pair(predicted, target, 2)
        return 2.0 * (p - t)


@dataclass(frozen=True)
class CrossEntropy:
    """Cross entropy over softmax probabilities.

    The gradient ``predicted - target`` already folds in the softmax
    Jacobian, so it is only valid when ``predicted`` came out of softmax.
    """

    name: str = "cross_entropy"

    def calculate_loss(self, predicted: Array, target: Array) -> float:
        p, t = _pair(predicted, target, 1)
        return float(-np.sum(t * np.log(np.maximum(p, EPSILON))))

    def calculate_batch_loss(self, predicted: Array, target: Array) -> float:
        p, t = _pair(predicted, target, 2)
        return float(-np.sum(t * np.log(np.maximum(p, EPSILON))))

    def derive(self, predicted: Array, target: Array) -> Array:
        p, t = _pair(predicted, target, 1)
        return p - t

    def derive_batch(self, predicted: Array, target: Array) -> Array:
        p, t = _pair(predicted, target, 2)
        return p - t


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, LossFunction] = {}

    def register(self, loss: LossFunction, *aliases: str) -> None:
        for name in (loss.name, *aliases):
            self._registry[name] = loss

    def get(self, name: str) -> LossFunction:
        try:
            return self._registry[name.lower()]
        except KeyError as exc:
            available = ", ".join(self.names())
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}") from exc

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str, *, task_type: str) -> LossFunction:
        if name == "auto":
            if task_type == "regression":
                name = "mse"
            elif task_type == "multiclass":
                name = "cross_entropy"
            else:
                raise ValueError(f"Unknown task type: {task_type}")
        return self.get(name)


MSE = MeanSquaredError()
CROSS_ENTROPY = CrossEntropy()

REGISTRY = LossRegistry()
REGISTRY.register(MSE)
REGISTRY.register(CROSS_ENTROPY, "ce")


def resolve(loss: str | LossFunction) -> LossFunction:
    if isinstance(loss, str):
        return REGISTRY.get(loss)
    return loss


__all__ = [
    "CROSS_ENTROPY",
    "CrossEntropy",
    "LossFunction",
    "LossRegistry",
    "MSE",
    "MeanSquaredError",
    "REGISTRY",
    "resolve",
]
