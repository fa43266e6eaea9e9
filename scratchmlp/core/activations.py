"""Activation functions for scratchmlp.

Every activation is an immutable strategy exposing ``activate(x)`` and
``derive(x)``. Both accept a scalar (returning a ``float``) or an array
(applied element-wise). Instances carry no state and are shared by reference
between every neuron of every layer that uses them.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Protocol, Union

import numpy as np

from .types import Array

Scalar = Union[float, Array]


class ActivationFunction(Protocol):
    """Protocol implemented by every activation."""

    name: str

    def activate(self, x: Scalar) -> Scalar:
        """Return the activation of ``x``."""

    def derive(self, x: Scalar) -> Scalar:
        """Return the derivative of the activation at ``x``."""


def _like_input(result: Array, x: Scalar) -> Scalar:
    if np.ndim(x) == 0:
        return float(result)
    return np.asarray(result, dtype=np.float64)


@dataclass(frozen=True)
class Linear:
    name: str = "linear"

    def activate(self, x: Scalar) -> Scalar:
        return _like_input(np.asarray(x, dtype=np.float64), x)

    def derive(self, x: Scalar) -> Scalar:
        return _like_input(np.ones_like(x, dtype=np.float64), x)


@dataclass(frozen=True)
class ReLU:
    name: str = "relu"

    def activate(self, x: Scalar) -> Scalar:
        return _like_input(np.maximum(x, 0.0), x)

    def derive(self, x: Scalar) -> Scalar:
        return _like_input(np.where(np.asarray(x) <= 0, 0.0, 1.0), x)


@dataclass(frozen=True)
class LeakyReLU:
    name: str = "leaky_relu"
    slope: float = 0.1

    def activate(self, x: Scalar) -> Scalar:
        return _like_input(np.maximum(self.slope * np.asarray(x), x), x)

    def derive(self, x: Scalar) -> Scalar:
        return _like_input(np.where(np.asarray(x) < 0, self.slope, 1.0), x)


@dataclass(frozen=True)
class Sigmoid:
    """Logistic sigmoid saturated outside ``[-threshold, threshold]``."""

    name: str = "sigmoid"
    threshold: float = 20.0

    def _sigmoid(self, x: Array) -> Array:
        # exp is only evaluated on the clipped range
        inner = 1.0 / (1.0 + np.exp(-np.clip(x, -self.threshold, self.threshold)))
        return np.where(x > self.threshold, 1.0, np.where(x < -self.threshold, 0.0, inner))

    def activate(self, x: Scalar) -> Scalar:
        return _like_input(self._sigmoid(np.asarray(x, dtype=np.float64)), x)

    def derive(self, x: Scalar) -> Scalar:
        arr = np.asarray(x, dtype=np.float64)
        s = self._sigmoid(arr)
        return _like_input(np.where(np.abs(arr) > self.threshold, 0.0, s * (1.0 - s)), x)


@dataclass(frozen=True)
class Tanh:
    name: str = "tanh"

    def activate(self, x: Scalar) -> Scalar:
        return _like_input(np.tanh(x), x)

    def derive(self, x: Scalar) -> Scalar:
        t = np.tanh(x)
        return _like_input(1.0 - t * t, x)


LINEAR = Linear()
RELU = ReLU()
LEAKY_RELU = LeakyReLU()
SIGMOID = Sigmoid()
TANH = Tanh()

_REGISTRY: Dict[str, ActivationFunction] = {
    fn.name: fn for fn in (LINEAR, RELU, LEAKY_RELU, SIGMOID, TANH)
}


def get(name: str) -> ActivationFunction:
    """Return the shared activation registered under ``name``."""

    key = name.lower()
    if key not in _REGISTRY:
        available = ", ".join(sorted(_REGISTRY))
        raise KeyError(f"Unknown activation {name!r}. Available activations: {available}")
    return _REGISTRY[key]


def names() -> Iterable[str]:
    return sorted(_REGISTRY)


def resolve(activation: str | ActivationFunction) -> ActivationFunction:
    if isinstance(activation, str):
        return get(activation)
    return activation


__all__ = [
    "ActivationFunction",
    "Linear",
    "ReLU",
    "LeakyReLU",
    "Sigmoid",
    "Tanh",
    "LINEAR",
    "RELU",
    "LEAKY_RELU",
    "SIGMOID",
    "TANH",
    "get",
    "names",
    "resolve",
]
