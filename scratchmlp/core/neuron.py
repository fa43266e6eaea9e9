"""Single neuron: a weight vector, a bias and a cached activation."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .activations import ActivationFunction
from .types import Array, DimensionMismatchError

INIT_RANGE = 0.05


class Neuron:
    """Weighted sum followed by an activation.

    ``last_activation`` holds the post-activation output of the most recent
    single-example forward pass and ``last_weighted_sum`` the pre-activation
    value it came from. The owning layer evaluates the activation derivative
    at ``last_weighted_sum`` when computing the neuron's delta.
    """

    def __init__(self, input_size: int, rng: np.random.Generator | None = None) -> None:
        if input_size <= 0:
            raise ValueError(f"input_size must be positive, got {input_size}")
        rng = rng or np.random.default_rng()
        self._weights: Array = rng.uniform(-INIT_RANGE, INIT_RANGE, size=input_size)
        self.bias: float = 0.0
        self.last_activation: float = 0.0
        self.last_weighted_sum: float = 0.0

    @property
    def input_size(self) -> int:
        return int(self._weights.shape[0])

    @property
    def weights(self) -> Array:
        return self._weights

    @weights.setter
    def weights(self, values: Sequence[float] | Array) -> None:
        arr = np.array(values, dtype=np.float64)
        if arr.shape != self._weights.shape:
            raise DimensionMismatchError(
                f"Length of new weights must match the existing weights "
                f"({arr.shape} != {self._weights.shape})"
            )
        self._weights = arr

    def _check_width(self, width: int) -> None:
        if width != self.input_size:
            raise DimensionMismatchError(
                f"Input size must match the number of weights ({width} != {self.input_size})"
            )

    def feed_forward(self, inputs: Array, activation: ActivationFunction) -> float:
        x = np.asarray(inputs, dtype=np.float64)
        self._check_width(x.shape[0])
        self.last_weighted_sum = float(np.dot(self._weights, x)) + self.bias
        self.last_activation = float(activation.activate(self.last_weighted_sum))
        return self.last_activation

    def weighted_sum_batch(self, batch_inputs: Array) -> Array:
        """Pre-activation value for every row of ``batch_inputs``."""

        x = np.atleast_2d(np.asarray(batch_inputs, dtype=np.float64))
        self._check_width(x.shape[1])
        return x @ self._weights + self.bias

    def feed_forward_batch(self, batch_inputs: Array, activation: ActivationFunction) -> Array:
        """Activations for every row of ``batch_inputs``; nothing is cached."""

        return np.asarray(activation.activate(self.weighted_sum_batch(batch_inputs)), dtype=np.float64)

    def update_weights(self, inputs: Array, delta: float, learning_rate: float) -> None:
        """Single-example gradient step."""

        x = np.asarray(inputs, dtype=np.float64)
        self._check_width(x.shape[0])
        self._weights -= learning_rate * delta * x
        self.bias -= learning_rate * delta

    def update_weights_batch(self, batch_inputs: Array, learning_rate: float, deltas: Array) -> None:
        """Gradient step using the mean gradient over the batch."""

        x = np.atleast_2d(np.asarray(batch_inputs, dtype=np.float64))
        d = np.asarray(deltas, dtype=np.float64)
        self._check_width(x.shape[1])
        if d.shape[0] != x.shape[0]:
            raise DimensionMismatchError(
                f"Expected one delta per example ({d.shape[0]} != {x.shape[0]})"
            )
        batch = x.shape[0]
        self._weights -= learning_rate * (d @ x) / batch
        self.bias -= learning_rate * float(np.sum(d)) / batch

    def __repr__(self) -> str:
        return f"Neuron(input_size={self.input_size}, bias={self.bias:.4g})"


__all__ = ["INIT_RANGE", "Neuron"]
