"""Fully-connected layer built from independent neurons."""

from __future__ import annotations

from typing import List

import numpy as np

from .activations import ActivationFunction
from .neuron import Neuron
from .types import Array, DimensionMismatchError


class Layer:
    """A row of neurons sharing one input size and one activation.

    For the backward pass the layer acts as the transpose of its forward
    weight matrix: each neuron's delta is spread back over its inputs through
    that neuron's weights.
    """

    def __init__(
        self,
        size: int,
        input_size: int,
        activation: ActivationFunction,
        rng: np.random.Generator | None = None,
    ) -> None:
        if size <= 0:
            raise ValueError(f"layer size must be positive, got {size}")
        rng = rng or np.random.default_rng()
        self.activation = activation
        self.neurons: List[Neuron] = [Neuron(input_size, rng) for _ in range(size)]
        self.last_batch_activations: Array | None = None
        self.last_batch_sums: Array | None = None

    @property
    def size(self) -> int:
        return len(self.neurons)

    @property
    def input_size(self) -> int:
        return self.neurons[0].input_size

    # ------------------------------------------------------------------
    # Forward

    def feed_forward(self, inputs: Array) -> Array:
        return np.array(
            [neuron.feed_forward(inputs, self.activation) for neuron in self.neurons],
            dtype=np.float64,
        )

    def feed_forward_batch(self, batch_inputs: Array) -> Array:
        x = np.atleast_2d(np.asarray(batch_inputs, dtype=np.float64))
        sums = np.empty((x.shape[0], self.size), dtype=np.float64)
        for idx, neuron in enumerate(self.neurons):
            sums[:, idx] = neuron.weighted_sum_batch(x)
        outputs = np.asarray(self.activation.activate(sums), dtype=np.float64)
        self.last_batch_sums = sums
        self.last_batch_activations = outputs
        return outputs

    def activations(self) -> Array:
        """Cached activations of the last single-example forward pass."""

        return np.array([neuron.last_activation for neuron in self.neurons], dtype=np.float64)

    # ------------------------------------------------------------------
    # Backward

    def _check_errors(self, width: int) -> None:
        if width != self.size:
            raise DimensionMismatchError(
                f"Expected one error per neuron ({width} != {self.size})"
            )

    def back_propagate(self, errors: Array, inputs: Array, learning_rate: float) -> Array:
        """Update every neuron and return the errors for the previous layer.

        The derivative is taken at each neuron's cached weighted sum, and the
        propagated error uses the freshly updated weights.
        """

        errors = np.asarray(errors, dtype=np.float64)
        inputs = np.asarray(inputs, dtype=np.float64)
        self._check_errors(errors.shape[0])
        previous_errors = np.zeros(inputs.shape[0], dtype=np.float64)
        for j, neuron in enumerate(self.neurons):
            delta = float(errors[j]) * float(self.activation.derive(neuron.last_weighted_sum))
            neuron.update_weights(inputs, delta, learning_rate)
            previous_errors += neuron.weights * delta
        return previous_errors

    def back_propagate_batch(self, errors: Array, inputs: Array, learning_rate: float) -> Array:
        if self.last_batch_sums is None:
            raise RuntimeError("batch backward pass requires a preceding batch forward pass")
        errors = np.atleast_2d(np.asarray(errors, dtype=np.float64))
        inputs = np.atleast_2d(np.asarray(inputs, dtype=np.float64))
        self._check_errors(errors.shape[1])
        if errors.shape[0] != self.last_batch_sums.shape[0]:
            raise DimensionMismatchError(
                f"Error batch of {errors.shape[0]} does not match the cached batch of "
                f"{self.last_batch_sums.shape[0]}"
            )
        previous_errors = np.zeros_like(inputs)
        for k, neuron in enumerate(self.neurons):
            derivs = self.activation.derive(self.last_batch_sums[:, k])
            deltas = errors[:, k] * derivs
            neuron.update_weights_batch(inputs, learning_rate, deltas)
            previous_errors += np.outer(deltas, neuron.weights)
        return previous_errors

    # ------------------------------------------------------------------
    # Parameters

    def weight_matrix(self) -> Array:
        """``[size][input_size]`` copy of the weights, one row per neuron."""

        return np.stack([neuron.weights for neuron in self.neurons]).copy()

    def biases(self) -> Array:
        return np.array([neuron.bias for neuron in self.neurons], dtype=np.float64)

    def set_parameters(self, weights: Array, biases: Array) -> None:
        weights = np.asarray(weights, dtype=np.float64)
        biases = np.asarray(biases, dtype=np.float64)
        expected = (self.size, self.input_size)
        if weights.shape != expected or biases.shape != (self.size,):
            raise DimensionMismatchError(
                f"Parameters of shape {weights.shape}/{biases.shape} do not fit a layer "
                f"of shape {expected}"
            )
        for neuron, row, bias in zip(self.neurons, weights, biases):
            neuron.weights = row
            neuron.bias = float(bias)

    def __repr__(self) -> str:
        return (
            f"Layer(size={self.size}, input_size={self.input_size}, "
            f"activation={self.activation.name})"
        )


__all__ = ["Layer"]
