"""Dense feed-forward network trained with plain backpropagation."""

from __future__ import annotations

import warnings
from typing import Iterator, List, Mapping, Sequence

import numpy as np

from ..core import activations as activation_registry
from ..core.activations import LINEAR, ActivationFunction
from ..core.layer import Layer
from ..core.mathutils import softmax
from ..core.types import (
    Array,
    Batch,
    DimensionMismatchError,
    ModelDescription,
    StateDict,
)
from . import losses as loss_registry
from .losses import LossFunction


def shuffle_together(
    inputs: Array, targets: Array, rng: np.random.Generator
) -> tuple[Array, Array]:
    """Apply one Fisher-Yates permutation to both arrays.

    The arrays passed in are left untouched; shuffled copies are returned.
    """

    if len(inputs) != len(targets):
        raise DimensionMismatchError("Inputs and outputs must have the same length")
    order = np.arange(len(inputs))
    for i in range(len(order) - 1, 0, -1):
        j = int(rng.integers(i + 1))
        order[i], order[j] = order[j], order[i]
    return inputs[order], targets[order]


def iter_batches(inputs: Array, targets: Array, batch_size: int) -> Iterator[Batch]:
    for start in range(0, inputs.shape[0], batch_size):
        end = start + batch_size
        yield Batch(inputs=inputs[start:end], targets=targets[start:end])


class Network:
    """Stack of dense layers with a linear output layer and softmax on predict.

    Hidden layers share ``activation``. The output layer always uses the
    identity activation; :meth:`predict` turns its raw scores into
    probabilities with softmax.
    """

    output_activation: ActivationFunction = LINEAR

    def __init__(
        self,
        input_size: int,
        hidden_layer_sizes: Sequence[int],
        output_size: int,
        activation: str | ActivationFunction,
        loss: str | LossFunction,
        *,
        seed: int | None = None,
    ) -> None:
        sizes = [int(input_size), *[int(h) for h in hidden_layer_sizes], int(output_size)]
        if any(size <= 0 for size in sizes):
            raise ValueError(f"All layer sizes must be positive, got {sizes}")
        self.activation = activation_registry.resolve(activation)
        self.loss = loss_registry.resolve(loss)
        self._rng = np.random.default_rng(seed)
        self.layers: List[Layer] = []
        for idx, (in_dim, out_dim) in enumerate(zip(sizes[:-1], sizes[1:])):
            is_output = idx == len(sizes) - 2
            act = self.output_activation if is_output else self.activation
            self.layers.append(Layer(out_dim, in_dim, act, self._rng))

    # ------------------------------------------------------------------
    # Topology

    @property
    def input_size(self) -> int:
        return self.layers[0].input_size

    @property
    def output_size(self) -> int:
        return self.layers[-1].size

    @property
    def topology(self) -> List[int]:
        return [self.input_size, *[layer.size for layer in self.layers]]

    def describe(self) -> ModelDescription:
        return ModelDescription(
            layer_dims=self.topology,
            activation=self.activation.name,
            loss=self.loss.name,
        )

    def parameter_count(self) -> int:
        return int(sum(layer.size * (layer.input_size + 1) for layer in self.layers))

    # ------------------------------------------------------------------
    # Inference

    def predict(self, inputs: Array) -> Array:
        """Probabilities for one example, or for each row of a 2-D batch."""

        x = np.asarray(inputs, dtype=np.float64)
        if x.ndim == 2:
            return self.predict_batch(x)
        outputs = x
        for layer in self.layers:
            outputs = layer.feed_forward(outputs)
        return softmax(outputs)

    def predict_batch(self, batch_inputs: Array) -> Array:
        outputs = np.atleast_2d(np.asarray(batch_inputs, dtype=np.float64))
        for layer in self.layers:
            outputs = layer.feed_forward_batch(outputs)
        return np.vstack([softmax(row) for row in outputs])

    # ------------------------------------------------------------------
    # Training

    def train(
        self,
        inputs: Array,
        targets: Array,
        epochs: int,
        learning_rate: float,
        batch_size: int | None = None,
        callbacks: Sequence[object] | None = None,
    ) -> List[float]:
        """Train for ``epochs`` passes and return the loss reported per epoch.

        With ``batch_size=None`` every example triggers its own update;
        otherwise the shuffled data is cut into contiguous batches (the last
        one possibly short) and each batch applies its mean gradient. The
        reported loss is the epoch's total loss divided by the number of
        examples.
        """

        x = np.atleast_2d(np.asarray(inputs, dtype=np.float64))
        y = np.atleast_2d(np.asarray(targets, dtype=np.float64))
        if x.shape[0] != y.shape[0]:
            raise DimensionMismatchError(
                f"Inputs and targets must have the same length ({x.shape[0]} != {y.shape[0]})"
            )
        if x.shape[1] != self.input_size:
            raise DimensionMismatchError(
                f"Inputs have {x.shape[1]} features, network expects {self.input_size}"
            )
        if y.shape[1] != self.output_size:
            raise DimensionMismatchError(
                f"Targets have {y.shape[1]} outputs, network produces {self.output_size}"
            )
        if epochs < 0:
            raise ValueError(f"epochs must be non-negative, got {epochs}")
        if learning_rate <= 0:
            raise ValueError(f"learning_rate must be positive, got {learning_rate}")
        if batch_size is not None:
            if batch_size <= 0:
                raise ValueError(f"batch_size must be positive, got {batch_size}")
            if batch_size > x.shape[0]:
                warnings.warn(
                    f"batch_size={batch_size} exceeds the {x.shape[0]} training examples; "
                    "each epoch runs a single batch",
                    RuntimeWarning,
                    stacklevel=2,
                )

        history: List[float] = []
        callbacks = list(callbacks or [])
        for epoch in range(1, epochs + 1):
            x_epoch, y_epoch = shuffle_together(x, y, self._rng)
            if batch_size is None:
                total_loss = self._run_single_epoch(x_epoch, y_epoch, learning_rate)
            else:
                total_loss = self._run_batch_epoch(x_epoch, y_epoch, learning_rate, batch_size)
            epoch_loss = total_loss / x.shape[0]
            history.append(epoch_loss)
            self._emit_epoch(epoch, {"loss": epoch_loss}, callbacks)
        return history

    def _run_single_epoch(self, inputs: Array, targets: Array, learning_rate: float) -> float:
        total = 0.0
        for sample, expected in zip(inputs, targets):
            output = self.predict(sample)
            self._back_propagate(expected, output, sample, learning_rate)
            total += self.loss.calculate_loss(output, expected)
        return total

    def _run_batch_epoch(
        self, inputs: Array, targets: Array, learning_rate: float, batch_size: int
    ) -> float:
        total = 0.0
        for batch in iter_batches(inputs, targets, batch_size):
            outputs = self.predict_batch(batch.inputs)
            self._back_propagate_batch(batch.targets, outputs, batch.inputs, learning_rate)
            total += self.loss.calculate_batch_loss(outputs, batch.targets)
        return total

    def _back_propagate(
        self, expected: Array, output: Array, initial_inputs: Array, learning_rate: float
    ) -> None:
        errors = self.loss.derive(output, expected)
        for i in range(len(self.layers) - 1, 0, -1):
            errors = self.layers[i].back_propagate(
                errors, self.layers[i - 1].activations(), learning_rate
            )
        self.layers[0].back_propagate(errors, initial_inputs, learning_rate)

    def _back_propagate_batch(
        self, expected: Array, output: Array, initial_inputs: Array, learning_rate: float
    ) -> None:
        errors = self.loss.derive_batch(output, expected)
        for i in range(len(self.layers) - 1, 0, -1):
            errors = self.layers[i].back_propagate_batch(
                errors, self.layers[i - 1].last_batch_activations, learning_rate
            )
        self.layers[0].back_propagate_batch(errors, initial_inputs, learning_rate)

    @staticmethod
    def _emit_epoch(epoch: int, metrics: Mapping[str, float], callbacks: Sequence[object]) -> None:
        for callback in callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)

    # ------------------------------------------------------------------
    # Parameters

    def state_dict(self) -> StateDict:
        state: StateDict = {}
        for idx, layer in enumerate(self.layers):
            state[f"layers.{idx}.weight"] = layer.weight_matrix()
            state[f"layers.{idx}.bias"] = layer.biases()
        return state

    def load_state_dict(self, state: Mapping[str, Array]) -> None:
        keys = [(f"layers.{idx}.weight", f"layers.{idx}.bias") for idx in range(len(self.layers))]
        for key in (k for pair in keys for k in pair):
            if key not in state:
                raise KeyError(f"Missing parameter {key} in state dict")
        for layer, (weight_key, bias_key) in zip(self.layers, keys):
            layer.set_parameters(state[weight_key], state[bias_key])

    def __repr__(self) -> str:
        return (
            f"Network(topology={self.topology}, activation={self.activation.name}, "
            f"loss={self.loss.name})"
        )


__all__ = ["Network", "iter_batches", "shuffle_together"]
