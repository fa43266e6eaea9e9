import numpy as np
import pytest

from scratchmlp.core.activations import LINEAR, RELU, TANH
from scratchmlp.core.layer import Layer
from scratchmlp.core.neuron import INIT_RANGE, Neuron
from scratchmlp.core.types import DimensionMismatchError


def _neuron(weights, bias=0.0):
    neuron = Neuron(len(weights), np.random.default_rng(0))
    neuron.weights = weights
    neuron.bias = bias
    return neuron


def test_neuron_initialisation():
    neuron = Neuron(50, np.random.default_rng(3))
    assert neuron.weights.shape == (50,)
    assert np.all(np.abs(neuron.weights) <= INIT_RANGE)
    assert neuron.bias == 0.0
    assert neuron.last_activation == 0.0


def test_neuron_weight_length_is_fixed():
    neuron = Neuron(3, np.random.default_rng(0))
    with pytest.raises(DimensionMismatchError):
        neuron.weights = [1.0, 2.0]
    with pytest.raises(ValueError):
        Neuron(0)


def test_neuron_feed_forward_caches_activation():
    neuron = _neuron([0.5, -1.0], bias=0.25)
    out = neuron.feed_forward([2.0, 1.0], TANH)
    assert out == pytest.approx(np.tanh(0.25))
    assert neuron.last_activation == out
    assert neuron.last_weighted_sum == pytest.approx(0.25)
    with pytest.raises(DimensionMismatchError):
        neuron.feed_forward([1.0, 2.0, 3.0], TANH)


def test_neuron_batch_forward_does_not_cache():
    neuron = _neuron([1.0, 1.0], bias=-1.0)
    out = neuron.feed_forward_batch([[1.0, 1.0], [0.0, 0.0], [3.0, -1.0]], RELU)
    assert np.array_equal(out, [1.0, 0.0, 1.0])
    assert neuron.last_activation == 0.0
    assert neuron.last_weighted_sum == 0.0
    with pytest.raises(DimensionMismatchError):
        neuron.feed_forward_batch([[1.0, 1.0, 1.0]], RELU)


def test_single_update_moves_weights_and_bias_by_learning_rate():
    neuron = _neuron([0.0, 0.0])
    before = neuron.weights.copy()
    neuron.update_weights([1.0, 1.0], delta=1.0, learning_rate=0.1)
    assert np.allclose(before - neuron.weights, [0.1, 0.1], rtol=0, atol=1e-15)
    assert neuron.bias == pytest.approx(-0.1, abs=1e-15)


def test_batch_update_uses_mean_gradient():
    neuron = _neuron([1.0, 1.0], bias=0.5)
    inputs = np.array([[1.0, 2.0], [3.0, 4.0]])
    deltas = np.array([1.0, -0.5])
    neuron.update_weights_batch(inputs, learning_rate=0.2, deltas=deltas)
    # sum(delta * x) = [1 - 1.5, 2 - 2] = [-0.5, 0]; mean over 2 examples
    assert np.allclose(neuron.weights, [1.0 + 0.2 * 0.25, 1.0])
    assert neuron.bias == pytest.approx(0.5 - 0.2 * 0.25)
    with pytest.raises(DimensionMismatchError):
        neuron.update_weights_batch(inputs, 0.1, [1.0])


def test_layer_shapes_and_batch_cache():
    layer = Layer(3, 2, TANH, np.random.default_rng(1))
    assert layer.size == 3 and layer.input_size == 2
    assert layer.feed_forward([0.5, -0.5]).shape == (3,)
    assert layer.last_batch_activations is None
    out = layer.feed_forward_batch(np.ones((4, 2)))
    assert out.shape == (4, 3)
    assert layer.last_batch_activations is out


def test_layer_back_propagate_linear_by_hand():
    layer = Layer(1, 2, LINEAR, np.random.default_rng(0))
    layer.set_parameters([[0.5, -0.5]], [0.0])
    assert layer.feed_forward([1.0, 2.0]) == pytest.approx([-0.5])

    previous = layer.back_propagate([2.0], [1.0, 2.0], learning_rate=0.1)

    assert np.allclose(layer.weight_matrix(), [[0.3, -0.9]])
    assert layer.biases() == pytest.approx([-0.2])
    # propagated through the already-updated weights
    assert np.allclose(previous, [0.6, -1.8])


def test_layer_back_propagate_derives_at_weighted_sum():
    layer = Layer(1, 1, TANH, np.random.default_rng(0))
    layer.set_parameters([[2.0]], [0.25])
    activation = layer.feed_forward([0.5])[0]
    assert layer.neurons[0].last_weighted_sum == pytest.approx(1.25)
    assert activation == pytest.approx(np.tanh(1.25))

    layer.back_propagate([1.0], [0.5], learning_rate=0.1)

    delta = 1.0 - np.tanh(1.25) ** 2
    assert layer.weight_matrix()[0, 0] == pytest.approx(2.0 - 0.1 * delta * 0.5)
    assert layer.biases()[0] == pytest.approx(0.25 - 0.1 * delta)


def test_layer_batch_back_propagate_derives_at_cached_sums():
    layer = Layer(2, 2, TANH, np.random.default_rng(0))
    weights = np.array([[0.6, -0.4], [0.3, 0.9]])
    biases = np.array([0.1, -0.2])
    layer.set_parameters(weights, biases)
    inputs = np.array([[1.0, 0.5], [-0.5, 2.0], [0.0, -1.0]])
    errors = np.array([[0.2, -0.1], [0.5, 0.3], [-0.4, 0.7]])

    layer.feed_forward_batch(inputs)
    sums = inputs @ weights.T + biases
    assert np.allclose(layer.last_batch_sums, sums)
    assert np.allclose(layer.last_batch_activations, np.tanh(sums))

    layer.back_propagate_batch(errors, inputs, learning_rate=0.3)

    deltas = errors * (1.0 - np.tanh(sums) ** 2)
    assert np.allclose(layer.weight_matrix(), weights - 0.3 * deltas.T @ inputs / 3)
    assert np.allclose(layer.biases(), biases - 0.3 * deltas.sum(axis=0) / 3)


def test_layer_back_propagate_checks_error_width():
    layer = Layer(2, 2, LINEAR, np.random.default_rng(0))
    layer.feed_forward([1.0, 1.0])
    with pytest.raises(DimensionMismatchError):
        layer.back_propagate([1.0], [1.0, 1.0], 0.1)


def test_layer_batch_back_propagate_matches_matrix_form():
    rng = np.random.default_rng(7)
    layer = Layer(2, 3, RELU, rng)
    weights = np.array([[0.2, -0.1, 0.4], [-0.3, 0.5, 0.1]])
    biases = np.array([0.05, -0.02])
    layer.set_parameters(weights, biases)
    inputs = rng.standard_normal((4, 3))
    errors = rng.standard_normal((4, 2))

    acts = layer.feed_forward_batch(inputs)
    previous = layer.back_propagate_batch(errors, inputs, learning_rate=0.5)

    deltas = errors * (acts > 0)
    new_weights = weights - 0.5 * deltas.T @ inputs / 4
    new_biases = biases - 0.5 * deltas.sum(axis=0) / 4
    assert np.allclose(layer.weight_matrix(), new_weights)
    assert np.allclose(layer.biases(), new_biases)
    assert np.allclose(previous, deltas @ new_weights)


def test_layer_batch_backward_requires_forward():
    layer = Layer(2, 2, LINEAR, np.random.default_rng(0))
    with pytest.raises(RuntimeError):
        layer.back_propagate_batch(np.ones((1, 2)), np.ones((1, 2)), 0.1)


def test_layer_set_parameters_checks_shape():
    layer = Layer(2, 3, LINEAR, np.random.default_rng(0))
    with pytest.raises(DimensionMismatchError):
        layer.set_parameters(np.zeros((3, 2)), np.zeros(2))
    with pytest.raises(DimensionMismatchError):
        layer.set_parameters(np.zeros((2, 3)), np.zeros(3))
