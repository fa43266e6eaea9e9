import numpy as np
import pytest

from scratchmlp.core.types import DimensionMismatchError
from scratchmlp.training.losses import CROSS_ENTROPY, MSE, REGISTRY


def test_mse_single_example():
    assert MSE.calculate_loss([1, 2], [1, 2]) == 0
    assert MSE.calculate_loss([1, 3], [1, 1]) == 2.0
    assert np.array_equal(MSE.derive([2], [0]), [4.0])


def test_mse_batch_sums_per_example_means():
    predicted = [[1.0, 3.0], [0.0, 0.0]]
    target = [[1.0, 1.0], [2.0, 2.0]]
    # per-example means: 2.0 and 4.0
    assert MSE.calculate_batch_loss(predicted, target) == 6.0
    assert np.array_equal(MSE.derive_batch(predicted, target), [[0.0, 4.0], [-4.0, -4.0]])


def test_cross_entropy_single_example():
    assert CROSS_ENTROPY.calculate_loss([1.0], [1.0]) == 0
    p = [0.2, 0.3, 0.5]
    assert np.array_equal(CROSS_ENTROPY.derive(p, p), [0.0, 0.0, 0.0])
    assert CROSS_ENTROPY.calculate_loss([0.25, 0.75], [1.0, 0.0]) == pytest.approx(np.log(4.0))


def test_cross_entropy_zero_probability_is_finite():
    loss = CROSS_ENTROPY.calculate_loss([0.0, 1.0], [1.0, 0.0])
    assert np.isfinite(loss)
    assert loss == pytest.approx(-np.log(1e-15))


def test_cross_entropy_batch_sums_examples():
    predicted = [[0.5, 0.5], [0.25, 0.75]]
    target = [[1.0, 0.0], [0.0, 1.0]]
    expected = np.log(2.0) - np.log(0.75)
    assert CROSS_ENTROPY.calculate_batch_loss(predicted, target) == pytest.approx(expected)
    assert np.allclose(
        CROSS_ENTROPY.derive_batch(predicted, target), [[-0.5, 0.5], [0.25, -0.25]]
    )


@pytest.mark.parametrize("loss", [MSE, CROSS_ENTROPY])
@pytest.mark.parametrize(
    "predicted,target",
    [([1.0, 2.0], [1.0]), ([], [])],
)
def test_mismatched_or_empty_inputs_raise(loss, predicted, target):
    with pytest.raises(DimensionMismatchError):
        loss.calculate_loss(predicted, target)
    with pytest.raises(DimensionMismatchError):
        loss.derive(predicted, target)


def test_registry_resolves_auto_and_aliases():
    assert REGISTRY.resolve("auto", task_type="multiclass") is CROSS_ENTROPY
    assert REGISTRY.resolve("auto", task_type="regression") is MSE
    assert REGISTRY.get("ce") is CROSS_ENTROPY
    with pytest.raises(KeyError, match="Available losses"):
        REGISTRY.get("hinge")
    with pytest.raises(ValueError):
        REGISTRY.resolve("auto", task_type="ranking")
