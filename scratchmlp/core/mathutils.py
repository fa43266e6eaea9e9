"""Vector and matrix primitives used by the dense network."""

from __future__ import annotations

from typing import Sequence

import numpy as np

from .types import Array, DimensionMismatchError, ensure_same_length


def _vector(values: Sequence[float] | Array) -> Array:
    return np.asarray(values, dtype=np.float64)


def dot_product(a: Sequence[float] | Array, b: Sequence[float] | Array) -> float:
    """Return ``sum(a[i] * b[i])``."""

    a, b = _vector(a), _vector(b)
    ensure_same_length(a, b, "Dot product of vectors")
    return float(np.dot(a, b))


def vector_add(a: Sequence[float] | Array, b: Sequence[float] | Array) -> Array:
    a, b = _vector(a), _vector(b)
    ensure_same_length(a, b, "Adding vectors")
    return a + b


def vector_subtract(a: Sequence[float] | Array, b: Sequence[float] | Array) -> Array:
    a, b = _vector(a), _vector(b)
    ensure_same_length(a, b, "Subtracting vectors")
    return a - b


def matrix_multiply(a: Array, b: Array) -> Array:
    """Multiply ``a`` (n x k) by ``b`` (k x m)."""

    a = np.atleast_2d(np.asarray(a, dtype=np.float64))
    b = np.atleast_2d(np.asarray(b, dtype=np.float64))
    if a.shape[1] != b.shape[0]:
        raise DimensionMismatchError(
            f"Incompatible matrix dimensions: {a.shape} x {b.shape}"
        )
    return a @ b


def transpose(matrix: Array) -> Array:
    return np.atleast_2d(np.asarray(matrix, dtype=np.float64)).T.copy()


def normalize(vector: Sequence[float] | Array) -> Array:
    """Scale ``vector`` to unit Euclidean length.

    A zero vector has no direction and is returned unchanged.
    """

    v = _vector(vector)
    magnitude = float(np.sqrt(np.sum(v * v)))
    if magnitude == 0.0:
        return v.copy()
    return v / magnitude


def distance(a: Sequence[float] | Array, b: Sequence[float] | Array) -> float:
    a, b = _vector(a), _vector(b)
    ensure_same_length(a, b, "Distance of points")
    diff = a - b
    return float(np.sqrt(np.sum(diff * diff)))


def softmax(scores: Sequence[float] | Array) -> Array:
    """Numerically stable softmax over a single score vector."""

    z = _vector(scores)
    if z.size == 0:
        raise DimensionMismatchError("Softmax of an empty vector")
    e = np.exp(z - np.max(z))
    return e / np.sum(e)


def arg_max(array: Sequence[float] | Array) -> int:
    """Index of the maximum; ties resolve to the earliest index."""

    values = _vector(array)
    if values.size == 0:
        raise DimensionMismatchError("argmax of an empty vector")
    return int(np.argmax(values))


def mean_squared_error(expected: Sequence[float] | Array, outputs: Sequence[float] | Array) -> float:
    expected, outputs = _vector(expected), _vector(outputs)
    ensure_same_length(expected, outputs, "Mean squared error of vectors")
    if outputs.size == 0:
        raise DimensionMismatchError("Mean squared error of empty vectors")
    diff = outputs - expected
    return float(np.sum(diff * diff) / outputs.size)


def cross_entropy_loss(expected: Sequence[float] | Array, outputs: Sequence[float] | Array) -> float:
    expected, outputs = _vector(expected), _vector(outputs)
    ensure_same_length(expected, outputs, "Cross entropy of vectors")
    return float(-np.sum(expected * np.log(outputs + 1e-15)))


__all__ = [
    "arg_max",
    "cross_entropy_loss",
    "distance",
    "dot_product",
    "matrix_multiply",
    "mean_squared_error",
    "normalize",
    "softmax",
    "transpose",
    "vector_add",
    "vector_subtract",
]
