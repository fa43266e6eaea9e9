"""Small synthetic classification datasets."""

from __future__ import annotations

from typing import Sequence, Tuple

import numpy as np

from .core.types import Array


def one_hot(labels: Sequence[int] | Array, num_classes: int) -> Array:
    idx = np.asarray(labels, dtype=np.int64).reshape(-1)
    if idx.size and (idx.min() < 0 or idx.max() >= num_classes):
        raise ValueError(f"labels must lie in [0, {num_classes})")
    out = np.zeros((idx.shape[0], num_classes), dtype=np.float64)
    out[np.arange(idx.shape[0]), idx] = 1.0
    return out


def make_xor() -> Tuple[Array, Array]:
    """The four XOR points with one-hot targets (class 1 means "inputs differ")."""

    x = np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float64)
    y = np.array([[0, 1], [1, 0], [1, 0], [0, 1]], dtype=np.float64)
    return x, y


def make_blobs(
    n_per_class: int = 50,
    centers: Sequence[Sequence[float]] = ((2.0, 2.0), (-2.0, -2.0), (2.0, -2.0)),
    noise: float = 0.4,
    seed: int = 0,
) -> Tuple[Array, Array]:
    rng = np.random.default_rng(seed)
    centers_arr = np.asarray(centers, dtype=np.float64)
    inputs = []
    labels = []
    for idx, center in enumerate(centers_arr):
        inputs.append(center + noise * rng.standard_normal((n_per_class, centers_arr.shape[1])))
        labels.append(np.full(n_per_class, idx))
    return np.vstack(inputs), one_hot(np.concatenate(labels), len(centers_arr))


def make_spiral(
    n_per_class: int = 50, classes: int = 3, noise: float = 0.2, seed: int = 0
) -> Tuple[Array, Array]:
    """Interleaved 2-D spirals, one arm per class."""

    rng = np.random.default_rng(seed)
    inputs = []
    labels = []
    for cls in range(classes):
        radius = np.linspace(0.0, 1.0, n_per_class)
        theta = np.linspace(cls * 4.0, (cls + 1) * 4.0, n_per_class)
        theta = theta + noise * rng.standard_normal(n_per_class)
        inputs.append(np.column_stack([radius * np.sin(theta), radius * np.cos(theta)]))
        labels.append(np.full(n_per_class, cls))
    return np.vstack(inputs), one_hot(np.concatenate(labels), classes)


__all__ = ["make_blobs", "make_spiral", "make_xor", "one_hot"]
