"""Core typing contracts for scratchmlp."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, List, Mapping

import numpy as np

Array = np.ndarray


class DimensionMismatchError(ValueError):
    """Raised when vectors, matrices or layers are wired with incompatible shapes."""


@dataclass(frozen=True)
class Batch:
    """A contiguous slice of the training set."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :func:`scratchmlp.training.pipelines.run_pipeline`."""

    epochs: int
    final_loss: float
    metrics_path: str
    manifest_path: str
    checkpoint_path: str
    summary_path: str = ""
    final_metrics: Mapping[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelDescription:
    """Description of the dense network architecture."""

    layer_dims: List[int]
    activation: str
    loss: str


StateDict = Dict[str, Array]


def ensure_same_length(a: Array, b: Array, what: str) -> None:
    if len(a) != len(b):
        raise DimensionMismatchError(
            f"{what} of differing dimensions: {len(a)} != {len(b)}"
        )
