"""scratchmlp public API."""

from .checkpoint import load_network, save_network
from .core import activations  # noqa: F401
from .core import mathutils  # noqa: F401
from .core.types import DimensionMismatchError
from .training import losses  # noqa: F401
from .training.network import Network
from .training.pipelines import load_config, load_preset, presets, run_pipeline
from .utils import make_blobs, make_spiral, make_xor, one_hot

__all__ = [
    "DimensionMismatchError",
    "Network",
    "activations",
    "losses",
    "mathutils",
    "load_config",
    "load_network",
    "load_preset",
    "make_blobs",
    "make_spiral",
    "make_xor",
    "one_hot",
    "presets",
    "run_pipeline",
    "save_network",
]
