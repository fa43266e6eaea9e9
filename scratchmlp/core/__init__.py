"""Numeric building blocks: primitives, activations, neurons and layers."""

from . import activations, mathutils, types
from .layer import Layer
from .neuron import Neuron
from .types import DimensionMismatchError

__all__ = ["DimensionMismatchError", "Layer", "Neuron", "activations", "mathutils", "types"]
