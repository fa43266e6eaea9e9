"""Losses, metrics, the trainable network and config-driven runs."""

from . import losses, metrics
from .network import Network

__all__ = ["Network", "losses", "metrics"]
