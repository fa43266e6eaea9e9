"""Versioned on-disk encoding of a trained network.

A checkpoint is a compressed NumPy archive holding the topology, the
activation and loss names, the activation's parameters as a JSON string,
and one weight matrix plus one bias vector per layer. Nothing in it
requires pickling.
"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass, replace
from pathlib import Path

import numpy as np

from .core import activations
from .core.activations import ActivationFunction
from .training.network import Network

FORMAT_VERSION = 1


def _activation_params(activation: ActivationFunction) -> str:
    try:
        registered = activations.get(activation.name)
    except KeyError as exc:
        raise ValueError(f"Cannot checkpoint unregistered activation {activation!r}") from exc
    if type(registered) is not type(activation) or not is_dataclass(activation):
        raise ValueError(
            f"Activation {activation!r} does not match the registered {registered!r}"
        )
    params = asdict(activation)
    params.pop("name")
    return json.dumps(params, sort_keys=True)


def _rebuild_activation(name: str, params: str) -> ActivationFunction:
    registered = activations.get(name)
    rebuilt = replace(registered, **json.loads(params or "{}"))
    # default parameters resolve to the shared instance
    return registered if rebuilt == registered else rebuilt


def save_network(network: Network, path: str | Path) -> Path:
    path = Path(path)
    payload = {
        "format_version": np.array(FORMAT_VERSION, dtype=np.int64),
        "topology": np.array(network.topology, dtype=np.int64),
        "activation": np.array(network.activation.name),
        "activation_params": np.array(_activation_params(network.activation)),
        "loss": np.array(network.loss.name),
    }
    payload.update(network.state_dict())
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("wb") as handle:
        np.savez_compressed(handle, **payload)
    return path


def load_network(path: str | Path, *, seed: int | None = None) -> Network:
    """Rebuild a :class:`Network` from a checkpoint written by :func:`save_network`."""

    with np.load(Path(path), allow_pickle=False) as archive:
        if "format_version" not in archive.files:
            raise ValueError(f"{path} is not a scratchmlp checkpoint")
        version = int(archive["format_version"])
        if version != FORMAT_VERSION:
            raise ValueError(
                f"Unsupported checkpoint version {version} (expected {FORMAT_VERSION})"
            )
        params = str(archive["activation_params"]) if "activation_params" in archive.files else ""
        activation = _rebuild_activation(str(archive["activation"]), params)
        topology = [int(v) for v in archive["topology"]]
        network = Network(
            topology[0],
            topology[1:-1],
            topology[-1],
            activation,
            str(archive["loss"]),
            seed=seed,
        )
        state = {
            name: archive[name]
            for name in archive.files
            if name.startswith("layers.")
        }
    network.load_state_dict(state)
    return network


__all__ = ["FORMAT_VERSION", "load_network", "save_network"]
