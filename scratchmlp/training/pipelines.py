"""Config-driven training runs over the bundled synthetic datasets."""

from __future__ import annotations

import json
import os
import time
from copy import deepcopy
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Sequence, Tuple

from .. import utils
from ..checkpoint import save_network
from ..core.types import Array, RunResult
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .losses import REGISTRY as LOSS_REGISTRY
from .metrics import compute_metrics, default_metrics
from .network import Network

REQUIRED_SECTIONS = {"data", "model", "train"}
RUN_ROOT_ENV = "SCRATCHMLP_RUN_ROOT"

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-tanh-ce": {
        "data": {"name": "xor", "options": {}},
        "model": {"hidden": [4], "activation": "tanh"},
        "train": {
            "epochs": 2000,
            "lr": 0.1,
            "batch_size": None,
            "loss": "cross_entropy",
            "seed": 0,
            "eval_every": 100,
            "run_dir": "runs/xor-tanh-ce",
            "enable_plots": False,
        },
    },
    "blobs-relu-ce-batch": {
        "data": {"name": "blobs", "options": {"n_per_class": 60, "noise": 0.4, "seed": 1}},
        "model": {"hidden": [16], "activation": "relu"},
        "train": {
            "epochs": 60,
            "lr": 0.1,
            "batch_size": 16,
            "loss": "auto",
            "seed": 1,
            "eval_every": 10,
            "run_dir": "runs/blobs-relu-ce-batch",
            "enable_plots": False,
        },
    },
    "spiral-leaky-ce": {
        "data": {"name": "spiral", "options": {"n_per_class": 60, "classes": 3, "seed": 2}},
        "model": {"hidden": [32, 16], "activation": "leaky_relu"},
        "train": {
            "epochs": 300,
            "lr": 0.05,
            "batch_size": 8,
            "loss": "cross_entropy",
            "seed": 2,
            "eval_every": 25,
            "run_dir": "runs/spiral-leaky-ce",
            "enable_plots": False,
        },
    },
}

_DATASETS: Dict[str, Callable[..., Tuple[Array, Array]]] = {
    "xor": utils.make_xor,
    "blobs": utils.make_blobs,
    "spiral": utils.make_spiral,
}

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


# ----------------------------------------------------------------------
# Configuration


def _read_config_file(path: Path) -> Mapping[str, object]:
    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:  # pragma: no cover - declared dependency
            raise RuntimeError("PyYAML is required to load YAML configs") from exc
        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _check_sections(name: str, data: Mapping[str, object]) -> None:
    missing = REQUIRED_SECTIONS - set(data)
    if missing:
        raise KeyError(f"Config {name} is missing required sections: {', '.join(sorted(missing))}")


def load_config(path: str | Path) -> Mapping[str, object]:
    """Read a YAML or JSON run config from ``path``."""

    path = Path(path)
    data = _read_config_file(path)
    _check_sections(path.name, data)
    return json.loads(json.dumps(data))


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                found[file.stem] = load_config(file)
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_presets = _file_presets()
    if name in file_presets:
        return file_presets[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


# ----------------------------------------------------------------------
# Running


class _EpochReporter:
    """Add evaluation metrics to the epoch loss and fan out to the sinks."""

    def __init__(
        self,
        network: Network,
        inputs: Array,
        targets: Array,
        metric_names: Sequence[str],
        eval_every: int,
        epochs: int,
        sinks: Sequence[object],
    ) -> None:
        self.network = network
        self.inputs = inputs
        self.targets = targets
        self.metric_names = list(metric_names)
        self.eval_every = eval_every
        self.epochs = epochs
        self.sinks = list(sinks)

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        payload = dict(metrics)
        if epoch == 1 or epoch == self.epochs or epoch % self.eval_every == 0:
            predictions = self.network.predict_batch(self.inputs)
            payload.update(compute_metrics(self.metric_names, predictions, self.targets))
        for sink in self.sinks:
            sink.on_epoch(epoch, payload)  # type: ignore[attr-defined]


def _load_dataset(data_cfg: Mapping[str, object]) -> Tuple[Array, Array, Mapping[str, object]]:
    name = str(data_cfg.get("name", ""))
    if name not in _DATASETS:
        available = ", ".join(sorted(_DATASETS))
        raise KeyError(f"Unknown dataset {name!r}. Available datasets: {available}")
    options = dict(data_cfg.get("options") or {})
    inputs, targets = _DATASETS[name](**options)
    provenance = {
        "name": name,
        "options": options,
        "examples": int(inputs.shape[0]),
        "features": int(inputs.shape[1]),
        "classes": int(targets.shape[1]),
    }
    return inputs, targets, provenance


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if train_cfg.get("run_dir"):
        return Path(str(train_cfg["run_dir"]))
    root = Path(os.environ.get(RUN_ROOT_ENV, "runs"))
    return root / time.strftime("%Y%m%d-%H%M%S") / dataset


def _print_startup_summary(
    *,
    dataset_name: str,
    network: Network,
    epochs: int,
    lr: float,
    batch_size: int | None,
    metrics: Sequence[str],
) -> None:
    print("=== scratchmlp run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Topology      : {network.topology}")
    print(f"Activation    : {network.activation.name}")
    print(f"Loss          : {network.loss.name}")
    print(f"Epochs        : {epochs}")
    print(f"Learning rate : {lr}")
    print(f"Batch size    : {batch_size if batch_size is not None else 'single-example'}")
    print(f"Metrics       : {', '.join(metrics)}")
    print(f"Parameters    : {network.parameter_count()}")
    print("======================")


def run_pipeline(config: Mapping[str, object]) -> RunResult:
    """Build the dataset and network described by ``config`` and train it."""

    _check_sections("<mapping>", config)
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    inputs, targets, provenance = _load_dataset(data_cfg)
    task_type = str(data_cfg.get("task_type", "multiclass"))

    seed = train_cfg.get("seed")
    seed = int(seed) if seed is not None else None
    epochs = int(train_cfg.get("epochs", 1))
    lr = float(train_cfg.get("lr", 0.1))
    batch_size = train_cfg.get("batch_size")
    batch_size = int(batch_size) if batch_size is not None else None
    eval_every = int(train_cfg.get("eval_every", 1))
    if eval_every <= 0:
        raise ValueError(f"eval_every must be positive, got {eval_every}")

    metrics_cfg = train_cfg.get("metrics", "default")
    if isinstance(metrics_cfg, str):
        if metrics_cfg in {"", "default"}:
            metric_names: List[str] = default_metrics(task_type)
        else:
            metric_names = [m.strip() for m in metrics_cfg.split(",") if m.strip()]
    else:
        metric_names = [str(m) for m in metrics_cfg]  # type: ignore[union-attr]

    loss = LOSS_REGISTRY.resolve(str(train_cfg.get("loss", "auto")), task_type=task_type)
    hidden = [int(h) for h in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    network = Network(
        inputs.shape[1],
        hidden,
        targets.shape[1],
        str(model_cfg.get("activation", "tanh")),
        loss,
        seed=seed,
    )

    run_dir = _resolve_run_dir(train_cfg, provenance["name"])
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=str(provenance["name"]),
        network=network,
        epochs=epochs,
        lr=lr,
        batch_size=batch_size,
        metrics=metric_names,
    )

    jsonl = JsonlSink(run_dir / "metrics_train.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics_train.csv", split="train")
    capture = MetricsCapture()
    plots = PlotAdapter(run_dir, enable_plots=bool(train_cfg.get("enable_plots", False)))
    reporter = _EpochReporter(
        network,
        inputs,
        targets,
        metric_names,
        eval_every,
        epochs,
        sinks=[jsonl, csv_sink, capture, plots],
    )

    history = network.train(inputs, targets, epochs, lr, batch_size, callbacks=[reporter])
    plots.close()

    checkpoint_path = save_network(network, run_dir / "network.npz")
    safe_config = json.loads(json.dumps(config))
    manifest_path = write_manifest(
        run_dir / "manifest.json",
        config=safe_config,
        model={
            "topology": network.topology,
            "activation": network.activation.name,
            "loss": network.loss.name,
            "parameters": network.parameter_count(),
        },
        dataset=provenance,
    )
    (run_dir / "config.json").write_text(json.dumps(safe_config, indent=2))
    summary_path = write_summary(
        jsonl.path, run_dir / "summary.json", tail=int(train_cfg.get("summary_tail", 10))
    )

    return RunResult(
        epochs=epochs,
        final_loss=float(history[-1]) if history else float("nan"),
        metrics_path=str(jsonl.path),
        manifest_path=manifest_path,
        checkpoint_path=str(checkpoint_path),
        summary_path=summary_path,
        final_metrics=dict(capture.last),
    )


__all__ = ["load_config", "load_preset", "presets", "run_pipeline"]
