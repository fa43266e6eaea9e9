"""Run artifact helpers."""

from __future__ import annotations

import json
import platform
import subprocess
import time
from pathlib import Path
from typing import Mapping

import numpy as np


def git_sha() -> str:
    try:
        out = subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
        return out.decode().strip()
    except (OSError, subprocess.CalledProcessError):  # pragma: no cover - git may be absent
        return "unknown"


def write_manifest(
    path: str | Path,
    *,
    config: Mapping[str, object],
    model: Mapping[str, object],
    dataset: Mapping[str, object],
) -> str:
    """Write a manifest JSON file capturing what a run was built from."""

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    manifest = {
        "git_sha": git_sha(),
        "generated_at": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "config": config,
        "model": dict(model),
        "dataset": dict(dataset),
        "environment": {
            "python": platform.python_version(),
            "numpy": np.__version__,
        },
    }
    path.write_text(json.dumps(manifest, indent=2))
    return str(path)


__all__ = ["git_sha", "write_manifest"]
