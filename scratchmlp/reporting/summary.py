"""Per-metric summaries of an epoch metrics file."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Dict, Iterable, List, Mapping

import numpy as np


def _collect(records: Iterable[Mapping[str, object]]) -> Dict[str, List[float]]:
    series: Dict[str, List[float]] = {}
    for record in records:
        for key, value in record.items():
            if key in {"epoch", "seed"}:
                continue
            if isinstance(value, (int, float)) and not isinstance(value, bool):
                series.setdefault(key, []).append(float(value))
    return series


def summarise(records: List[Mapping[str, object]], *, tail: int = 10) -> Mapping[str, object]:
    """Return min/max/mean/last plus the mean of the last ``tail`` values."""

    summary: Dict[str, Mapping[str, float]] = {}
    for name, values in _collect(records).items():
        arr = np.asarray(values, dtype=np.float64)
        window = arr[-min(tail, arr.size):] if tail > 0 else arr
        summary[name] = {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "last": float(arr[-1]),
            "tail_mean": float(np.mean(window)),
        }
    return {"version": 1, "records": len(records), "tail": tail, "metrics": summary}


def write_summary(metrics_jsonl: str | Path, out_path: str | Path, *, tail: int = 10) -> str:
    metrics_path = Path(metrics_jsonl)
    out_path = Path(out_path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    records: List[Mapping[str, object]] = []
    if metrics_path.exists():
        for line in metrics_path.read_text().splitlines():
            line = line.strip()
            if line:
                records.append(json.loads(line))
    out_path.write_text(json.dumps(summarise(records, tail=tail), sort_keys=True, indent=2))
    return str(out_path)


__all__ = ["summarise", "write_summary"]
