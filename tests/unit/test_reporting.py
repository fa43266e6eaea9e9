import json

import pytest

from scratchmlp.reporting.artifacts import write_manifest
from scratchmlp.reporting.metrics import CsvSink, JsonlSink, MetricsCapture
from scratchmlp.reporting.plots import PlotAdapter
from scratchmlp.reporting.summary import summarise, write_summary
from scratchmlp.training.metrics import accuracy, compute_metrics, default_metrics, mse


def test_jsonl_sink_records(tmp_path):
    sink = JsonlSink(tmp_path / "m.jsonl", split="train", seed=3, sha="abc")
    sink.on_epoch(1, {"loss": 0.5, "note": "skipped"})
    sink(2, {"loss": 0.25})
    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[0] == {"epoch": 1, "split": "train", "seed": 3, "sha": "abc", "loss": 0.5}
    assert records[1]["epoch"] == 2


def test_csv_sink_writes_header_once(tmp_path):
    sink = CsvSink(tmp_path / "m.csv")
    sink.on_epoch(1, {"loss": 1.0, "accuracy": 0.5})
    sink.on_epoch(2, {"loss": 0.5})
    lines = (tmp_path / "m.csv").read_text().splitlines()
    assert lines[0] == "accuracy,epoch,loss,split"
    assert lines[2] == ",2,0.5,train"


def test_metrics_capture_keeps_last():
    capture = MetricsCapture()
    capture.on_epoch(1, {"loss": 2.0})
    capture.on_epoch(2, {"loss": 1.0})
    assert capture.last == {"loss": 1.0}
    assert len(capture.history) == 2


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.on_epoch(2, {"loss": 0.5})
    assert adapter.close() == tmp_path / "loss.png"
    assert (tmp_path / "loss.png").exists()


def test_plot_adapter_tracks_sparse_metrics(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0, "accuracy": 0.5})
    adapter.on_epoch(2, {"loss": 0.8})
    adapter(3, {"loss": 0.0, "accuracy": 1.0, "mse": 0.1})
    assert adapter.loss == [(1, 1.0), (2, 0.8), (3, 0.0)]
    assert adapter.evaluated == {"accuracy": [(1, 0.5), (3, 1.0)], "mse": [(3, 0.1)]}
    assert adapter.close() == tmp_path / "loss.png"
    assert (tmp_path / "loss.png").stat().st_size > 0


def test_plot_adapter_disabled(tmp_path):
    adapter = PlotAdapter(tmp_path / "off")
    adapter.on_epoch(1, {"loss": 1.0})
    assert adapter.close() is None
    assert not (tmp_path / "off").exists()


def test_summary_statistics(tmp_path):
    records = [{"epoch": i, "loss": float(v)} for i, v in enumerate([4, 3, 2, 1], start=1)]
    summary = summarise(records, tail=2)
    assert summary["metrics"]["loss"] == {
        "min": 1.0,
        "max": 4.0,
        "mean": 2.5,
        "last": 1.0,
        "tail_mean": 1.5,
    }
    path = tmp_path / "m.jsonl"
    path.write_text("\n".join(json.dumps(r) for r in records) + "\n")
    out = json.loads((tmp_path / write_summary(path, tmp_path / "s.json", tail=2)).read_text())
    assert out["records"] == 4


def test_manifest_contents(tmp_path):
    path = write_manifest(
        tmp_path / "manifest.json",
        config={"train": {"epochs": 1}},
        model={"topology": [2, 2]},
        dataset={"name": "xor"},
    )
    manifest = json.loads(open(path).read())
    assert manifest["model"]["topology"] == [2, 2]
    assert "numpy" in manifest["environment"]


def test_metric_helpers():
    preds = [[0.9, 0.1], [0.2, 0.8], [0.6, 0.4]]
    targets = [[1, 0], [0, 1], [0, 1]]
    assert accuracy(preds, targets) == pytest.approx(2 / 3)
    assert accuracy(preds, [0, 1, 1]) == pytest.approx(2 / 3)
    assert mse([[1.0, 0.0]], [[0.0, 0.0]]) == 0.5
    assert compute_metrics(["accuracy", "MSE"], preds, targets).keys() == {"accuracy", "mse"}
    assert default_metrics("multiclass") == ["accuracy"]
    with pytest.raises(KeyError):
        compute_metrics(["f1"], preds, targets)
