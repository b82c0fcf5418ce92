import csv
import json

import numpy as np
import pytest

from netopt.reporting.metrics import CsvSink, JsonlSink
from netopt.reporting.plots import PlotAdapter
from netopt.training.metrics import regression_qof
from netopt.training.monitor import LossMonitor


def test_jsonl_sink_writes_one_record_per_epoch(tmp_path):
    sink = JsonlSink(tmp_path / "run" / "metrics.jsonl", seed=3, optimizer="adam")
    sink.on_epoch(1, {"loss": 2.5, "eta": 0.1, "note": "ignored"})
    sink(2, {"loss": 1.5, "eta": 0.1})
    records = [json.loads(line) for line in sink.path.read_text().splitlines()]
    assert [r["epoch"] for r in records] == [1, 2]
    assert records[0]["loss"] == 2.5
    assert records[0]["optimizer"] == "adam"
    assert "note" not in records[0]


def test_csv_sink_has_stable_header(tmp_path):
    sink = CsvSink(tmp_path / "metrics.csv")
    sink.on_epoch(1, {"loss": 3.0, "eta": 0.2})
    sink.on_epoch(2, {"loss": 2.0, "eta": 0.2})
    with sink.path.open() as handle:
        rows = list(csv.DictReader(handle))
    assert len(rows) == 2
    assert list(rows[0].keys()) == ["epoch", "eta", "loss", "split"]
    assert float(rows[1]["loss"]) == 2.0


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.on_epoch(2, {"loss": 0.5})
    adapter.close()
    assert (tmp_path / "loss.png").exists()


def test_plot_adapter_disabled_writes_nothing(tmp_path):
    adapter = PlotAdapter(tmp_path / "off")
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.close()
    assert adapter.history == []
    assert not (tmp_path / "off").exists()


def test_loss_monitor_collects_and_plots(tmp_path):
    monitor = LossMonitor()
    for loss in [3.0, 2.0, 1.0]:
        monitor.collect_loss(loss)
    assert monitor.losses == [3.0, 2.0, 1.0]
    path = monitor.plot_loss(tmp_path, "sgd")
    assert path.name == "sgd.png"
    assert path.exists()
    monitor.reset_loss()
    assert monitor.losses == []


def test_regression_qof_per_column():
    y = np.array([[1.0, 2.0], [2.0, 4.0], [3.0, 6.0]])
    yp = np.array([[1.0, 2.0], [2.0, 4.0], [4.0, 6.0]])
    qof = regression_qof(y, yp)
    assert qof["sse"] == [1.0, 0.0]
    assert qof["mae"][0] == pytest.approx(1.0 / 3.0)
    assert qof["r2"][0] == pytest.approx(0.5)
    assert qof["r2"][1] == pytest.approx(1.0)
    assert qof["rmse"][0] == pytest.approx(np.sqrt(1.0 / 3.0))
