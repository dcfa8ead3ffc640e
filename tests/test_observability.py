from __future__ import annotations

import io
import json
from pathlib import Path

from prometheus_client import CollectorRegistry
import pytest

from rpc_versus.comparator import Comparator
from rpc_versus.metrics import PrometheusMetricsExporter
from rpc_versus.models import EndpointTarget, FailureKind, Outcome
from rpc_versus.observability import (
    CompositeLogger,
    JsonlLogger,
    StdLogger,
    emit_verdict,
)

from .helpers.fakes import FakeLogger


def _verdict():
    a = EndpointTarget(name="A", url="http://a.test")
    b = EndpointTarget(name="B", url="http://b.test")
    outcomes = [
        Outcome.success(a, "x", 25.0),
        Outcome.failed(b, FailureKind.APPLICATION_ERROR, "HTTP 500", 3.0, status=500),
    ]
    return Comparator().compare(9, outcomes)


def test_emit_verdict_records_calls_then_verdict() -> None:
    logger = FakeLogger()

    emit_verdict(logger, _verdict())

    assert [event for event, _ in logger.events] == [
        "endpoint_call",
        "endpoint_call",
        "verdict",
    ]
    failed_call = logger.events[1][1]
    assert failed_call == {
        "seq": 9,
        "endpoint": "B",
        "ok": False,
        "elapsed_ms": 3.0,
        "failure_kind": "application_error",
        "status": 500,
    }
    assert logger.events[2][1]["classification"] == "partial_agreement"


def test_jsonl_logger_appends_stamped_events(tmp_path: Path) -> None:
    logger = JsonlLogger(tmp_path / "nested" / "events.jsonl")

    logger.emit("verdict", {"seq": 1})
    logger.emit("verdict", {"seq": 2})

    lines = logger.path.read_text(encoding="utf-8").splitlines()
    records = [json.loads(line) for line in lines]
    assert [record["seq"] for record in records] == [1, 2]
    assert all(record["event"] == "verdict" for record in records)
    assert all(isinstance(record["ts"], int) for record in records)


def test_std_logger_writes_json_lines(capsys: pytest.CaptureFixture[str]) -> None:
    stream = io.StringIO()

    StdLogger(stream).emit("endpoint_call", {"endpoint": "A"})

    record = json.loads(stream.getvalue())
    assert record["endpoint"] == "A"
    assert record["event"] == "endpoint_call"

    StdLogger().emit("verdict", {"seq": 1})
    assert json.loads(capsys.readouterr().err)["seq"] == 1


def test_composite_logger_isolates_failing_loggers(caplog: pytest.LogCaptureFixture) -> None:
    class Broken:
        def emit(self, event_type, record):
            raise RuntimeError("disk full")

    healthy = FakeLogger()
    composite = CompositeLogger([Broken()])
    composite.add(healthy)

    composite.emit("verdict", {"seq": 0})

    assert len(composite) == 2
    assert healthy.events == [("verdict", {"seq": 0})]
    assert "event logger Broken failed on verdict" in caplog.text


def test_prometheus_exporter_counts_calls_and_verdicts() -> None:
    registry = CollectorRegistry()
    exporter = PrometheusMetricsExporter(registry=registry)

    emit_verdict(exporter, _verdict())

    assert registry.get_sample_value(
        "versus_endpoint_call_total", {"endpoint": "A", "status": "ok"}
    ) == 1.0
    assert registry.get_sample_value(
        "versus_endpoint_call_total", {"endpoint": "B", "status": "application_error"}
    ) == 1.0
    assert registry.get_sample_value(
        "versus_endpoint_call_latency_ms_count", {"endpoint": "A"}
    ) == 1.0
    assert registry.get_sample_value(
        "versus_endpoint_call_latency_ms_count", {"endpoint": "B"}
    ) is None
    assert registry.get_sample_value(
        "versus_verdict_total", {"classification": "partial_agreement"}
    ) == 1.0


def test_prometheus_exporter_composes_with_jsonl(tmp_path: Path) -> None:
    registry = CollectorRegistry()
    composite = CompositeLogger(
        [JsonlLogger(tmp_path / "events.jsonl"), PrometheusMetricsExporter("rpc", registry)]
    )

    emit_verdict(composite, _verdict())

    assert registry.get_sample_value(
        "rpc_verdict_total", {"classification": "partial_agreement"}
    ) == 1.0
    assert len((tmp_path / "events.jsonl").read_text(encoding="utf-8").splitlines()) == 3
