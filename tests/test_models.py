from __future__ import annotations

import dataclasses

import pytest

from rpc_versus.models import (
    Classification,
    EndpointTarget,
    Failure,
    FailureKind,
    Outcome,
    Request,
    RunSummary,
    Verdict,
)


def _target(name: str = "A") -> EndpointTarget:
    return EndpointTarget(name=name, url=f"http://{name.lower()}.test/rpc")


def test_outcome_requires_exactly_one_of_payload_or_failure() -> None:
    target = _target()
    with pytest.raises(ValueError):
        Outcome(endpoint=target, elapsed_ms=1.0)
    with pytest.raises(ValueError):
        Outcome(
            endpoint=target,
            elapsed_ms=1.0,
            payload="x",
            failure=Failure(FailureKind.TIMEOUT, "late"),
        )


def test_outcome_rejects_negative_elapsed() -> None:
    with pytest.raises(ValueError):
        Outcome.success(_target(), "x", -0.5)


def test_failed_outcome_carries_failure_fields() -> None:
    outcome = Outcome.failed(
        _target(), FailureKind.APPLICATION_ERROR, "HTTP 500", 12.5, status=500, detail="boom"
    )

    assert not outcome.ok
    assert outcome.failure is not None
    assert outcome.failure.signature() == (FailureKind.APPLICATION_ERROR, 500, "boom")
    assert outcome.to_record() == {
        "endpoint": "A",
        "ok": False,
        "elapsed_ms": 12.5,
        "failure": {
            "kind": "application_error",
            "message": "HTTP 500",
            "status": 500,
            "detail": "boom",
        },
    }


def test_endpoint_target_strips_and_validates_name() -> None:
    assert EndpointTarget(name="  main ", url="http://x").name == "main"
    with pytest.raises(ValueError):
        EndpointTarget(name="  ", url="http://x")
    with pytest.raises(ValueError):
        EndpointTarget(name="a", url="http://x", timeout_s=0)


def test_endpoint_headers_are_read_only() -> None:
    target = EndpointTarget(name="a", url="http://x", headers={"x-key": "1"})

    with pytest.raises(TypeError):
        target.headers["x-key"] = "2"  # type: ignore[index]


def test_request_rejects_non_integer_seq() -> None:
    with pytest.raises(TypeError):
        Request(seq="1", payload="{}")  # type: ignore[arg-type]
    with pytest.raises(TypeError):
        Request(seq=True, payload="{}")


def test_verdict_latency_properties() -> None:
    a, b = _target("A"), _target("B")
    verdict = Verdict(
        seq=3,
        outcomes=(Outcome.success(a, "x", 40.0), Outcome.success(b, "x", 15.0)),
        classification=Classification.ALL_AGREE,
        ranking=("B", "A"),
    )

    assert verdict.matched
    assert verdict.fastest == "B"
    assert verdict.slowest == "A"
    assert verdict.latency_spread_ms == pytest.approx(25.0)
    record = verdict.to_record()
    assert record["seq"] == 3
    assert record["classification"] == "all_agree"
    assert record["latency_spread_ms"] == 25.0


def test_verdict_without_successes_has_no_spread() -> None:
    verdict = Verdict(
        seq=0,
        outcomes=(Outcome.failed(_target(), FailureKind.TIMEOUT, "late", 1000.0),),
        classification=Classification.INSUFFICIENT_DATA,
        failed=("A",),
    )

    assert verdict.fastest is None
    assert verdict.latency_spread_ms is None
    assert verdict.to_record()["latency_spread_ms"] is None


def test_run_summary_counts_classifications() -> None:
    summary = RunSummary()
    for classification in (
        Classification.ALL_AGREE,
        Classification.ALL_AGREE,
        Classification.PARTIAL_AGREEMENT,
        Classification.INSUFFICIENT_DATA,
    ):
        summary.record(Verdict(seq=0, outcomes=(), classification=classification))

    assert summary.total == 4
    assert summary.all_agree == 2
    assert summary.partial_agreement == 1
    assert summary.insufficient_data == 1
    assert summary.mismatched == 2
    assert summary.to_record()["source_error"] is None


@pytest.mark.parametrize("cls, name", [(Request, "metadata"), (EndpointTarget, "headers")])
def test_mapping_fields_use_factories_not_shared_defaults(cls: type, name: str) -> None:
    # mappingproxy defaults are rejected as mutable by dataclasses on 3.11
    (declared,) = [f for f in dataclasses.fields(cls) if f.name == name]

    assert declared.default is dataclasses.MISSING
    assert declared.default_factory is not dataclasses.MISSING


def test_default_mappings_are_empty_and_read_only() -> None:
    request = Request(seq=0, payload="{}")
    target = EndpointTarget(name="a", url="http://a.test")

    assert dict(request.metadata) == {}
    assert dict(target.headers) == {}
    with pytest.raises(TypeError):
        request.metadata["k"] = "v"  # type: ignore[index]
