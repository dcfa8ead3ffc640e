"""Value objects shared by the dispatcher, comparator and run loop."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

Payload = str | bytes

_EMPTY: Mapping[str, Any] = MappingProxyType({})


class FailureKind(str, Enum):
    """Failure categories kept distinct for comparison and reporting."""

    TIMEOUT = "timeout"
    TRANSPORT_ERROR = "transport_error"
    APPLICATION_ERROR = "application_error"


class Classification(str, Enum):
    """Equivalence verdict across every endpoint of one request."""

    ALL_AGREE = "all_agree"
    PARTIAL_AGREEMENT = "partial_agreement"
    ALL_DISAGREE = "all_disagree"
    INSUFFICIENT_DATA = "insufficient_data"


def _freeze(mapping: Mapping[str, Any] | None) -> Mapping[str, Any]:
    if not mapping:
        return _EMPTY
    return MappingProxyType(dict(mapping))


def payload_text(payload: Payload) -> str:
    if isinstance(payload, bytes):
        return payload.decode("utf-8", errors="replace")
    return payload


@dataclass(frozen=True, slots=True)
class Request:
    """One unit of work pulled from the request source."""

    seq: int
    payload: Payload
    method: str | None = None
    metadata: Mapping[str, Any] = field(default_factory=lambda: _EMPTY, compare=False)

    def __post_init__(self) -> None:
        if isinstance(self.seq, bool) or not isinstance(self.seq, int):
            raise TypeError("Request.seq must be an int")
        object.__setattr__(self, "metadata", _freeze(self.metadata))


@dataclass(frozen=True, slots=True)
class EndpointTarget:
    """A backend under comparison; immutable for the whole run."""

    name: str
    url: str
    headers: Mapping[str, str] = field(default_factory=lambda: _EMPTY, compare=False)
    timeout_s: float | None = None

    def __post_init__(self) -> None:
        name = (self.name or "").strip()
        if not name:
            raise ValueError("EndpointTarget.name must be a non-empty string")
        object.__setattr__(self, "name", name)
        object.__setattr__(self, "headers", _freeze(self.headers))
        if self.timeout_s is not None and self.timeout_s <= 0:
            raise ValueError("EndpointTarget.timeout_s must be positive")


@dataclass(frozen=True, slots=True)
class Failure:
    kind: FailureKind
    message: str
    status: int | None = None
    detail: str | None = None

    def signature(self) -> tuple[FailureKind, int | None, str | None]:
        """Identity used when deciding whether two failures are the same."""

        return self.kind, self.status, self.detail

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {"kind": self.kind.value, "message": self.message}
        if self.status is not None:
            record["status"] = self.status
        if self.detail is not None:
            record["detail"] = self.detail
        return record


@dataclass(frozen=True, slots=True)
class Outcome:
    """Timed result of sending one request to one endpoint.

    Exactly one of ``payload`` and ``failure`` is set.
    """

    endpoint: EndpointTarget
    elapsed_ms: float
    payload: Payload | None = None
    failure: Failure | None = None

    def __post_init__(self) -> None:
        if (self.payload is None) == (self.failure is None):
            raise ValueError("Outcome requires exactly one of payload or failure")
        if self.elapsed_ms < 0:
            raise ValueError("Outcome.elapsed_ms must be non-negative")

    @classmethod
    def success(
        cls, endpoint: EndpointTarget, payload: Payload, elapsed_ms: float
    ) -> Outcome:
        return cls(endpoint=endpoint, elapsed_ms=elapsed_ms, payload=payload)

    @classmethod
    def failed(
        cls,
        endpoint: EndpointTarget,
        kind: FailureKind,
        message: str,
        elapsed_ms: float,
        *,
        status: int | None = None,
        detail: str | None = None,
    ) -> Outcome:
        failure = Failure(kind=kind, message=message, status=status, detail=detail)
        return cls(endpoint=endpoint, elapsed_ms=elapsed_ms, failure=failure)

    @property
    def ok(self) -> bool:
        return self.failure is None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "endpoint": self.endpoint.name,
            "ok": self.ok,
            "elapsed_ms": round(self.elapsed_ms, 3),
        }
        if self.payload is not None:
            record["payload"] = payload_text(self.payload)
        if self.failure is not None:
            record["failure"] = self.failure.to_record()
        return record


@dataclass(frozen=True, slots=True)
class EquivalenceClass:
    members: tuple[str, ...]
    payload: Payload

    def to_record(self) -> dict[str, Any]:
        return {"members": list(self.members), "payload": payload_text(self.payload)}


@dataclass(frozen=True, slots=True)
class Verdict:
    """Per-request comparison result across every configured endpoint."""

    seq: int
    outcomes: tuple[Outcome, ...]
    classification: Classification
    groups: tuple[EquivalenceClass, ...] = ()
    failed: tuple[str, ...] = ()
    ranking: tuple[str, ...] = ()

    @property
    def matched(self) -> bool:
        return self.classification is Classification.ALL_AGREE

    def _outcome_for(self, name: str) -> Outcome:
        for outcome in self.outcomes:
            if outcome.endpoint.name == name:
                return outcome
        raise KeyError(name)

    @property
    def fastest(self) -> str | None:
        return self.ranking[0] if self.ranking else None

    @property
    def slowest(self) -> str | None:
        return self.ranking[-1] if self.ranking else None

    @property
    def latency_spread_ms(self) -> float | None:
        if not self.ranking:
            return None
        fastest = self._outcome_for(self.ranking[0])
        slowest = self._outcome_for(self.ranking[-1])
        return slowest.elapsed_ms - fastest.elapsed_ms

    def to_record(self) -> dict[str, Any]:
        spread = self.latency_spread_ms
        return {
            "seq": self.seq,
            "classification": self.classification.value,
            "matched": self.matched,
            "ranking": list(self.ranking),
            "failed": list(self.failed),
            "groups": [group.to_record() for group in self.groups],
            "latency_spread_ms": None if spread is None else round(spread, 3),
            "outcomes": [outcome.to_record() for outcome in self.outcomes],
        }


@dataclass(slots=True)
class RunSummary:
    """Classification counters for one run; verdicts themselves are not retained."""

    total: int = 0
    all_agree: int = 0
    partial_agreement: int = 0
    all_disagree: int = 0
    insufficient_data: int = 0
    source_error: str | None = None

    def record(self, verdict: Verdict) -> None:
        self.total += 1
        name = verdict.classification.value
        setattr(self, name, getattr(self, name) + 1)

    @property
    def mismatched(self) -> int:
        return self.total - self.all_agree

    def to_record(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "all_agree": self.all_agree,
            "partial_agreement": self.partial_agreement,
            "all_disagree": self.all_disagree,
            "insufficient_data": self.insufficient_data,
            "source_error": self.source_error,
        }


__all__ = [
    "Classification",
    "EndpointTarget",
    "EquivalenceClass",
    "Failure",
    "FailureKind",
    "Outcome",
    "Payload",
    "Request",
    "RunSummary",
    "Verdict",
    "payload_text",
]
