"""Structured event sinks for verdicts and endpoint calls."""
from __future__ import annotations

from collections.abc import Iterable, Mapping
import json
import logging
from pathlib import Path
import sys
from threading import Lock
import time
from typing import Any, Protocol, TextIO

from .models import Verdict

LOGGER = logging.getLogger(__name__)

PathLike = str | Path

ENDPOINT_CALL_EVENT = "endpoint_call"
VERDICT_EVENT = "verdict"


class EventLogger(Protocol):
    """Protocol for structured event loggers."""

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        """Persist ``record`` for ``event_type``."""


def _stamp(event_type: str, record: Mapping[str, Any]) -> dict[str, Any]:
    payload = dict(record)
    payload.setdefault("event", event_type)
    payload.setdefault("ts", int(time.time() * 1000))
    return payload


class JsonlLogger:
    """Append structured events to a JSONL file with basic locking."""

    def __init__(self, path: PathLike) -> None:
        self._path = Path(path)
        self._lock = Lock()

    @property
    def path(self) -> Path:
        return self._path

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        payload = _stamp(event_type, record)

        target = self._path
        parent = target.parent
        if parent != Path(""):
            parent.mkdir(parents=True, exist_ok=True)

        with self._lock:
            with target.open("a", encoding="utf-8") as handle:
                handle.write(json.dumps(payload, ensure_ascii=False) + "\n")


class StdLogger:
    """Write events as JSON lines to ``stream`` (stderr by default)."""

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stderr
        self._lock = Lock()

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        payload = _stamp(event_type, record)

        with self._lock:
            self._stream.write(json.dumps(payload, ensure_ascii=False) + "\n")
            self._stream.flush()


class CompositeLogger:
    """Fan out events to multiple loggers while isolating failures."""

    def __init__(self, loggers: Iterable[EventLogger] | None = None) -> None:
        self._loggers: list[EventLogger] = list(loggers or ())
        self._lock = Lock()

    def add(self, logger: EventLogger) -> None:
        with self._lock:
            self._loggers.append(logger)

    def __len__(self) -> int:
        with self._lock:
            return len(self._loggers)

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        with self._lock:
            loggers = tuple(self._loggers)

        for logger in loggers:
            try:
                logger.emit(event_type, record)
            except Exception:
                LOGGER.warning(
                    "event logger %s failed on %s",
                    type(logger).__name__,
                    event_type,
                    exc_info=True,
                )


def emit_verdict(logger: EventLogger, verdict: Verdict) -> None:
    """Emit one ``endpoint_call`` per outcome followed by the ``verdict`` itself."""

    for outcome in verdict.outcomes:
        failure = outcome.failure
        logger.emit(
            ENDPOINT_CALL_EVENT,
            {
                "seq": verdict.seq,
                "endpoint": outcome.endpoint.name,
                "ok": outcome.ok,
                "elapsed_ms": round(outcome.elapsed_ms, 3),
                "failure_kind": failure.kind.value if failure else None,
                "status": failure.status if failure else None,
            },
        )
    logger.emit(VERDICT_EVENT, verdict.to_record())


__all__ = [
    "ENDPOINT_CALL_EVENT",
    "VERDICT_EVENT",
    "CompositeLogger",
    "EventLogger",
    "JsonlLogger",
    "StdLogger",
    "emit_verdict",
]
