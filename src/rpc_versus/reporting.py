"""Render verdicts and run summaries for humans and machines."""

from __future__ import annotations

from collections import Counter
import json
import sys
from typing import TextIO

from .models import RunSummary, Verdict, payload_text

__all__ = [
    "OUTPUT_FORMATS",
    "JsonlReporter",
    "TextReporter",
    "format_summary",
    "format_verdict",
    "make_reporter",
]

OUTPUT_FORMATS = ("text", "jsonl")

_PREVIEW_CHARS = 120


def _preview(text: str) -> str:
    flat = " ".join(text.split())
    if len(flat) <= _PREVIEW_CHARS:
        return flat
    return flat[: _PREVIEW_CHARS - 3] + "..."


def _format_text(verdict: Verdict) -> str:
    lines = []
    for outcome in verdict.outcomes:
        status = "ok" if outcome.ok else outcome.failure.kind.value  # type: ignore[union-attr]
        lines.append(
            f"[{verdict.seq}] {outcome.endpoint.name} completed in "
            f"{outcome.elapsed_ms:.0f} ms ({status})"
        )
    if verdict.matched:
        lines.append(f"[{verdict.seq}] all matched")
        return "\n".join(lines)
    lines.append(f"[{verdict.seq}] {verdict.classification.value}")
    for index, group in enumerate(verdict.groups, start=1):
        members = ", ".join(group.members)
        lines.append(
            f"  group {index} ({members}): {_preview(payload_text(group.payload))}"
        )
    errors: Counter[str] = Counter()
    for outcome in verdict.outcomes:
        if outcome.failure is not None:
            errors[outcome.failure.message] += 1
    for message, count in errors.items():
        lines.append(f"  error x{count}: {_preview(message)}")
    if verdict.ranking:
        lines.append(f"  ranking: {' < '.join(verdict.ranking)}")
    return "\n".join(lines)


def format_verdict(verdict: Verdict, fmt: str) -> str:
    if fmt == "text":
        return _format_text(verdict)
    if fmt == "jsonl":
        return json.dumps(verdict.to_record(), ensure_ascii=False)
    raise ValueError(f"unsupported output format: {fmt!r}")


def format_summary(summary: RunSummary) -> str:
    text = (
        f"sent {summary.total} requests: {summary.all_agree} matched, "
        f"{summary.partial_agreement} partial, {summary.all_disagree} disagreed, "
        f"{summary.insufficient_data} without data"
    )
    if summary.source_error:
        text += f" (source failed: {summary.source_error})"
    return text


class TextReporter:
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def __call__(self, verdict: Verdict) -> None:
        self._stream.write(format_verdict(verdict, "text") + "\n")
        self._stream.flush()


class JsonlReporter:
    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream or sys.stdout

    def __call__(self, verdict: Verdict) -> None:
        self._stream.write(format_verdict(verdict, "jsonl") + "\n")
        self._stream.flush()


def make_reporter(fmt: str, stream: TextIO | None = None) -> TextReporter | JsonlReporter:
    if fmt == "text":
        return TextReporter(stream)
    if fmt == "jsonl":
        return JsonlReporter(stream)
    raise ValueError(f"unsupported output format: {fmt!r}")
