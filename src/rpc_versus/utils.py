"""Utility helpers shared across the runner."""

from __future__ import annotations

import json
import time


def elapsed_ms(start: float, *, now: float | None = None) -> float:
    """Return elapsed milliseconds since ``start`` (a ``perf_counter`` value)."""

    current = time.perf_counter() if now is None else now
    return max(0.0, (current - start) * 1000.0)


def remaining_s(deadline: float, *, floor: float = 0.001) -> float:
    """Seconds left until ``deadline`` (a ``monotonic`` value), never below ``floor``."""

    return max(deadline - time.monotonic(), floor)


def extract_method(line: str) -> str | None:
    """Pull the JSON-RPC ``method`` out of ``line`` when it is a JSON object."""

    stripped = line.lstrip()
    if not stripped.startswith("{"):
        return None
    try:
        data = json.loads(stripped)
    except json.JSONDecodeError:
        return None
    if isinstance(data, dict):
        method = data.get("method")
        if isinstance(method, str) and method:
            return method
    return None


__all__ = [
    "elapsed_ms",
    "extract_method",
    "remaining_s",
]
