"""Comparison policies deciding whether two response payloads are equivalent.

A policy is any callable ``(a, b) -> bool``. Callers are responsible for
supplying an equivalence relation (reflexive, symmetric, transitive); the
comparator relies on transitivity when it partitions responses.
"""
from __future__ import annotations

from collections.abc import Callable
import json
from typing import Any

from .errors import ConfigError
from .models import Payload

__all__ = [
    "ComparisonPolicy",
    "POLICY_ALIASES",
    "exact_match",
    "json_match",
    "register_policy",
    "resolve_policy",
]

ComparisonPolicy = Callable[[Payload, Payload], bool]

_MISSING = object()


def _as_bytes(payload: Payload) -> bytes:
    if isinstance(payload, bytes):
        return payload
    return payload.encode("utf-8")


def exact_match(a: Payload, b: Payload) -> bool:
    if type(a) is type(b):
        return a == b
    return _as_bytes(a) == _as_bytes(b)


def _canonical_json(payload: Payload) -> Any:
    try:
        parsed = json.loads(payload)
    except (json.JSONDecodeError, UnicodeDecodeError):
        return _MISSING
    return json.dumps(parsed, sort_keys=True, separators=(",", ":"), ensure_ascii=False)


def json_match(a: Payload, b: Payload) -> bool:
    """Order-insensitive structural comparison of JSON documents.

    Payloads that do not parse as JSON fall back to :func:`exact_match`, so
    deliberately malformed requests still compare their raw error bodies.
    """

    left = _canonical_json(a)
    right = _canonical_json(b)
    if left is _MISSING or right is _MISSING:
        return exact_match(a, b)
    return bool(left == right)


_POLICIES: dict[str, ComparisonPolicy] = {
    "exact": exact_match,
    "json": json_match,
}

POLICY_ALIASES: dict[str, set[str]] = {
    "exact": {"exact", "bytes", "text", "exact_match"},
    "json": {"json", "structural", "json_match"},
}


def register_policy(name: str, policy: ComparisonPolicy) -> None:
    key = (name or "").strip().lower()
    if not key:
        raise ValueError("policy name must be a non-empty string")
    if not callable(policy):
        raise TypeError("policy must be callable")
    _POLICIES[key] = policy
    POLICY_ALIASES.setdefault(key, set()).add(key)


def resolve_policy(policy: str | ComparisonPolicy) -> ComparisonPolicy:
    if callable(policy):
        return policy
    kind_norm = (policy or "").strip().lower().replace("-", "_")
    for key, aliases in POLICY_ALIASES.items():
        if kind_norm in aliases:
            return _POLICIES[key]
    raise ConfigError(f"Unknown comparison policy: {policy!r}")
