"""Configuration objects for the versus run loop."""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from pathlib import Path

from .models import EndpointTarget
from .policies import ComparisonPolicy

DEFAULT_TIMEOUT_S = 10.0
DEFAULT_MAX_IN_FLIGHT = 4
DEFAULT_COMPARE = "exact"

MetricsPath = str | Path | None


def _check_positive_int(name: str, value: object, *, optional: bool = False) -> None:
    if optional and value is None:
        return
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int")
    if value <= 0:
        raise ValueError(f"{name} must be a positive integer")


@dataclass(frozen=True)
class RunnerConfig:
    """Immutable run configuration shared by every concurrent dispatch."""

    endpoints: Sequence[EndpointTarget]
    timeout_s: float = DEFAULT_TIMEOUT_S
    max_in_flight: int = DEFAULT_MAX_IN_FLIGHT
    compare: str | ComparisonPolicy = DEFAULT_COMPARE
    agree_on_shared_errors: bool = False
    max_count: int | None = None
    metrics_path: MetricsPath = field(default=None)

    def __post_init__(self) -> None:
        endpoints = tuple(self.endpoints)
        if not endpoints:
            raise ValueError("at least one endpoint is required")
        for endpoint in endpoints:
            if not isinstance(endpoint, EndpointTarget):
                raise TypeError("endpoints must contain EndpointTarget values")
        names = [endpoint.name for endpoint in endpoints]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"endpoint names must be unique: {', '.join(duplicates)}")
        object.__setattr__(self, "endpoints", endpoints)

        timeout = self.timeout_s
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)):
            raise TypeError("timeout_s must be a number")
        if timeout <= 0:
            raise ValueError("timeout_s must be positive")
        object.__setattr__(self, "timeout_s", float(timeout))

        _check_positive_int("max_in_flight", self.max_in_flight)
        _check_positive_int("max_count", self.max_count, optional=True)


__all__ = [
    "DEFAULT_COMPARE",
    "DEFAULT_MAX_IN_FLIGHT",
    "DEFAULT_TIMEOUT_S",
    "MetricsPath",
    "RunnerConfig",
]
