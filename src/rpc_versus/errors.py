"""Normalized exception hierarchy for the versus runner."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .models import FailureKind

if TYPE_CHECKING:  # pragma: no cover - typing only
    from .models import RunSummary


class VersusError(Exception):
    """Base class for runner-originated errors."""


class FatalError(VersusError):
    """Base class for unrecoverable errors."""


class ConfigError(FatalError):
    """Raised when endpoint or runner configuration is invalid."""


class SourceError(FatalError):
    """Raised after draining in-flight work when the request source fails."""

    def __init__(self, message: str, *, summary: RunSummary | None = None) -> None:
        super().__init__(message)
        self.summary = summary


class TransportError(VersusError):
    """Raised by a transport that prefers exceptions over failure outcomes.

    The dispatcher turns it into a failure ``Outcome`` of the carried ``kind``.
    """

    def __init__(
        self,
        kind: FailureKind | str,
        message: str,
        *,
        status: int | None = None,
        detail: str | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = FailureKind(kind)
        self.message = message
        self.status = status
        self.detail = detail


__all__ = [
    "VersusError",
    "FatalError",
    "ConfigError",
    "SourceError",
    "TransportError",
]
