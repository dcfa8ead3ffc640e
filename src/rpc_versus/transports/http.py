"""JSON-RPC over HTTP transport built on :mod:`requests`."""

from __future__ import annotations

import time
from collections.abc import Mapping
from types import TracebackType
from typing import Any, Protocol

import requests
from requests import exceptions as requests_exceptions

from ..models import EndpointTarget, FailureKind, Outcome, Payload, Request
from ..utils import elapsed_ms, remaining_s

__all__ = [
    "DEFAULT_HEADERS",
    "HttpTransport",
    "ResponseProtocol",
    "SessionProtocol",
    "classify_exception",
]

DEFAULT_HEADERS: Mapping[str, str] = {"content-type": "application/json"}

# error bodies are kept for comparison but clipped for reports
_MAX_DETAIL_CHARS = 2048


class ResponseProtocol(Protocol):
    """Subset of the :mod:`requests` response interface used by the transport."""

    status_code: int
    text: str

    def close(self) -> None: ...


class SessionProtocol(Protocol):
    def post(self, url: str, *args: Any, **kwargs: Any) -> ResponseProtocol: ...


def classify_exception(exc: BaseException) -> tuple[FailureKind, str]:
    if isinstance(exc, requests_exceptions.Timeout):
        return FailureKind.TIMEOUT, f"request timed out: {exc}"
    if isinstance(exc, requests_exceptions.ConnectionError):
        return FailureKind.TRANSPORT_ERROR, f"connection failed: {exc}"
    return FailureKind.TRANSPORT_ERROR, f"request failed: {exc}"


def _encode_body(payload: Payload) -> bytes:
    # requests sizes str bodies by character count, not by encoded length
    if isinstance(payload, bytes):
        return payload
    return payload.encode("utf-8")


class HttpTransport:
    """POST each request body as-is and return the response text unparsed.

    The payload is never re-serialized, so malformed lines are sent verbatim and
    the endpoints' error handling can be compared too. A single session is
    shared by every endpoint for connection pooling.
    """

    def __init__(
        self,
        *,
        session: SessionProtocol | None = None,
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self._session: SessionProtocol = session or requests.Session()
        self._headers = dict(DEFAULT_HEADERS)
        if headers:
            self._headers.update(headers)

    def __enter__(self) -> HttpTransport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        close = getattr(self._session, "close", None)
        if callable(close):
            close()

    def _headers_for(self, target: EndpointTarget) -> dict[str, str]:
        headers = dict(self._headers)
        headers.update(target.headers)
        return headers

    def call(self, request: Request, target: EndpointTarget, deadline: float) -> Outcome:
        started = time.perf_counter()
        try:
            response = self._session.post(
                target.url,
                data=_encode_body(request.payload),
                headers=self._headers_for(target),
                timeout=remaining_s(deadline),
            )
        except requests_exceptions.RequestException as exc:
            kind, message = classify_exception(exc)
            return Outcome.failed(target, kind, message, elapsed_ms(started))
        try:
            text = response.text
        finally:
            response.close()
        took = elapsed_ms(started)
        status = response.status_code
        if status >= 400:
            return Outcome.failed(
                target,
                FailureKind.APPLICATION_ERROR,
                f"HTTP {status}",
                took,
                status=status,
                detail=text[:_MAX_DETAIL_CHARS],
            )
        return Outcome.success(target, text, took)
