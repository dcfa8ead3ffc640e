from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable
from typing import Protocol, cast

from .models import EndpointTarget, Outcome, Request

__all__ = [
    "AsyncTransport",
    "Transport",
    "ensure_async_transport",
]


class Transport(Protocol):
    """Send one request to one endpoint and return a timed outcome.

    Ordinary failures (timeouts, connection errors, error statuses) are
    returned as failure outcomes rather than raised. ``deadline`` is an
    absolute :func:`time.monotonic` value the call must not exceed.
    """

    def call(self, request: Request, target: EndpointTarget, deadline: float) -> Outcome: ...


class AsyncTransport(Protocol):
    async def call_async(
        self, request: Request, target: EndpointTarget, deadline: float
    ) -> Outcome: ...


class _AsyncTransportAdapter:
    def __init__(
        self,
        transport: Transport | AsyncTransport,
        *,
        async_call: Callable[[Request, EndpointTarget, float], Awaitable[Outcome]] | None = None,
    ) -> None:
        self._transport = transport
        self._async_call = async_call

    async def call_async(
        self, request: Request, target: EndpointTarget, deadline: float
    ) -> Outcome:
        if self._async_call is not None:
            return await self._async_call(request, target, deadline)
        call = getattr(self._transport, "call", None)
        if not callable(call):
            raise TypeError("Transport does not expose a synchronous call() method")
        return await asyncio.to_thread(call, request, target, deadline)


def ensure_async_transport(transport: Transport | AsyncTransport) -> AsyncTransport:
    call_async = getattr(transport, "call_async", None)
    if callable(call_async):
        if inspect.iscoroutinefunction(call_async):
            return cast(AsyncTransport, transport)

        async def _call(request: Request, target: EndpointTarget, deadline: float) -> Outcome:
            result = call_async(request, target, deadline)
            if inspect.isawaitable(result):
                return await cast(Awaitable[Outcome], result)
            return cast(Outcome, result)

        return _AsyncTransportAdapter(transport, async_call=_call)

    return _AsyncTransportAdapter(transport)
