"""Fan one request out to every endpoint and collect timed outcomes."""
from __future__ import annotations

import asyncio
import dataclasses
import logging
import time
from collections.abc import Sequence

from .errors import TransportError
from .models import EndpointTarget, FailureKind, Outcome, Request
from .transport import AsyncTransport, Transport, ensure_async_transport
from .utils import elapsed_ms

LOGGER = logging.getLogger(__name__)

__all__ = ["Dispatcher"]


class Dispatcher:
    def __init__(
        self,
        targets: Sequence[EndpointTarget],
        transport: Transport | AsyncTransport,
        *,
        timeout_s: float,
    ) -> None:
        if not targets:
            raise ValueError("targets must not be empty")
        if timeout_s <= 0:
            raise ValueError("timeout_s must be positive")
        self._targets = tuple(targets)
        self._transport = ensure_async_transport(transport)
        self._timeout_s = float(timeout_s)

    @property
    def targets(self) -> tuple[EndpointTarget, ...]:
        return self._targets

    def timeout_for(self, target: EndpointTarget) -> float:
        return target.timeout_s if target.timeout_s is not None else self._timeout_s

    async def _call_one(self, request: Request, target: EndpointTarget) -> Outcome:
        timeout_s = self.timeout_for(target)
        deadline = time.monotonic() + timeout_s
        started = time.perf_counter()
        try:
            outcome = await asyncio.wait_for(
                self._transport.call_async(request, target, deadline), timeout_s
            )
        except asyncio.TimeoutError:
            # a sync transport keeps running in its worker thread; the late result is dropped
            return Outcome.failed(
                target,
                FailureKind.TIMEOUT,
                f"no response within {timeout_s:g}s",
                timeout_s * 1000.0,
            )
        except TransportError as exc:
            return Outcome.failed(
                target,
                exc.kind,
                exc.message,
                elapsed_ms(started),
                status=exc.status,
                detail=exc.detail,
            )
        if outcome.endpoint is not target:
            outcome = dataclasses.replace(outcome, endpoint=target)
        return outcome

    async def dispatch(self, request: Request) -> list[Outcome]:
        """Return one outcome per target, in configured target order."""

        tasks = [
            asyncio.create_task(self._call_one(request, target)) for target in self._targets
        ]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            raise
        for outcome in outcomes:
            if outcome.failure is not None:
                LOGGER.debug(
                    "seq=%s endpoint=%s failed: %s",
                    request.seq,
                    outcome.endpoint.name,
                    outcome.failure.message,
                )
        return list(outcomes)
