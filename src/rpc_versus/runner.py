"""Run loop: bounded fan-out over a request stream with in-order verdicts."""
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterable, Awaitable, Callable, Iterable
from concurrent.futures import ThreadPoolExecutor
import heapq
import inspect
import logging
from typing import Any, cast

from .comparator import Comparator
from .config import RunnerConfig
from .dispatcher import Dispatcher
from .errors import SourceError
from .models import Payload, Request, RunSummary, Verdict
from .observability import EventLogger, emit_verdict
from .transport import AsyncTransport, Transport
from .utils import extract_method

LOGGER = logging.getLogger(__name__)

VerdictSink = Callable[[Verdict], Awaitable[None] | None]
RequestSource = Iterable[Request | Payload] | AsyncIterable[Request | Payload]

_END = object()

__all__ = [
    "ReorderBuffer",
    "RequestSource",
    "VerdictSink",
    "VersusRunner",
]


async def _deliver(sink: VerdictSink, verdict: Verdict) -> None:
    result = sink(verdict)
    if inspect.isawaitable(result):
        await result


class ReorderBuffer:
    """Release verdicts to ``sink`` strictly in ascending sequence order.

    Early completions wait in a min-heap until every predecessor has been
    emitted. The lock is held while emitting so the sink never observes
    interleaved or out-of-order deliveries.
    """

    def __init__(self, sink: VerdictSink, *, start: int = 0) -> None:
        self._sink = sink
        self._next = start
        self._heap: list[tuple[int, Verdict]] = []
        self._lock = asyncio.Lock()

    @property
    def next_seq(self) -> int:
        return self._next

    @property
    def pending(self) -> int:
        return len(self._heap)

    async def push(self, verdict: Verdict) -> None:
        async with self._lock:
            if verdict.seq < self._next or any(seq == verdict.seq for seq, _ in self._heap):
                raise ValueError(f"duplicate verdict for seq={verdict.seq}")
            heapq.heappush(self._heap, (verdict.seq, verdict))
            while self._heap and self._heap[0][0] == self._next:
                _, ready = heapq.heappop(self._heap)
                await _deliver(self._sink, ready)
                self._next += 1


class _Puller:
    """Pull one item at a time from a sync or async source."""

    def __init__(self, source: RequestSource) -> None:
        self._source = source
        self._sync_iter: Any = None
        self._async_iter: Any = None

    async def next(self) -> object:
        if hasattr(self._source, "__aiter__"):
            if self._async_iter is None:
                self._async_iter = cast(AsyncIterable[Any], self._source).__aiter__()
            try:
                return await self._async_iter.__anext__()
            except StopAsyncIteration:
                return _END
        if self._sync_iter is None:
            self._sync_iter = iter(cast(Iterable[Any], self._source))
        # blocking reads (stdin) must not stall in-flight dispatches
        return await asyncio.to_thread(next, self._sync_iter, _END)


class VersusRunner:
    def __init__(
        self,
        config: RunnerConfig,
        transport: Transport | AsyncTransport,
        *,
        comparator: Comparator | None = None,
        event_logger: EventLogger | None = None,
    ) -> None:
        self._config = config
        self._dispatcher = Dispatcher(config.endpoints, transport, timeout_s=config.timeout_s)
        self._comparator = comparator or Comparator(
            config.compare, agree_on_shared_errors=config.agree_on_shared_errors
        )
        self._event_logger = event_logger

    @property
    def config(self) -> RunnerConfig:
        return self._config

    @property
    def dispatcher(self) -> Dispatcher:
        return self._dispatcher

    @property
    def comparator(self) -> Comparator:
        return self._comparator

    async def process(self, request: Request) -> Verdict:
        """Dispatch ``request`` to every endpoint and compare the outcomes."""

        outcomes = await self._dispatcher.dispatch(request)
        return self._comparator.compare(request.seq, outcomes)

    @staticmethod
    def _coerce_request(item: object, expected: int | None) -> Request:
        if isinstance(item, Request):
            if expected is not None and item.seq != expected:
                raise ValueError(
                    f"request sequence numbers must be contiguous: got {item.seq}, "
                    f"expected {expected}"
                )
            return item
        if isinstance(item, (str, bytes)):
            seq = 0 if expected is None else expected
            method = extract_method(item) if isinstance(item, str) else None
            return Request(seq=seq, payload=item, method=method)
        raise TypeError(f"unsupported request item: {type(item).__name__}")

    async def run_async(self, source: RequestSource, sink: VerdictSink) -> RunSummary:
        """Process ``source`` and deliver one verdict per request to ``sink`` in order.

        Raises :class:`SourceError` once in-flight work has drained if the
        source fails mid-stream; the partial summary is attached to it.
        """

        config = self._config
        summary = RunSummary()
        LOGGER.info(
            "comparing %d endpoints: %s",
            len(config.endpoints),
            ", ".join(f"{t.name}={t.url}" for t in config.endpoints),
        )

        slots = asyncio.Semaphore(config.max_in_flight)
        puller = _Puller(source)
        pending: set[asyncio.Task[None]] = set()
        failures: list[BaseException] = []
        source_exc: BaseException | None = None
        buffer: ReorderBuffer | None = None
        expected: int | None = None
        pulled = 0

        async def emit(verdict: Verdict) -> None:
            summary.record(verdict)
            if not verdict.matched:
                LOGGER.debug(
                    "seq=%s %s groups=%s failed=%s",
                    verdict.seq,
                    verdict.classification.value,
                    [group.members for group in verdict.groups],
                    list(verdict.failed),
                )
            if self._event_logger is not None:
                emit_verdict(self._event_logger, verdict)
            await _deliver(sink, verdict)

        async def handle(request: Request, reorder: ReorderBuffer) -> None:
            # the slot also covers the hand-off to the reorder buffer
            try:
                verdict = await self.process(request)
                await reorder.push(verdict)
            finally:
                slots.release()

        def on_done(task: asyncio.Task[None]) -> None:
            pending.discard(task)
            if not task.cancelled() and task.exception() is not None:
                failures.append(cast(BaseException, task.exception()))

        try:
            while config.max_count is None or pulled < config.max_count:
                await slots.acquire()
                if failures:
                    slots.release()
                    break
                try:
                    item = await puller.next()
                except Exception as exc:  # noqa: BLE001 - reported after draining
                    slots.release()
                    source_exc = exc
                    break
                if item is _END:
                    slots.release()
                    break
                try:
                    request = self._coerce_request(item, expected)
                except BaseException:
                    slots.release()
                    raise
                if buffer is None:
                    buffer = ReorderBuffer(emit, start=request.seq)
                expected = request.seq + 1
                pulled += 1
                task = asyncio.create_task(handle(request, buffer))
                pending.add(task)
                task.add_done_callback(on_done)
        except BaseException:
            for task in list(pending):
                task.cancel()
            await asyncio.gather(*list(pending), return_exceptions=True)
            raise

        if pending:
            await asyncio.gather(*list(pending), return_exceptions=True)
        if failures:
            raise failures[0]
        if source_exc is not None:
            summary.source_error = str(source_exc) or type(source_exc).__name__
            LOGGER.error(
                "request source failed after %d requests: %s", pulled, summary.source_error
            )
            raise SourceError(
                f"request source failed: {summary.source_error}", summary=summary
            ) from source_exc
        return summary

    def run(self, source: RequestSource, sink: VerdictSink) -> RunSummary:
        """Blocking wrapper around :meth:`run_async`."""

        # every in-flight request may hold one worker thread per endpoint
        workers = self._config.max_in_flight * len(self._config.endpoints) + 1

        async def _main() -> RunSummary:
            executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="versus")
            asyncio.get_running_loop().set_default_executor(executor)
            return await self.run_async(source, sink)

        return asyncio.run(_main())
