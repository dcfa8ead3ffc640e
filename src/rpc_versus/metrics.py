"""Prometheus exporter consuming the structured verdict events."""

from __future__ import annotations

from typing import Any, Mapping

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Histogram

from .observability import ENDPOINT_CALL_EVENT, VERDICT_EVENT


class PrometheusMetricsExporter:
    """Translate runner events into Prometheus counters and histograms.

    Implements the ``EventLogger`` interface so it can sit inside a
    :class:`~rpc_versus.observability.CompositeLogger`.
    """

    def __init__(
        self, namespace: str = "versus", registry: CollectorRegistry | None = None
    ) -> None:
        target_registry = registry if registry is not None else REGISTRY

        self._endpoint_call_total = Counter(
            f"{namespace}_endpoint_call_total",
            "Total endpoint calls by outcome status.",
            ("endpoint", "status"),
            registry=target_registry,
        )
        self._endpoint_call_latency_ms = Histogram(
            f"{namespace}_endpoint_call_latency_ms",
            "Latency of successful endpoint calls (ms).",
            ("endpoint",),
            registry=target_registry,
        )
        self._verdict_total = Counter(
            f"{namespace}_verdict_total",
            "Total verdicts by classification.",
            ("classification",),
            registry=target_registry,
        )

    def emit(self, event_type: str, record: Mapping[str, Any]) -> None:
        self.handle_event(event_type, record)

    def handle_event(self, event_type: str, record: Mapping[str, Any]) -> None:
        if event_type == ENDPOINT_CALL_EVENT:
            endpoint = str(record.get("endpoint") or "unknown")
            if record.get("ok"):
                status = "ok"
            else:
                status = str(record.get("failure_kind") or "error")
            self._endpoint_call_total.labels(endpoint=endpoint, status=status).inc()

            latency_ms = record.get("elapsed_ms")
            if (
                status == "ok"
                and isinstance(latency_ms, (int, float))
                and latency_ms >= 0
            ):
                self._endpoint_call_latency_ms.labels(endpoint=endpoint).observe(
                    float(latency_ms)
                )

        elif event_type == VERDICT_EVENT:
            classification = str(record.get("classification") or "unknown")
            self._verdict_total.labels(classification=classification).inc()


__all__ = ["PrometheusMetricsExporter"]
