from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import TextIO

from prometheus_client import REGISTRY, CollectorRegistry, start_http_server

from ..config import RunnerConfig
from ..errors import ConfigError, SourceError
from ..metrics import PrometheusMetricsExporter
from ..observability import CompositeLogger, EventLogger, JsonlLogger, StdLogger
from ..reporting import format_summary, make_reporter
from ..runner import VersusRunner
from ..sources import open_source
from ..transport import AsyncTransport, Transport
from ..transports.http import HttpTransport
from .args import parse_args
from .config import build_runner_config

LOGGER = logging.getLogger("rpc_versus.cli")

EXIT_OK = 0
EXIT_MISMATCH = 1
EXIT_INPUT_ERROR = 2
EXIT_CONFIG_ERROR = 3
EXIT_INTERRUPTED = 130


def build_event_logger(
    config: RunnerConfig,
    *,
    prometheus_port: int | None = None,
    stream: TextIO | None = None,
    registry: CollectorRegistry | None = None,
) -> EventLogger | None:
    """Assemble the event sinks requested by ``--metrics`` and ``--prometheus-port``."""

    composite = CompositeLogger()
    if config.metrics_path is not None:
        if str(config.metrics_path) == "-":
            composite.add(StdLogger(stream))
        else:
            composite.add(JsonlLogger(config.metrics_path))
    if prometheus_port is not None:
        target_registry = registry if registry is not None else REGISTRY
        exporter = PrometheusMetricsExporter(registry=target_registry)
        try:
            start_http_server(prometheus_port, registry=target_registry)
        except OSError as exc:
            LOGGER.warning("Prometheus exporter disabled: %s", exc)
        else:
            composite.add(exporter)
            LOGGER.info("Prometheus metrics at http://localhost:%d/metrics", prometheus_port)
    return composite if len(composite) else None


def main(
    argv: Sequence[str] | None = None,
    *,
    transport: Transport | AsyncTransport | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    out = stdout or sys.stdout
    err = stderr or sys.stderr
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        stream=err,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    owned_transport: HttpTransport | None = None
    try:
        config = build_runner_config(args)
        if transport is None:
            owned_transport = HttpTransport()
            transport = owned_transport
        event_logger = build_event_logger(
            config, prometheus_port=args.prometheus_port, stream=err
        )
        runner = VersusRunner(config, transport, event_logger=event_logger)
    except ConfigError as exc:
        print(f"configuration error: {exc}", file=err)
        if owned_transport is not None:
            owned_transport.close()
        return EXIT_CONFIG_ERROR

    try:
        source, handle = open_source(args.input)
    except OSError as exc:
        print(f"cannot open input {args.input}: {exc}", file=err)
        if owned_transport is not None:
            owned_transport.close()
        return EXIT_INPUT_ERROR

    try:
        summary = runner.run(source, make_reporter(args.out_format, out))
    except SourceError as exc:
        if exc.summary is not None:
            print(format_summary(exc.summary), file=err)
        print(f"input error: {exc}", file=err)
        return EXIT_INPUT_ERROR
    except KeyboardInterrupt:
        print("interrupted", file=err)
        return EXIT_INTERRUPTED
    finally:
        if handle is not None:
            handle.close()
        if owned_transport is not None:
            owned_transport.close()

    print(format_summary(summary), file=err)
    if summary.mismatched:
        LOGGER.info("%d of %d requests did not fully agree", summary.mismatched, summary.total)
        return EXIT_MISMATCH
    return EXIT_OK


__all__ = [
    "EXIT_CONFIG_ERROR",
    "EXIT_INPUT_ERROR",
    "EXIT_INTERRUPTED",
    "EXIT_MISMATCH",
    "EXIT_OK",
    "build_event_logger",
    "main",
]
