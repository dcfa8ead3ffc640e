from __future__ import annotations

import argparse
from collections.abc import Sequence

from ..reporting import OUTPUT_FORMATS


def _parse_positive_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:  # pragma: no cover - argparse reports error
        raise argparse.ArgumentTypeError("value must be an integer") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be positive")
    return parsed


def _parse_positive_float(value: str) -> float:
    try:
        parsed = float(value)
    except ValueError as exc:  # pragma: no cover - argparse reports error
        raise argparse.ArgumentTypeError("value must be numeric") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be positive")
    return parsed


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rpc-versus",
        description="Send the same requests to multiple RPC endpoints and compare responses",
    )
    parser.add_argument(
        "endpoints",
        nargs="*",
        metavar="ENDPOINT",
        help="endpoint URL or NAME=URL (appended after endpoints from --config)",
    )
    parser.add_argument("--config", help="YAML configuration file")
    parser.add_argument(
        "--input", default="-", help="file with one request per line ('-' for stdin)"
    )
    parser.add_argument(
        "--timeout",
        dest="timeout_s",
        type=_parse_positive_float,
        help="per-call timeout in seconds",
    )
    parser.add_argument("--max-in-flight", dest="max_in_flight", type=_parse_positive_int)
    parser.add_argument(
        "--max-count",
        dest="max_count",
        type=_parse_positive_int,
        help="stop after this many requests",
    )
    parser.add_argument("--compare", help="comparison policy: exact or json")
    parser.add_argument(
        "--agree-on-shared-errors",
        dest="agree_on_shared_errors",
        action="store_true",
        default=None,
        help="count identical HTTP error responses from every endpoint as agreement",
    )
    parser.add_argument(
        "--out-format", dest="out_format", default="text", choices=OUTPUT_FORMATS
    )
    parser.add_argument(
        "--metrics",
        help="append structured events to this JSONL file ('-' for stderr)",
    )
    parser.add_argument(
        "--prometheus-port",
        dest="prometheus_port",
        type=_parse_positive_int,
        help="expose Prometheus metrics on this port while the run lasts",
    )
    parser.add_argument(
        "--log-level",
        dest="log_level",
        default="WARNING",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    return build_parser().parse_args(argv)


__all__ = ["build_parser", "parse_args"]
