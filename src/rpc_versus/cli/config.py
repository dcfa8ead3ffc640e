from __future__ import annotations

import argparse
from pathlib import Path
from typing import Any

from ..config import RunnerConfig
from ..errors import ConfigError
from ..loader import endpoint_from_model, load_config_file, parse_endpoint
from ..models import EndpointTarget


def build_runner_config(args: argparse.Namespace) -> RunnerConfig:
    """Merge the optional config file with CLI flags; flags win."""

    endpoints: list[EndpointTarget] = []
    payload: dict[str, Any] = {}
    if args.config:
        file_config = load_config_file(Path(args.config).expanduser())
        endpoints.extend(endpoint_from_model(entry) for entry in file_config.endpoints)
        for key in (
            "timeout_s",
            "max_in_flight",
            "compare",
            "agree_on_shared_errors",
            "max_count",
            "metrics_path",
        ):
            value = getattr(file_config, key)
            if value is not None:
                payload[key] = value

    endpoints.extend(parse_endpoint(spec) for spec in args.endpoints)
    if not endpoints:
        raise ConfigError("at least one endpoint is required")

    overrides = {
        "timeout_s": args.timeout_s,
        "max_in_flight": args.max_in_flight,
        "compare": args.compare,
        "agree_on_shared_errors": args.agree_on_shared_errors,
        "max_count": args.max_count,
        "metrics_path": args.metrics,
    }
    payload.update({key: value for key, value in overrides.items() if value is not None})

    try:
        return RunnerConfig(endpoints=endpoints, **payload)
    except (TypeError, ValueError) as exc:
        raise ConfigError(str(exc)) from exc


__all__ = ["build_runner_config"]
