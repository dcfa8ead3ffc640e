"""Configuration file and endpoint-spec loading."""
from __future__ import annotations

from collections.abc import MutableMapping
from pathlib import Path
from typing import cast

from pydantic import ValidationError
import yaml

from .errors import ConfigError
from .models import EndpointTarget
from .schema import EndpointModel, validate_url, VersusConfigModel

__all__ = [
    "endpoint_from_model",
    "load_config_file",
    "parse_endpoint",
]


def _format_validation_error(path: Path, exc: ValidationError) -> str:
    details = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()) if part is not None)
        message = error.get("msg", "unknown error")
        if location:
            details.append(f"{location}: {message}")
        else:
            details.append(message)
    summary = "; ".join(details)
    return f"invalid configuration file ({path}): {summary}"


def _load_yaml(path: Path) -> MutableMapping[str, object]:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read configuration file {path}: {exc}") from exc
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ConfigError(f"invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, MutableMapping):
        raise ConfigError(f"configuration root must be a mapping: {path}")
    return cast(MutableMapping[str, object], data)


def load_config_file(path: str | Path) -> VersusConfigModel:
    """Load and validate a YAML run configuration."""

    path = Path(path)
    data = _load_yaml(path)
    try:
        return VersusConfigModel.model_validate(data)
    except ValidationError as exc:
        raise ConfigError(_format_validation_error(path, exc)) from None


def endpoint_from_model(model: EndpointModel) -> EndpointTarget:
    return EndpointTarget(
        name=model.resolved_name,
        url=model.url,
        headers=dict(model.headers),
        timeout_s=model.timeout_s,
    )


def parse_endpoint(spec: str) -> EndpointTarget:
    """Parse a CLI endpoint spec, either ``URL`` or ``NAME=URL``."""

    text = (spec or "").strip()
    name, sep, remainder = text.partition("=")
    # "=" may also appear inside a URL query string
    if sep and "://" not in name:
        name, url = name.strip(), remainder.strip()
        if not name:
            raise ConfigError(f"endpoint name must not be empty: {spec!r}")
    else:
        name, url = text, text
    try:
        url = validate_url(url)
    except ValueError as exc:
        raise ConfigError(f"invalid endpoint {spec!r}: {exc}") from None
    return EndpointTarget(name=name or url, url=url)
