"""Pydantic models validating the YAML run configuration."""

from __future__ import annotations

from urllib.parse import urlparse

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

__all__ = [
    "EndpointModel",
    "VersusConfigModel",
    "validate_url",
]


def validate_url(value: str) -> str:
    url = (value or "").strip()
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise ValueError(f"not an absolute http(s) URL: {value!r}")
    return url


class EndpointModel(BaseModel):
    """Schema for one endpoint entry."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = None
    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_s: float | None = Field(default=None, gt=0)

    @field_validator("url")
    @classmethod
    def _check_url(cls, value: str) -> str:
        return validate_url(value)

    @property
    def resolved_name(self) -> str:
        name = (self.name or "").strip()
        return name or self.url


class VersusConfigModel(BaseModel):
    """Schema for the whole configuration file."""

    model_config = ConfigDict(extra="forbid")

    endpoints: list[EndpointModel] = Field(default_factory=list)
    timeout_s: float | None = Field(default=None, gt=0)
    max_in_flight: int | None = Field(default=None, gt=0)
    compare: str | None = None
    agree_on_shared_errors: bool | None = None
    max_count: int | None = Field(default=None, gt=0)
    metrics_path: str | None = None

    @model_validator(mode="after")
    def _check_unique_names(self) -> VersusConfigModel:
        seen: set[str] = set()
        for endpoint in self.endpoints:
            name = endpoint.resolved_name
            if name in seen:
                raise ValueError(f"duplicate endpoint name: {name}")
            seen.add(name)
        return self
