from __future__ import annotations

from .args import parse_args
from .config import build_runner_config
from .runner import main

__all__ = ["build_runner_config", "main", "parse_args"]
