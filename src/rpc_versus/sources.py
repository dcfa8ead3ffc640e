"""Line-oriented request sources."""

from __future__ import annotations

from collections.abc import Iterator
from pathlib import Path
import sys
from typing import TextIO

from .models import Request
from .utils import extract_method

__all__ = ["LineSource", "open_source"]


class LineSource:
    """Yield one :class:`Request` per non-blank line of ``stream``.

    Lines are sent verbatim (minus the trailing newline) so deliberately
    malformed requests still reach the endpoints.
    """

    def __init__(self, stream: TextIO, *, start: int = 0) -> None:
        self._stream = stream
        self._start = start

    def __iter__(self) -> Iterator[Request]:
        seq = self._start
        for raw_line in self._stream:
            line = raw_line.rstrip("\r\n")
            if not line.strip():
                continue
            yield Request(seq=seq, payload=line, method=extract_method(line))
            seq += 1


def open_source(path: str | Path) -> tuple[LineSource, TextIO | None]:
    """Open ``path`` (``-`` for stdin) and return the source plus the handle to close."""

    if str(path) == "-":
        return LineSource(sys.stdin), None
    handle = Path(path).open(encoding="utf-8")
    return LineSource(handle), handle
