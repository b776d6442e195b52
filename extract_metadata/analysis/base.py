# extract_metadata/analysis/base.py
"""
Per-file outcome of a header extraction.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from extract_metadata.errors import ErrorKind
from extract_metadata.formats.safetensors import ParsedHeader


@dataclass(frozen=True)
class FileResult:
    """Either a parsed header (`ok`) or an error kind plus message.

    `index` is the position of the path in discovery order; the report sink
    sorts on it because workers complete in arbitrary order.
    """

    index: int
    path: str
    header: Optional[ParsedHeader] = None
    error_kind: Optional[ErrorKind] = None
    message: str = ""
    duration_ms: float = 0.0

    @classmethod
    def success(
        cls, index: int, path: str, header: ParsedHeader, *, duration_ms: float = 0.0
    ) -> "FileResult":
        return cls(index=index, path=path, header=header, duration_ms=duration_ms)

    @classmethod
    def failure(
        cls, index: int, path: str, kind: ErrorKind, message: str, *, duration_ms: float = 0.0
    ) -> "FileResult":
        return cls(
            index=index, path=path, error_kind=kind, message=message, duration_ms=duration_ms
        )

    @property
    def ok(self) -> bool:
        return self.error_kind is None
