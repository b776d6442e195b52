"""
Header-only file reader.

Reads the 8-byte length prefix and the JSON header blob of a safetensors
file. Tensor data is never touched.
"""

from __future__ import annotations

import os
import stat
import struct
from dataclasses import dataclass
from typing import BinaryIO, Optional

from extract_metadata.errors import ErrorKind, HeaderError

LENGTH_PREFIX_SIZE = 8

# Same ceiling the reference safetensors loaders apply.
DEFAULT_MAX_HEADER_SIZE = 100_000_000


@dataclass(frozen=True)
class RawHeader:
    """Undecoded header bytes plus the geometry of the data segment.

    Attributes:
        path: File the header was read from.
        file_size: Total size of the file in bytes.
        header_size: Declared JSON header length `N`.
        blob: The `N` raw header bytes.
    """

    path: str
    file_size: int
    header_size: int
    blob: bytes

    @property
    def data_start(self) -> int:
        return LENGTH_PREFIX_SIZE + self.header_size

    @property
    def data_length(self) -> int:
        return self.file_size - self.data_start


class HeaderFile:
    """Context manager owning one read-only handle on a candidate file."""

    __slots__ = ("_fh", "size", "path")

    def __init__(self, path: str):
        self.path = path
        self._fh: Optional[BinaryIO] = None
        self.size: int = 0

    def __enter__(self) -> "HeaderFile":
        st = os.stat(self.path)
        if not stat.S_ISREG(st.st_mode):
            raise HeaderError(ErrorKind.NOT_REGULAR_FILE, "not a regular file")
        self._fh = open(self.path, "rb")
        self.size = os.fstat(self._fh.fileno()).st_size
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self._fh is not None:
            self._fh.close()

    def read_upto(self, n: int) -> bytes:
        """Read up to `n` bytes from the current position; fewer only at end of file."""
        if self._fh is None:
            raise RuntimeError("HeaderFile is not entered")
        chunks = []
        remaining = n
        while remaining > 0:
            chunk = self._fh.read(remaining)
            if not chunk:
                break
            chunks.append(chunk)
            remaining -= len(chunk)
        return b"".join(chunks)


def read_header(path: str, *, max_header_size: int = DEFAULT_MAX_HEADER_SIZE) -> RawHeader:
    """Read the length prefix and header blob of `path`.

    Raises:
        HeaderError: `TruncatedHeader`, `HeaderLengthInvalid`, `NotRegularFile`
            or `IoError`.
    """
    try:
        with HeaderFile(path) as hf:
            prefix = hf.read_upto(LENGTH_PREFIX_SIZE)
            if len(prefix) < LENGTH_PREFIX_SIZE:
                raise HeaderError(
                    ErrorKind.TRUNCATED_HEADER,
                    f"file has {len(prefix)} bytes, need {LENGTH_PREFIX_SIZE} for the length prefix",
                )
            (n,) = struct.unpack("<Q", prefix)
            available = hf.size - LENGTH_PREFIX_SIZE
            if n == 0:
                raise HeaderError(ErrorKind.HEADER_LENGTH_INVALID, "header length is zero")
            if n > max_header_size:
                raise HeaderError(
                    ErrorKind.HEADER_LENGTH_INVALID,
                    f"header length {n} exceeds ceiling of {max_header_size} bytes",
                )
            if n > available:
                raise HeaderError(
                    ErrorKind.HEADER_LENGTH_INVALID,
                    f"header length {n} exceeds the {available} bytes after the prefix",
                )
            blob = hf.read_upto(n)
            if len(blob) < n:
                raise HeaderError(
                    ErrorKind.TRUNCATED_HEADER,
                    f"expected {n} header bytes, read {len(blob)}",
                )
            return RawHeader(path=path, file_size=hf.size, header_size=n, blob=blob)
    except OSError as e:
        raise HeaderError(ErrorKind.IO_ERROR, e.strerror or str(e)) from e
