# extract_metadata/errors.py
"""
Error taxonomy for header extraction.

Per-file problems are raised as `HeaderError` and converted into report
entries at the file boundary; only `PathResolutionError` aborts a run.
"""
from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    """Reason a single file could not be extracted."""

    IO_ERROR = "IoError"
    NOT_REGULAR_FILE = "NotRegularFile"
    EXTENSION_MISMATCH = "ExtensionMismatch"
    TRUNCATED_HEADER = "TruncatedHeader"
    HEADER_LENGTH_INVALID = "HeaderLengthInvalid"
    MALFORMED_JSON = "MalformedJson"
    UNKNOWN_DTYPE = "UnknownDtype"
    INVALID_SHAPE = "InvalidShape"
    INVALID_OFFSETS = "InvalidOffsets"
    NEGATIVE_RANGE = "NegativeRange"
    OFFSET_OUT_OF_BOUNDS = "OffsetOutOfBounds"
    DUPLICATE_TENSOR_NAME = "DuplicateTensorName"
    OVERLAPPING_TENSOR_RANGES = "OverlappingTensorRanges"
    INVALID_METADATA_VALUE = "InvalidMetadataValue"

    def __str__(self) -> str:
        return self.value


class HeaderError(Exception):
    """Raised when a file's header cannot be read or fails validation."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message

    def __reduce__(self):
        # Keep the kind across process-pool boundaries.
        return (self.__class__, (self.kind, self.message))

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


class PathResolutionError(Exception):
    """Raised when the input argument names no file, directory or glob pattern."""
