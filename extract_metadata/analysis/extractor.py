# extract_metadata/analysis/extractor.py
"""
Single-file work unit: read the header, validate it, return one FileResult.
"""
from __future__ import annotations

import os

from loguru import logger

from extract_metadata.analysis.base import FileResult
from extract_metadata.errors import ErrorKind, HeaderError
from extract_metadata.formats.safetensors import parse_header
from extract_metadata.io.file_reader import DEFAULT_MAX_HEADER_SIZE, read_header
from extract_metadata.observability import Timer

SAFETENSORS_EXTENSIONS = (".safetensors", ".safetensor")


def has_safetensors_extension(path: str) -> bool:
    return os.path.splitext(path)[1].lower() in SAFETENSORS_EXTENSIONS


def extract_file(
    index: int,
    path: str,
    *,
    max_header_size: int = DEFAULT_MAX_HEADER_SIZE,
    check_extension: bool = False,
) -> FileResult:
    """Run reader then validator on `path`. Never raises."""
    with Timer("extract") as t:
        try:
            if check_extension and not has_safetensors_extension(path):
                raise HeaderError(
                    ErrorKind.EXTENSION_MISMATCH,
                    f"expected a .safetensors file, got {os.path.splitext(path)[1] or 'no extension'!r}",
                )
            raw = read_header(path, max_header_size=max_header_size)
            header = parse_header(raw)
        except HeaderError as e:
            error = e
        except Exception as e:  # a worker must always report back
            logger.exception("Unexpected failure while extracting {path}", path=path)
            error = HeaderError(ErrorKind.IO_ERROR, f"unexpected error: {e}")
        else:
            error = None

    if error is not None:
        logger.warning(
            "Failed to process file {path}: {kind}: {msg}",
            path=path,
            kind=error.kind,
            msg=error.message,
        )
        return FileResult.failure(
            index, path, error.kind, error.message, duration_ms=t.duration_ms
        )

    logger.debug(
        "Extracted {n} tensors and {m} metadata keys from {path} in {ms:.2f}ms",
        n=len(header.tensors),
        m=len(header.metadata),
        path=path,
        ms=t.duration_ms,
    )
    return FileResult.success(index, path, header, duration_ms=t.duration_ms)
