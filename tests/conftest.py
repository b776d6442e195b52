"""Test configuration: project root on sys.path plus synthetic safetensors writers.

Allows running `pytest` from the repository root without an editable install.
"""

import json
import struct
import sys
from pathlib import Path

import pytest
from loguru import logger

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def encode_safetensors(header, data_len: int = 0) -> bytes:
    """Length prefix + header (dict or raw bytes/str) + `data_len` zero bytes."""
    if isinstance(header, dict):
        blob = json.dumps(header).encode("utf-8")
    elif isinstance(header, str):
        blob = header.encode("utf-8")
    else:
        blob = header
    return struct.pack("<Q", len(blob)) + blob + b"\x00" * data_len


def sample_header(prefix: str = "layer", n: int = 2, metadata=None):
    """Contiguous F32 tensors of shape [2, 2] (16 bytes each)."""
    header = {}
    for i in range(n):
        header[f"{prefix}.{i}.weight"] = {
            "dtype": "F32",
            "shape": [2, 2],
            "data_offsets": [i * 16, (i + 1) * 16],
        }
    if metadata is not None:
        header["__metadata__"] = metadata
    return header, n * 16


@pytest.fixture
def write_safetensors(tmp_path):
    """Factory writing a safetensors file under tmp_path and returning its path."""

    def _write(name, header, data_len: int = 0) -> Path:
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(encode_safetensors(header, data_len))
        return path

    return _write


@pytest.fixture
def valid_file(write_safetensors):
    header, data_len = sample_header(metadata={"format": "pt", "author": "tests"})
    return write_safetensors("model.safetensors", header, data_len)


@pytest.fixture(autouse=True)
def _reset_loguru():
    # The CLI swaps in its own sinks; drop them so later tests start clean.
    yield
    logger.remove()
