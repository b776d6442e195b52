# extract_metadata/__init__.py
"""
extract_metadata
================

Batch extraction of SafeTensors headers: finds .safetensors files, validates
their JSON headers concurrently without touching tensor data, and reports
tensor descriptors and `__metadata__` entries with rich console output.
"""
from __future__ import annotations

from importlib.metadata import version as _pkg_version

__all__ = ["__version__"]

try:
    # Read version dynamically from installed package metadata
    __version__: str = _pkg_version("extract-metadata")
except Exception:  # pragma: no cover - fallback for development environments
    __version__ = "0.0.0-dev"
