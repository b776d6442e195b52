# extract_metadata/discovery.py
"""
Turn the command-line argument into a lazy stream of candidate paths.

The argument is a single file, a directory (walked recursively for
.safetensors files) or a glob pattern.
"""
from __future__ import annotations

import glob
import os
import re
from typing import Iterator

from loguru import logger

from extract_metadata.errors import PathResolutionError

DIRECTORY_EXTENSION = ".safetensors"

_GLOB_MAGIC = re.compile(r"[*?\[]")


def normalize_path(path: str) -> str:
    """Absolute path with `.`/`..` and symlinks resolved where possible."""
    return os.path.realpath(os.path.abspath(os.path.expanduser(path)))


def is_glob_pattern(arg: str) -> bool:
    return _GLOB_MAGIC.search(arg) is not None


def walk_directory(root: str, extension: str = DIRECTORY_EXTENSION) -> Iterator[str]:
    """Yield files under `root` with `extension`, alphabetically per directory."""

    def _on_error(err: OSError) -> None:
        logger.warning("Cannot read directory {path}: {error}", path=err.filename, error=err.strerror)

    for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
        dirnames.sort()
        for name in sorted(filenames):
            if os.path.splitext(name)[1].lower() == extension:
                yield normalize_path(os.path.join(dirpath, name))


def _expand_glob(pattern: str) -> Iterator[str]:
    for match in sorted(glob.iglob(os.path.expanduser(pattern), recursive=True)):
        yield normalize_path(match)


def resolve_paths(arg: str) -> Iterator[str]:
    """Validate `arg` eagerly and return a lazy iterator of candidate paths.

    Raises:
        PathResolutionError: `arg` is empty, names nothing that exists and is not
            a glob pattern, or is a directory that cannot be listed.
    """
    if not arg:
        raise PathResolutionError("empty path argument")

    path = normalize_path(arg)
    if os.path.isdir(path):
        if not os.access(path, os.R_OK | os.X_OK):
            raise PathResolutionError(f"directory is not readable: {path}")
        logger.debug("Scanning directory {path}", path=path)
        return walk_directory(path)
    if os.path.lexists(path):
        logger.debug("Processing single file {path}", path=path)
        return iter([path])
    if is_glob_pattern(arg):
        logger.debug("Expanding glob pattern {pattern}", pattern=arg)
        return _expand_glob(arg)
    raise PathResolutionError(f"no such file, directory or glob pattern: {arg}")
