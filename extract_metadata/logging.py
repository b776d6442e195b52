# extract_metadata/logging.py
"""
Logging setup using Loguru, friendly for concurrent workers.

- Verbosity toggle (-q / -v)
- `EXTRACT_METADATA_LOG` environment override
- Human-readable stderr formatting, separate from the stdout report
"""
from __future__ import annotations

import os
import sys

from loguru import logger

LOG_ENV_VAR = "EXTRACT_METADATA_LOG"

_LEVELS = {-1: "WARNING", 0: "INFO"}


def resolve_level(verbosity: int = 0, *, debug: bool = False) -> str:
    """Pick the sink level; the environment variable wins when set."""
    env = os.environ.get(LOG_ENV_VAR, "").strip().upper()
    if env:
        try:
            logger.level(env)
        except ValueError:
            logger.warning("Ignoring unknown log level {level!r} in {var}", level=env, var=LOG_ENV_VAR)
        else:
            return env
    if debug or verbosity > 0:
        return "DEBUG"
    return _LEVELS.get(verbosity, "WARNING")


def configure_logging(*, verbosity: int = 0, debug: bool = False) -> None:
    """Configure loguru logging sinks.

    Args:
        verbosity: -1 for warnings only, 0 for info, 1 or more for debug.
        debug: Shortcut for debug logging with backtraces.
    """
    logger.remove()
    level = resolve_level(verbosity, debug=debug)
    verbose = level in ("DEBUG", "TRACE")
    fmt = (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> "
        "| <level>{level: <8}</level> "
        "| pid={process} tid={thread} "
        "<cyan>{module}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> "
        "- <level>{message}</level>"
    )
    logger.add(sys.stderr, level=level, format=fmt, enqueue=True, backtrace=verbose, diagnose=verbose)
