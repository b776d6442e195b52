# extract_metadata/config.py
"""
Run configuration for a scan.
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from extract_metadata.io.file_reader import DEFAULT_MAX_HEADER_SIZE

# Workers per available CPU; header reads are mostly I/O bound.
WORKERS_PER_CPU = 2
# In-flight units per worker, keeps open file handles bounded.
IN_FLIGHT_PER_WORKER = 2


def default_workers() -> int:
    return (os.cpu_count() or 1) * WORKERS_PER_CPU


@dataclass
class ExtractConfig:
    """Settings shared by discovery, batch execution and reporting.

    Attributes:
        workers: Pool size.
        max_in_flight: Ceiling on submitted-but-unfinished units. Defaults to
            `workers * IN_FLIGHT_PER_WORKER`.
        use_processes: Use a process pool instead of threads.
        max_header_size: Largest accepted JSON header length in bytes.
        check_extension: Fail explicit paths without a .safetensors extension.
        show_tensors: Print per-tensor tables in the console report.
        json_out: Optional path for a JSON copy of the report.
        verbosity: -1 quiet, 0 normal, 1+ debug.
        debug: Debug logging with backtraces.
    """

    workers: int = 0
    max_in_flight: int = 0
    use_processes: bool = False
    max_header_size: int = DEFAULT_MAX_HEADER_SIZE
    check_extension: bool = False
    show_tensors: bool = True
    json_out: Optional[str] = None
    verbosity: int = 0
    debug: bool = False

    def __post_init__(self) -> None:
        if self.workers <= 0:
            self.workers = default_workers()
        if self.max_in_flight <= 0:
            self.max_in_flight = self.workers * IN_FLIGHT_PER_WORKER
        if self.max_header_size <= 0:
            raise ValueError("max_header_size must be positive")

    @classmethod
    def from_args(cls, args) -> "ExtractConfig":
        """Build a config from parsed `scan` arguments."""
        return cls(
            workers=args.workers or 0,
            max_in_flight=args.max_in_flight or 0,
            use_processes=args.processes,
            max_header_size=args.max_header_size,
            check_extension=args.require_extension,
            show_tensors=not args.no_tensors,
            json_out=args.json_out,
            verbosity=-1 if args.quiet else args.verbose,
            debug=args.debug,
        )
