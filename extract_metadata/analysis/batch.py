# extract_metadata/analysis/batch.py
"""
Bounded concurrent execution of per-file extraction units.

The dispatcher is the only consumer of the path stream. At most
`max_in_flight` units are submitted at a time; each one owns its file handle
and hands back only its terminal FileResult.
"""
from __future__ import annotations

import functools
import threading
from concurrent.futures import (
    FIRST_COMPLETED,
    Executor,
    Future,
    ProcessPoolExecutor,
    ThreadPoolExecutor,
    wait,
)
from typing import Iterable, Iterator, Set

from loguru import logger

from extract_metadata.analysis.base import FileResult
from extract_metadata.analysis.extractor import extract_file
from extract_metadata.config import ExtractConfig
from extract_metadata.errors import ErrorKind


class BatchExecutor:
    """Runs `extract_file` over a stream of paths with a bounded pool."""

    def __init__(self, config: ExtractConfig | None = None):
        self.config = config or ExtractConfig()
        self._cancelled = threading.Event()
        self.dispatched = 0

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Stop dispatching new units; in-flight units still complete."""
        if not self._cancelled.is_set():
            logger.warning("Cancellation requested, waiting for in-flight files to finish")
        self._cancelled.set()

    def _make_pool(self) -> Executor:
        if self.config.use_processes:
            return ProcessPoolExecutor(max_workers=self.config.workers)
        return ThreadPoolExecutor(
            max_workers=self.config.workers, thread_name_prefix="extract"
        )

    def _collect(self, fut: Future, index: int, path: str) -> FileResult:
        try:
            return fut.result()
        except Exception as e:  # e.g. a broken process pool
            logger.error("Worker for {path} died: {error}", path=path, error=e)
            return FileResult.failure(index, path, ErrorKind.IO_ERROR, f"worker failed: {e}")

    def run(self, paths: Iterable[str]) -> Iterator[FileResult]:
        """Yield one FileResult per dispatched path, in completion order."""
        unit = functools.partial(
            extract_file,
            max_header_size=self.config.max_header_size,
            check_extension=self.config.check_extension,
        )
        pending: Set[Future] = set()
        origin = {}
        logger.debug(
            "Starting batch: workers={w} max_in_flight={f} processes={p}",
            w=self.config.workers,
            f=self.config.max_in_flight,
            p=self.config.use_processes,
        )
        with self._make_pool() as pool:
            for index, path in enumerate(paths):
                if self._cancelled.is_set():
                    break
                fut = pool.submit(unit, index, path)
                origin[fut] = (index, path)
                pending.add(fut)
                self.dispatched += 1
                while len(pending) >= self.config.max_in_flight:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for f in done:
                        yield self._collect(f, *origin.pop(f))

            while pending:
                done, pending = wait(pending, return_when=FIRST_COMPLETED)
                for f in done:
                    yield self._collect(f, *origin.pop(f))
        logger.debug("Batch finished: {n} files dispatched", n=self.dispatched)
