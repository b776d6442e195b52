# extract_metadata/cli.py
"""
cli.py

Rich console CLI:
- Default: print usage.
- scan:    extract headers from a .safetensors file, a directory tree or a glob
           pattern, print per-file details and a summary.
- version: show the package version.

Exit status of `scan`: 0 when every file succeeded or nothing matched, 1 when
any file failed, 2 when the path argument cannot be resolved, 130 when the
batch was interrupted.
"""
from __future__ import annotations

import argparse
import signal
from typing import Optional

from loguru import logger
from rich.console import Console
from rich.markup import escape

from extract_metadata import __version__
from extract_metadata.analysis.batch import BatchExecutor
from extract_metadata.config import ExtractConfig
from extract_metadata.discovery import resolve_paths
from extract_metadata.errors import PathResolutionError
from extract_metadata.io.file_reader import DEFAULT_MAX_HEADER_SIZE
from extract_metadata.logging import configure_logging
from extract_metadata.reporting.console import EXIT_PATH_ERROR, ReportSink
from extract_metadata.reporting.json_reporter import write_json

console = Console()


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="extract-metadata",
        description="Extract metadata headers from .safetensors files without loading tensor data.",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    sub = p.add_subparsers(dest="cmd", title="Available Commands", metavar="<command>")

    sp_scan = sub.add_parser(
        "scan",
        help="Extract headers from a file, directory or glob pattern",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    sp_scan.add_argument(
        "path",
        help=(
            "A .safetensors file, a directory (scanned recursively),\n"
            "or a quoted glob pattern such as 'models/**/*.safetensors'"
        ),
    )
    verbosity = sp_scan.add_mutually_exclusive_group()
    verbosity.add_argument(
        "-v", "--verbose", action="count", default=0, help="Enable debug logging"
    )
    verbosity.add_argument(
        "-q", "--quiet", action="store_true", help="Only log warnings and errors"
    )
    sp_scan.add_argument("--debug", action="store_true", help="Enable debug logging with backtraces")
    sp_scan.add_argument(
        "--json-out", type=str, default=None, help="Write JSON report to this path"
    )
    sp_scan.add_argument(
        "--workers", type=int, default=None, help="Worker pool size (default: 2 x CPU count)"
    )
    sp_scan.add_argument(
        "--max-in-flight",
        type=int,
        default=None,
        help="Maximum files open at once (default: 2 x workers)",
    )
    sp_scan.add_argument(
        "--processes",
        action="store_true",
        help="Use a process pool so JSON parsing runs in parallel",
    )
    sp_scan.add_argument(
        "--max-header-size",
        type=int,
        default=DEFAULT_MAX_HEADER_SIZE,
        help=f"Reject headers longer than this many bytes (default: {DEFAULT_MAX_HEADER_SIZE})",
    )
    sp_scan.add_argument(
        "--require-extension",
        action="store_true",
        help="Fail explicitly named files that lack a .safetensors extension",
    )
    sp_scan.add_argument(
        "--no-tensors", action="store_true", help="Omit per-tensor tables from the report"
    )

    sub.add_parser("version", help="Show the version of extract-metadata")

    return p


def _install_cancel_handlers(executor: BatchExecutor) -> dict:
    """Route SIGINT/SIGTERM to `executor.cancel`; returns the previous handlers."""
    previous = {}

    def _handler(signum, frame):
        executor.cancel()

    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            previous[sig] = signal.signal(sig, _handler)
        except ValueError:  # not in the main thread
            pass
    return previous


def run_scan(path: str, config: ExtractConfig, *, out: Optional[Console] = None) -> int:
    """Resolve `path`, extract every discovered file and render the report."""
    out = out or console
    try:
        paths = resolve_paths(path)
    except PathResolutionError as e:
        logger.error("Cannot resolve {path}: {error}", path=path, error=e)
        out.print(f"[red]Path error:[/red] {escape(str(e))}")
        return EXIT_PATH_ERROR

    sink = ReportSink(out, show_tensors=config.show_tensors)
    executor = BatchExecutor(config)
    previous = _install_cancel_handlers(executor)
    try:
        for result in executor.run(paths):
            sink.add(result)
    finally:
        for sig, handler in previous.items():
            if handler is not None:
                signal.signal(sig, handler)
    sink.cancelled = executor.cancelled

    code = sink.render()
    if config.json_out:
        write_json(sink.results, config.json_out)
        out.print(f"[dim]Wrote JSON report → {escape(config.json_out)}[/dim]")
    return code


def main(argv: Optional[list[str]] = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    # No subcommand → usage
    if not args.cmd:
        parser.print_help()
        return 0

    if args.cmd == "version":
        console.print(f"extract-metadata version {__version__}")
        return 0

    if args.cmd == "scan":
        config = ExtractConfig.from_args(args)
        configure_logging(verbosity=config.verbosity, debug=config.debug)
        return run_scan(args.path, config)

    parser.print_help()
    return 1
