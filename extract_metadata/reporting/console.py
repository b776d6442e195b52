# extract_metadata/reporting/console.py
"""
Console reporting for a batch of extraction results.
"""
from __future__ import annotations

import threading
from typing import List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from extract_metadata.analysis.base import FileResult

# Exit status policy.
EXIT_OK = 0
EXIT_FAILURES = 1
EXIT_PATH_ERROR = 2
EXIT_CANCELLED = 130

STATUS_STYLES = {
    True: "[green]OK[/green]",
    False: "[bold red]FAIL[/bold red]",
}


class ReportSink:
    """Append-only collector of FileResults, rendered once the batch ends."""

    def __init__(self, console: Optional[Console] = None, *, show_tensors: bool = True):
        self.console = console or Console()
        self.show_tensors = show_tensors
        self.cancelled = False
        self._results: List[FileResult] = []
        self._lock = threading.Lock()

    def add(self, result: FileResult) -> None:
        with self._lock:
            self._results.append(result)

    @property
    def results(self) -> List[FileResult]:
        """Results in discovery order."""
        with self._lock:
            return sorted(self._results, key=lambda r: r.index)

    @property
    def succeeded(self) -> int:
        return sum(1 for r in self.results if r.ok)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.ok)

    def exit_code(self) -> int:
        """0 when everything succeeded (or nothing was found), 1 on any failure."""
        if self.cancelled:
            return EXIT_CANCELLED
        return EXIT_FAILURES if self.failed else EXIT_OK

    def _render_file(self, rep: FileResult) -> None:
        if not rep.ok:
            self.console.print(
                Panel(
                    f"[bold red]{rep.error_kind}[/bold red]: {escape(rep.message)}",
                    title=f"{STATUS_STYLES[False]} {escape(rep.path)}",
                    title_align="left",
                    border_style="red",
                    expand=False,
                )
            )
            return

        header = rep.header
        t = Table(title=escape(rep.path), box=box.SIMPLE_HEAVY, title_justify="left")
        t.add_column("Field", style="bold")
        t.add_column("Value")
        t.add_row("Status", STATUS_STYLES[True])
        t.add_row("Header size (bytes)", str(header.header_size))
        t.add_row("Data segment", f"[{header.data_start}, {header.data_start + header.data_length})")
        t.add_row("Tensors", str(len(header.tensors)))
        t.add_row("Metadata keys", str(len(header.metadata)))
        unused = header.data_length - header.data_bytes_used
        if unused:
            t.add_row("Unaccounted data (bytes)", f"[yellow]{unused}[/yellow]")
        self.console.print(t)

        if self.show_tensors and header.tensors:
            tt = Table(box=box.ROUNDED, show_lines=False, title="Tensors", title_style="bold magenta")
            tt.add_column("Tensor Name", style="cyan", no_wrap=True)
            tt.add_column("Type", style="yellow")
            tt.add_column("Dimensions", style="green")
            tt.add_column("Data Offsets", justify="right")
            for name in sorted(header.tensors):
                td = header.tensors[name]
                tt.add_row(
                    escape(name),
                    td.dtype,
                    str(list(td.shape)),
                    f"[{td.data_offsets[0]}, {td.data_offsets[1]})",
                )
            self.console.print(tt)

        if header.metadata:
            mt = Table(box=box.ROUNDED, title="__metadata__", title_style="bold magenta")
            mt.add_column("Key", style="cyan", no_wrap=True)
            mt.add_column("Value", overflow="fold")
            for key in sorted(header.metadata):
                mt.add_row(escape(key), escape(header.metadata[key]))
            self.console.print(mt)

    def _render_failures(self, failures: List[FileResult]) -> None:
        table = Table(title="Failed Files", box=box.ROUNDED, title_style="bold red")
        table.add_column("Path", style="cyan", overflow="fold")
        table.add_column("Error", style="yellow", no_wrap=True)
        table.add_column("Details")
        for rep in failures:
            table.add_row(escape(rep.path), str(rep.error_kind), escape(rep.message))
        self.console.print(table)

    def render(self) -> int:
        """Print the full report and return the process exit code."""
        results = self.results
        if not results:
            notice = "Nothing to do: no .safetensors files found."
            if self.cancelled:
                notice = "Cancelled before any file was processed."
            self.console.print(Panel(notice, style="bold cyan"))
            return self.exit_code()

        for rep in results:
            self._render_file(rep)

        failures = [r for r in results if not r.ok]
        if failures:
            self._render_failures(failures)

        ok = len(results) - len(failures)
        summary = (
            f"Processed {len(results)} files: "
            f"[green]{ok} succeeded[/green], "
            f"{'[red]' if failures else ''}{len(failures)} failed{'[/red]' if failures else ''}"
        )
        if self.cancelled:
            summary += " [yellow](cancelled, remaining files were not dispatched)[/yellow]"
        self.console.print(Panel(summary, style="bold cyan"))
        return self.exit_code()
