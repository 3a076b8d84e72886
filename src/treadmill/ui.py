"""Console and logging setup for the treadmill CLI."""

from __future__ import annotations

import logging

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from treadmill import TOOL_NAME

console = Console()
err_console = Console(stderr=True)


def configure_logging(*, verbose: bool = False, debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    handler = RichHandler(console=err_console, show_time=False, show_path=debug, markup=False)
    root = logging.getLogger("treadmill")
    root.handlers[:] = [handler]
    root.setLevel(level)


def progress(message: str, *, dry_run: bool = False, out: Console | None = None) -> None:
    suffix = " [dim](dry run)[/dim]" if dry_run else ""
    (out or console).print(f"[cyan]>>[/cyan] {escape(message)}{suffix}")


def fatal(kind: str, message: str) -> None:
    err_console.print(f"[bold red]{TOOL_NAME}:[/bold red] {kind}: {escape(message)}", highlight=False)
