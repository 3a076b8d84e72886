"""Buildah vendor treadmill CLI."""

from __future__ import annotations

import sys
from pathlib import Path

import click
import typer
from rich.markup import escape

from treadmill import TOOL_NAME, __version__, ui
from treadmill.config import TreadmillConfig
from treadmill.errors import TreadmillError
from treadmill.exec import SubprocessRunner
from treadmill.messages import tweak_commit_message_file
from treadmill.pick import PickOrchestrator
from treadmill.sync import SyncOrchestrator

cli = typer.Typer(
    name=TOOL_NAME,
    help="Keep podman's vendored buildah in sync through the treadmill PR.",
    add_completion=False,
)


def _version_option_callback(value: bool) -> None:
    """Handle eager --version option."""
    if value:
        typer.echo(f"{TOOL_NAME} {__version__}")
        raise typer.Exit()


@cli.command()
def main(
    sync: bool = typer.Option(
        False,
        "--sync",
        help="Daily: drop the old vendor commit, rebase on main, re-vendor buildah@main, rebuild.",
    ),
    pick: bool = typer.Option(
        False,
        "--pick",
        help="On a fresh buildah vendor branch: cherry-pick the treadmill PR's fixes.",
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show informational progress logs."),
    debug: bool = typer.Option(False, "--debug", help="Trace every command before it runs."),
    force: bool = typer.Option(False, "--force", help="Accepted for compatibility; bypasses nothing."),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Report state-changing commands instead of running them.",
    ),
    repo: Path = typer.Option(Path("."), "--repo", help="Repository root (defaults to current directory)."),
    tweak_commit_message: Path | None = typer.Option(None, "--tweak-commit-message", hidden=True),
    pr: int = typer.Option(0, "--pr", hidden=True),
    version: bool = typer.Option(
        False,
        "--version",
        help="Show version and exit.",
        is_eager=True,
        callback=_version_option_callback,
    ),
) -> None:
    """Run exactly one of --sync or --pick."""
    if tweak_commit_message is not None:
        # Invoked by git as GIT_EDITOR during --pick.
        tweak_commit_message_file(tweak_commit_message, pr)
        return

    if sync == pick:
        ui.fatal("usage", "exactly one of --sync or --pick is required")
        raise typer.Exit(1)

    ui.configure_logging(verbose=verbose, debug=debug)
    config = TreadmillConfig.from_env(
        repo,
        verbose=verbose,
        debug=debug,
        force=force,
        dry_run=dry_run,
    )
    runner = SubprocessRunner(config.repo_root, dry_run=dry_run, trace=debug)

    try:
        if sync:
            outcome = SyncOrchestrator(config, runner).sync()
        else:
            outcome = PickOrchestrator(config, runner).pick()
    except TreadmillError as exc:
        ui.fatal(exc.kind, str(exc))
        raise typer.Exit(1) from exc

    ui.console.print(f"[green]{escape(outcome.message)}[/green]", highlight=False)


def run() -> None:
    """Console-script entry point; usage errors exit 1 like every other failure."""
    try:
        code = cli(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        sys.exit(1)
    except click.exceptions.Abort:
        sys.exit(1)
    sys.exit(code if isinstance(code, int) else 0)
