"""Command runners for treadmill workflows."""

from __future__ import annotations

import logging
import os
import subprocess
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from treadmill.errors import CommandError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExecResult:
    """Result envelope for subprocess execution."""

    argv: tuple[str, ...]
    cwd: Path
    returncode: int
    stdout: str
    stderr: str

    @property
    def lines(self) -> list[str]:
        return self.stdout.splitlines()

    @property
    def ok(self) -> bool:
        return self.returncode == 0


class CommandRunner(Protocol):
    """Anything that can run an argv and report its outcome."""

    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        mutating: bool = False,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> ExecResult: ...


class SubprocessRunner:
    """Run commands rooted at the repository.

    ``mutating`` commands are skipped in dry-run mode and reported as
    succeeding. ``stream`` leaves stdout/stderr attached to the terminal,
    for builds whose output the operator wants to watch.
    """

    def __init__(self, cwd: Path, *, dry_run: bool = False, trace: bool = False):
        self.cwd = cwd.resolve()
        self.dry_run = dry_run
        self.trace = trace

    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        mutating: bool = False,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> ExecResult:
        rendered = " ".join(argv)
        if mutating and self.dry_run:
            logger.warning("[dry run] would run: %s", rendered)
            return ExecResult(argv=tuple(argv), cwd=self.cwd, returncode=0, stdout="", stderr="")
        if self.trace:
            logger.debug("$ %s", rendered)

        full_env = None
        if env:
            full_env = os.environ.copy()
            full_env.update(env)

        try:
            completed = subprocess.run(
                list(argv),
                cwd=self.cwd,
                capture_output=not stream,
                text=True,
                check=False,
                env=full_env,
            )
        except OSError as exc:
            # Missing or non-executable program; report it like a shell would.
            result = ExecResult(argv=tuple(argv), cwd=self.cwd, returncode=127, stdout="", stderr=str(exc))
        else:
            result = ExecResult(
                argv=tuple(argv),
                cwd=self.cwd,
                returncode=completed.returncode,
                stdout=completed.stdout or "",
                stderr=completed.stderr or "",
            )
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


def git(run: CommandRunner, *args: str, check: bool = True, mutating: bool = False) -> ExecResult:
    """Run a git command through ``run``."""
    return run(["git", *args], check=check, mutating=mutating)
