"""Pytest configuration and fixtures for treadmill tests."""
from __future__ import annotations

from collections.abc import Mapping, Sequence
from pathlib import Path

import pytest

from treadmill.errors import CommandError
from treadmill.exec import ExecResult


class ScriptedRunner:
    """Command runner stub answering from a fixed script.

    Mutating commands are only recorded in dry-run mode, as SubprocessRunner
    skips them. Values are stdout strings, integer exit codes, or ExecResults. A list
    is consumed in order, repeating its last entry once exhausted.
    """

    def __init__(self, responses: Mapping[tuple[str, ...], object], *, dry_run: bool = False):
        self.dry_run = dry_run
        self.skipped: list[tuple[str, ...]] = []
        self.responses = {
            key: list(value) if isinstance(value, list) else [value] for key, value in responses.items()
        }
        self.calls: list[tuple[str, ...]] = []
        self.mutating: list[tuple[str, ...]] = []
        self.envs: dict[tuple[str, ...], Mapping[str, str] | None] = {}

    def __call__(
        self,
        argv: Sequence[str],
        *,
        check: bool = True,
        mutating: bool = False,
        env: Mapping[str, str] | None = None,
        stream: bool = False,
    ) -> ExecResult:
        _ = stream
        key = tuple(argv)
        self.calls.append(key)
        if mutating:
            self.mutating.append(key)
        self.envs[key] = env
        if mutating and self.dry_run:
            self.skipped.append(key)
            return ExecResult(argv=key, cwd=Path("/repo"), returncode=0, stdout="", stderr="")
        if key not in self.responses:
            raise AssertionError(f"missing stub for args: {list(argv)}")
        queue = self.responses[key]
        value = queue.pop(0) if len(queue) > 1 else queue[0]

        if isinstance(value, ExecResult):
            result = value
        elif isinstance(value, int):
            result = ExecResult(argv=key, cwd=Path("/repo"), returncode=value, stdout="", stderr="")
        else:
            result = ExecResult(argv=key, cwd=Path("/repo"), returncode=0, stdout=str(value), stderr="")
        if check and result.returncode != 0:
            raise CommandError(result)
        return result


class RecordingVerifier:
    def __init__(self, error: Exception | None = None):
        self.calls: list[str] = []
        self.error = error

    def verify(self, *, fold_into: str = "HEAD") -> list:
        self.calls.append(fold_into)
        if self.error is not None:
            raise self.error
        return []


@pytest.fixture
def scripted():
    return ScriptedRunner


@pytest.fixture
def recording_verifier():
    return RecordingVerifier


def go_mod(ref: str, module: str = "github.com/containers/buildah") -> str:
    return (
        "module github.com/containers/podman/v5\n"
        "\n"
        "go 1.21\n"
        "\n"
        "require (\n"
        "\tgithub.com/BurntSushi/toml v1.3.2\n"
        f"\t{module} {ref}\n"
        "\tgithub.com/containers/common v0.57.0\n"
        ")\n"
    )


@pytest.fixture
def make_go_mod():
    return go_mod
