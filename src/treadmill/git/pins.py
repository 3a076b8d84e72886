"""Read the pinned upstream version out of the Go module manifest."""

from __future__ import annotations

import re

from treadmill.config import TreadmillConfig
from treadmill.errors import NotFoundError
from treadmill.exec import CommandRunner, git
from treadmill.types import DependencyPin


def parse_pin(text: str, module_path: str) -> DependencyPin:
    """Return the first ``<module-path> <ref>`` line in ``text``."""
    pattern = re.compile(r"^\s*" + re.escape(module_path) + r"\s+(\S+)", re.MULTILINE)
    match = pattern.search(text)
    if match is None:
        raise NotFoundError(f"no pin for {module_path} in manifest")
    return DependencyPin(module_path=module_path, ref=match.group(1))


class VersionExtractor:
    def __init__(self, config: TreadmillConfig, run: CommandRunner):
        self.config = config
        self.run = run

    def manifest_text(self, at: str | None = None) -> str:
        manifest = self.config.manifest
        if at is None:
            path = self.config.repo_root / manifest
            try:
                return path.read_text(encoding="utf-8")
            except OSError as exc:
                raise NotFoundError(f"cannot read {path}: {exc}") from exc

        shown = git(self.run, "show", f"{at}:{manifest}", check=False)
        if not shown.ok:
            raise NotFoundError(f"cannot read {manifest} at {at}: {shown.stderr.strip()}")
        return shown.stdout

    def pin(self, module_path: str | None = None, at: str | None = None) -> DependencyPin:
        return parse_pin(self.manifest_text(at), module_path or self.config.module_path)

    def pinned_ref(self, module_path: str | None = None, at: str | None = None) -> str:
        return self.pin(module_path, at).ref
