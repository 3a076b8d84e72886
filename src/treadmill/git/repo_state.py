"""Infer where the repository stands in the treadmill workflow."""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable

from treadmill.config import TreadmillConfig
from treadmill.errors import PreconditionError
from treadmill.exec import CommandRunner, git
from treadmill.types import CommitClass, RepoStatus

logger = logging.getLogger(__name__)

TREADMILL_MARKER = "treadmill"


def is_treadmill_subject(subject: str, product: str) -> bool:
    """True when ``product`` appears, then ``treadmill`` somewhere after it."""
    pattern = re.compile(re.escape(product) + ".*" + re.escape(TREADMILL_MARKER))
    return pattern.search(subject) is not None


def vendor_diff_problems(paths: Iterable[str], required: Iterable[str], subtree: str) -> list[str]:
    """List what a vendor commit's file list should contain but doesn't."""
    changed = set(paths)
    problems = [f"does not touch {path}" for path in required if path not in changed]
    if not any(path.startswith(subtree) for path in changed):
        problems.append(f"does not touch anything under {subtree}")
    return problems


def parse_porcelain_z(out: str) -> tuple[str, ...]:
    """Paths from NUL-separated `git status --porcelain -z` output.

    Renames and copies carry their source path as an extra entry, which is skipped.
    """
    entries = out.split("\0")
    paths: list[str] = []
    index = 0
    while index < len(entries):
        entry = entries[index]
        index += 1
        if len(entry) < 4:
            continue
        paths.append(entry[3:])
        if entry[0] in "RC" or entry[1] in "RC":
            index += 1
    return tuple(paths)


class RepoStateInspector:
    """Read-only queries against the repository."""

    def __init__(self, config: TreadmillConfig, run: CommandRunner):
        self.config = config
        self.run = run

    def current_branch(self) -> str:
        branch = git(self.run, "rev-parse", "--abbrev-ref", "HEAD").stdout.strip()
        if branch == "HEAD":
            raise PreconditionError("detached HEAD; check out your treadmill branch first")
        if branch == self.config.mainline:
            raise PreconditionError(
                f"you are on {self.config.mainline}; this tool must be run from a side branch"
            )
        return branch

    def status(self) -> RepoStatus:
        out = git(self.run, "status", "--porcelain", "-z", "--untracked-files=no").stdout
        return RepoStatus(changed_paths=parse_porcelain_z(out))

    def require_clean(self) -> None:
        status = self.status()
        if not status.clean:
            listing = "\n".join(f"   {path}" for path in status.changed_paths)
            raise PreconditionError(f"working tree has uncommitted changes:\n{listing}")

    def resolve(self, ref: str) -> str:
        return git(self.run, "rev-parse", ref).stdout.strip()

    def subject(self, ref: str) -> str:
        return git(self.run, "log", "-1", "--format=%s", ref).stdout.strip()

    def merge_base(self, a: str, b: str) -> str:
        return git(self.run, "merge-base", a, b).stdout.strip()

    def is_treadmill_commit(self, ref: str) -> bool:
        return is_treadmill_subject(self.subject(ref), self.config.product)

    def vendor_commit_problems(self, ref: str, *, strict: bool) -> list[str]:
        """Check that ``ref`` changes the pin files and the vendored module.

        Returns the unmet expectations. In strict mode any of them is fatal;
        otherwise each is logged as a warning and the caller decides.
        """
        paths = git(self.run, "diff", "--name-only", f"{ref}^", ref).lines
        problems = vendor_diff_problems(
            paths,
            self.config.required_vendor_paths,
            self.config.vendor_subtree,
        )
        if problems and strict:
            raise PreconditionError(
                f"{ref} is not a {self.config.product} vendor commit: " + "; ".join(problems)
            )
        for problem in problems:
            logger.warning("%s %s (probably not a %s vendor commit)", ref, problem, self.config.product)
        return problems

    def is_vendor_commit(self, ref: str, *, strict: bool = False) -> bool:
        return not self.vendor_commit_problems(ref, strict=strict)

    def classify_commit(self, ref: str) -> CommitClass:
        if self.is_treadmill_commit(ref):
            return CommitClass.TREADMILL
        if self.is_vendor_commit(ref):
            return CommitClass.VENDOR
        return CommitClass.NEITHER
