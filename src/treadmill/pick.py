"""Cherry-pick the treadmill PR's real changes onto a fresh vendor branch."""

from __future__ import annotations

import logging
import os
import shlex
import sys

from rich.console import Console

from treadmill import ui
from treadmill.config import TreadmillConfig
from treadmill.exec import CommandRunner, git
from treadmill.git.pins import VersionExtractor
from treadmill.git.repo_state import RepoStateInspector
from treadmill.github.search import UpstreamQuery
from treadmill.types import WorkflowOutcome
from treadmill.verify import BuildVerifier

logger = logging.getLogger(__name__)


def scratch_branch_name(pr_number: int, pid: int | None = None) -> str:
    return f"treadmill-pr{pr_number}-{os.getpid() if pid is None else pid}"


def editor_command(pr_number: int) -> str:
    """GIT_EDITOR value that rewrites the message with this same tool.

    git appends the message file path, which lands as the option's value.
    """
    return shlex.join([sys.executable, "-m", "treadmill", "--pr", str(pr_number), "--tweak-commit-message"])


class PickOrchestrator:
    """Land the treadmill PR's payload commit on top of a real vendor commit."""

    def __init__(
        self,
        config: TreadmillConfig,
        run: CommandRunner,
        *,
        inspector: RepoStateInspector | None = None,
        versions: VersionExtractor | None = None,
        query: UpstreamQuery | None = None,
        verifier: BuildVerifier | None = None,
        console: Console | None = None,
        pid: int | None = None,
    ):
        self.config = config
        self.run = run
        self.inspector = inspector or RepoStateInspector(config, run)
        self.versions = versions or VersionExtractor(config, run)
        self.query = query or UpstreamQuery(config)
        self.verifier = verifier or BuildVerifier(config, run)
        self.console = console or ui.console
        self.pid = pid

    def _progress(self, message: str) -> None:
        ui.progress(message, dry_run=self.config.dry_run, out=self.console)

    def fetch_scratch(self, pr_number: int) -> str:
        scratch = scratch_branch_name(pr_number, self.pid)
        self._progress(f"fetching PR #{pr_number} into {scratch}")
        git(self.run, "fetch", "-q", self.config.upstream_remote, f"pull/{pr_number}/head:{scratch}")
        return scratch

    def compare_pins(self, scratch: str) -> None:
        theirs = self.versions.pinned_ref(at=scratch)
        ours = self.versions.pinned_ref(at="HEAD")
        if theirs != ours:
            # Expected when the treadmill has moved past the release vendored here.
            logger.warning(
                "treadmill PR has %s %s, but HEAD has %s; continuing",
                self.config.product,
                theirs,
                ours,
            )
        else:
            self._progress(f"treadmill PR and HEAD both vendor {self.config.product} {ours}")

    def cherry_pick_payload(self, scratch: str, pr_number: int) -> None:
        self._progress(f"cherry-picking {scratch}^")
        self.run(
            ["git", "cherry-pick", "--allow-empty", "--edit", f"{scratch}^"],
            mutating=True,
            env={"GIT_EDITOR": editor_command(pr_number)},
        )

    def delete_scratch(self, scratch: str) -> None:
        deleted = git(self.run, "branch", "-q", "-D", scratch, check=False)
        if not deleted.ok:
            logger.warning("could not delete scratch branch %s: %s", scratch, deleted.stderr.strip())

    def pick(self) -> WorkflowOutcome:
        self.inspector.require_clean()
        self.inspector.current_branch()
        self.inspector.vendor_commit_problems("HEAD", strict=True)

        pr_number = self.query.find_open_treadmill_pr()
        scratch = self.fetch_scratch(pr_number)
        try:
            self.compare_pins(scratch)
            self.cherry_pick_payload(scratch, pr_number)
        finally:
            self.delete_scratch(scratch)

        self.verifier.verify(fold_into="HEAD")

        self._progress("please amend the commit message if needed (git commit --amend), then push")
        return WorkflowOutcome(changed=True, message=f"cherry-picked changes from treadmill PR #{pr_number}")
