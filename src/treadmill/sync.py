"""Daily re-sync of the treadmill branch against podman and buildah main."""

from __future__ import annotations

import logging

from rich.console import Console

from treadmill import ui
from treadmill.config import TreadmillConfig
from treadmill.errors import PreconditionError
from treadmill.exec import CommandRunner, git
from treadmill.git.pins import VersionExtractor
from treadmill.git.repo_state import RepoStateInspector
from treadmill.messages import junk_commit_message
from treadmill.types import WorkflowOutcome
from treadmill.verify import BuildVerifier

logger = logging.getLogger(__name__)


def describe_sync_outcome(before: str, after: str, rebased: bool, *, dry_run: bool = False) -> WorkflowOutcome:
    """Decide whether the sync changed anything, and say what."""
    outcome = _classify_sync(before, after, rebased)
    if dry_run:
        return WorkflowOutcome(
            changed=outcome.changed,
            message=f"{outcome.message} (dry run: nothing was vendored, rebased or committed)",
        )
    return outcome


def _classify_sync(before: str, after: str, rebased: bool) -> WorkflowOutcome:
    if before == after and not rebased:
        return WorkflowOutcome(
            changed=False,
            message=f"Nothing has changed: still at {after}, branch already on main",
        )
    if not rebased:
        return WorkflowOutcome(
            changed=True,
            message=f"new upstream version, same downstream baseline: {before} -> {after}",
        )
    if before == after:
        return WorkflowOutcome(changed=True, message=f"downstream bumped, upstream unchanged ({after})")
    return WorkflowOutcome(
        changed=True,
        message=f"new upstream version and downstream bumped: {before} -> {after}",
    )


class SyncOrchestrator:
    """Drop the old vendor commit, rebase onto main, re-vendor, rebuild.

    Every decision is re-derived from the commit graph, so an interrupted
    run can simply be started again.
    """

    def __init__(
        self,
        config: TreadmillConfig,
        run: CommandRunner,
        *,
        inspector: RepoStateInspector | None = None,
        versions: VersionExtractor | None = None,
        verifier: BuildVerifier | None = None,
        console: Console | None = None,
    ):
        self.config = config
        self.run = run
        self.inspector = inspector or RepoStateInspector(config, run)
        self.versions = versions or VersionExtractor(config, run)
        self.verifier = verifier or BuildVerifier(config, run)
        self.console = console or ui.console

    def _progress(self, message: str) -> None:
        ui.progress(message, dry_run=self.config.dry_run, out=self.console)

    def _git(self, *args: str, mutating: bool = False) -> None:
        git(self.run, *args, mutating=mutating)

    def drop_prior_vendor_commit(self) -> str:
        """Reset away a vendor commit sitting on top of the treadmill commit.

        Returns the ref that now holds the treadmill commit. That is HEAD,
        or HEAD^ in dry-run mode where the reset is only reported.
        """
        if self.inspector.is_treadmill_commit("HEAD"):
            return "HEAD"
        if not self.inspector.is_vendor_commit("HEAD", strict=False):
            return "HEAD"
        if not self.inspector.is_treadmill_commit("HEAD^"):
            raise PreconditionError(
                f"HEAD is a {self.config.product} vendor commit but its parent is not a treadmill commit"
            )
        self._progress(f"HEAD is a {self.config.product} vendor commit; dropping it")
        self._git("reset", "--hard", "HEAD^", mutating=True)
        return "HEAD^" if self.config.dry_run else "HEAD"

    def require_treadmill_head(self, head: str) -> None:
        if not self.inspector.is_treadmill_commit(head):
            subject = self.inspector.subject(head)
            raise PreconditionError(
                f"{head} is not a {self.config.product} treadmill commit (subject: {subject!r})"
            )

    def pull_mainline(self, branch: str) -> None:
        mainline = self.config.mainline
        self._progress(f"pulling {mainline} from {self.config.upstream_remote}")
        self._git("checkout", "-q", mainline, mutating=True)
        self._git("pull", "-q", "--rebase", self.config.upstream_remote, mainline, mutating=True)
        self._git("checkout", "-q", branch, mutating=True)

    def rebase(self, branch: str) -> bool:
        """Rebase onto mainline unless the fork point is already its tip."""
        mainline = self.config.mainline
        fork_point = self.inspector.merge_base(branch, mainline)
        tip = self.inspector.resolve(mainline)
        if fork_point == tip:
            self._progress(f"{branch} is already based on {mainline}")
            return False

        consumed = git(self.run, "log", "--oneline", f"{fork_point}..{tip}").lines
        self._progress(f"rebasing {branch} onto {mainline} ({len(consumed)} new commits)")
        for line in consumed:
            logger.info("  %s", line)
        # A previously picked vendor commit can legitimately turn empty.
        self._git("rebase", "--empty=keep", mainline, mutating=True)
        return True

    def revendor(self) -> str:
        self._progress(f"vendoring {self.config.module_path}@{self.config.upstream_branch}")
        for argv in self.config.vendor_commands:
            self.run(argv, mutating=True)
        return self.versions.pinned_ref()

    def commit_junk(self, ref: str) -> bool:
        """Commit the vendor diff with the never-merge message."""
        self._git(
            "add",
            "--",
            self.config.manifest,
            self.config.lockfile,
            self.config.vendor_root,
            mutating=True,
        )
        staged = git(self.run, "diff", "--cached", "--quiet", check=False)
        if staged.ok:
            logger.info("nothing staged after vendoring; leaving HEAD on the treadmill commit")
            return False
        self._git("commit", "-q", "-s", "-m", junk_commit_message(self.config, ref), mutating=True)
        return True

    def sync(self) -> WorkflowOutcome:
        self.inspector.require_clean()
        branch = self.inspector.current_branch()
        original_head = self.inspector.resolve("HEAD")

        head = self.drop_prior_vendor_commit()
        self.require_treadmill_head(head)

        before = self.versions.pinned_ref(at=original_head)
        self._progress(f"{self.config.product} before sync: {before}")

        self.pull_mainline(branch)
        rebased = self.rebase(branch)

        after = self.revendor()
        self._progress(f"{self.config.product} after sync: {after}")
        self.commit_junk(after)

        outcome = describe_sync_outcome(before, after, rebased, dry_run=self.config.dry_run)
        self._progress(outcome.message)
        if not outcome.changed:
            return outcome

        self.verifier.verify(fold_into="HEAD^")

        self._progress("sync complete; history was rewritten, so push with: git push --force")
        return outcome
