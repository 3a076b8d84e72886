"""Build the downstream project and run the post-vendor consistency checks."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path

from treadmill.config import TreadmillConfig
from treadmill.errors import CommandError, VerificationError
from treadmill.exec import CommandRunner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckResult:
    name: str
    returncode: int

    @property
    def passed(self) -> bool:
        return self.returncode == 0


class BuildVerifier:
    """Run the build, then the checks whose failures are reported together."""

    def __init__(self, config: TreadmillConfig, run: CommandRunner):
        self.config = config
        self.run = run

    def clear_scratch_dirs(self) -> list[Path]:
        """Remove leftover integration-test scratch dirs."""
        doomed = sorted(self.config.scratch_dir.glob(f"{self.config.scratch_prefix}*"))
        for path in doomed:
            if self.config.dry_run:
                logger.warning("[dry run] would remove %s", path)
                continue
            logger.debug("removing %s", path)
            shutil.rmtree(path, ignore_errors=True)
        return doomed

    def verify(self, *, fold_into: str = "HEAD") -> list[CheckResult]:
        """Build, cross-check and dry-run the integration tests.

        A broken build stops everything immediately. The remaining checks all
        run, and their failures are raised together at the end.
        """
        logger.info("building: %s", " ".join(self.config.build_command))
        try:
            self.run(self.config.build_command, mutating=True, stream=True)
        except CommandError as exc:
            raise VerificationError(["build"], fold_into=fold_into) from exc

        results = [
            CheckResult(
                name="xref-helpmsgs-manpages",
                returncode=self.run(self.config.xref_command, check=False, mutating=True, stream=True).returncode,
            )
        ]

        self.clear_scratch_dirs()
        try:
            integration = self.run(self.config.integration_command, check=False, mutating=True, stream=True)
        finally:
            self.clear_scratch_dirs()
        results.append(CheckResult(name="buildah-bud tests (dry run)", returncode=integration.returncode))

        failed = [result.name for result in results if not result.passed]
        if failed:
            raise VerificationError(failed, fold_into=fold_into)
        return results
