"""Failure kinds raised by treadmill workflows.

Workflows never terminate the process themselves. They raise one of these
and ``treadmill.cli`` turns it into a prefixed diagnostic and exit code 1.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from treadmill.exec import ExecResult


class TreadmillError(RuntimeError):
    """Base for every fatal treadmill condition."""

    kind = "error"


class PreconditionError(TreadmillError):
    """Repository is not in the state the workflow requires."""

    kind = "precondition"


class CommandError(TreadmillError):
    """An external command exited non-zero."""

    kind = "command"

    def __init__(self, result: ExecResult):
        rendered = " ".join(result.argv)
        detail = (result.stderr or result.stdout).strip()
        message = f"command failed ({result.returncode}): {rendered}"
        if detail:
            message = f"{message}\n{detail}"
        super().__init__(message)
        self.result = result


class NotFoundError(TreadmillError):
    """A dependency pin could not be located."""

    kind = "not-found"


class TransportError(TreadmillError):
    """The code-review API answered with something other than 200."""

    kind = "transport"

    def __init__(self, status: int | None, message: str):
        label = f"HTTP {status}" if status is not None else "no response"
        super().__init__(f"{label}: {message}")
        self.status = status
        self.message = message


class MalformedResponseError(TreadmillError):
    """The API response lacks an expected JSON path."""

    kind = "malformed-response"

    def __init__(self, path: str, detail: str = ""):
        message = f"response has no `{path}`"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)
        self.path = path


class PRResolutionError(TreadmillError):
    """Search results did not resolve to exactly one open treadmill PR."""

    kind = "pr-resolution"


class NoCandidateError(PRResolutionError):
    kind = "no-candidate"


class TitleMismatchError(PRResolutionError):
    kind = "title-mismatch"


class NotOpenError(PRResolutionError):
    kind = "not-open"


class AmbiguousError(PRResolutionError):
    kind = "ambiguous"


class VerificationError(TreadmillError):
    """Build or post-build checks failed."""

    kind = "verification"

    def __init__(self, failed: Sequence[str], *, fold_into: str):
        self.failed = tuple(failed)
        self.fold_into = fold_into
        super().__init__(
            f"{', '.join(self.failed)} failed. Please fix, then fold the fix into {fold_into} "
            "(git commit --amend) before pushing."
        )
