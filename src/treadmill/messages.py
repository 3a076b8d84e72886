"""Commit message templates and the cherry-pick message rewrite."""

from __future__ import annotations

from pathlib import Path

from treadmill import TOOL_NAME, __version__
from treadmill.config import TreadmillConfig

DO_NOT_MERGE = "DO NOT MERGE"
CHANGES_MARKER = "Changes as of"


def junk_commit_message(config: TreadmillConfig, ref: str) -> str:
    """Message for the never-merged commit that carries the vendor diff.

    The subject must not match the treadmill-commit pattern, or the next
    sync would mistake this commit for the treadmill commit itself.
    """
    return (
        f"[{DO_NOT_MERGE}] vendor in {config.product} @ {ref}\n"
        "\n"
        f"This is a JUNK COMMIT from {TOOL_NAME} v{__version__}.\n"
        "\n"
        f"{DO_NOT_MERGE}! This commit only carries the vendored copy of\n"
        f"{config.module_path}. It is thrown away and regenerated on every\n"
        "sync; the real changes live in the commit below it.\n"
    )


def picked_header(pr_number: int, *, product: str = "buildah") -> str:
    return (
        f"Adjust for newly vendored {product}\n"
        "\n"
        f"Cherry-picked by {TOOL_NAME} v{__version__} from PR #{pr_number}.\n"
        "Please amend this message before pushing if it needs more context.\n"
    )


def picked_commit_message(original: str, pr_number: int, *, product: str = "buildah") -> str:
    """Rewrite a treadmill commit message into one fit for merging.

    Everything before the first ``Changes as of`` line is dropped and a
    generated header is put in its place. Without that line, only the
    lines mentioning DO NOT MERGE are dropped.
    """
    lines = original.splitlines(keepends=True)
    start = next((i for i, line in enumerate(lines) if line.startswith(CHANGES_MARKER)), None)
    if start is not None:
        kept = "".join(lines[start:])
    else:
        kept = "".join(line for line in lines if DO_NOT_MERGE not in line).lstrip("\n")
    return f"{picked_header(pr_number, product=product)}\n{kept}"


def tweak_commit_message_file(path: Path, pr_number: int, *, product: str = "buildah") -> None:
    """Rewrite a commit message file in place; used as ``GIT_EDITOR``."""
    original = path.read_text(encoding="utf-8")
    path.write_text(picked_commit_message(original, pr_number, product=product), encoding="utf-8")
