"""Run configuration for the buildah vendor treadmill."""

from __future__ import annotations

import os
import tempfile
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

TOKEN_ENV_VAR = "GITHUB_TOKEN"
GRAPHQL_URL = "https://api.github.com/graphql"


@dataclass(frozen=True)
class TreadmillConfig:
    """Immutable settings built once at startup and passed to every workflow."""

    repo_root: Path
    product: str = "buildah"
    module_path: str = "github.com/containers/buildah"
    downstream_repo: str = "containers/podman"
    mainline: str = "main"
    upstream_branch: str = "main"

    manifest: str = "go.mod"
    lockfile: str = "go.sum"
    vendor_manifest: str = "vendor/modules.txt"
    vendor_root: str = "vendor"

    treadmill_title: str = "DO NOT MERGE: buildah vendor treadmill"
    graphql_url: str = GRAPHQL_URL
    token: str | None = None

    build_command: tuple[str, ...] = ("make",)
    xref_command: tuple[str, ...] = ("hack/xref-helpmsgs-manpages",)
    integration_command: tuple[str, ...] = ("test/buildah-bud/run-buildah-bud-tests", "--no-test")
    scratch_dir: Path = field(default_factory=lambda: Path(tempfile.gettempdir()))
    scratch_prefix: str = "buildah-bud."

    verbose: bool = False
    debug: bool = False
    force: bool = False
    dry_run: bool = False

    @classmethod
    def from_env(
        cls,
        repo_root: Path,
        *,
        environ: Mapping[str, str] | None = None,
        **overrides: object,
    ) -> TreadmillConfig:
        """Build config, reading the optional API token from the environment."""
        env = os.environ if environ is None else environ
        token = (env.get(TOKEN_ENV_VAR) or "").strip() or None
        return cls(repo_root=repo_root.resolve(), token=token, **overrides)  # type: ignore[arg-type]

    @property
    def upstream_remote(self) -> str:
        """Canonical pull URL for the downstream project's mainline."""
        return f"https://github.com/{self.downstream_repo}.git"

    @property
    def vendor_subtree(self) -> str:
        return f"{self.vendor_root}/{self.module_path}/"

    @property
    def required_vendor_paths(self) -> tuple[str, ...]:
        return (self.manifest, self.lockfile, self.vendor_manifest)

    @property
    def vendor_commands(self) -> tuple[tuple[str, ...], ...]:
        return (
            ("go", "get", f"{self.module_path}@{self.upstream_branch}"),
            ("make", "vendor"),
        )
