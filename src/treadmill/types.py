"""Types shared by the treadmill workflows."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class CommitClass(str, Enum):
    """What role a commit plays on the treadmill branch."""

    TREADMILL = "treadmill"
    VENDOR = "vendor"
    NEITHER = "neither"


@dataclass(frozen=True)
class RepoStatus:
    """Tracked-file working tree state."""

    changed_paths: tuple[str, ...] = ()

    @property
    def clean(self) -> bool:
        return not self.changed_paths


@dataclass(frozen=True)
class DependencyPin:
    """A module path and the ref the manifest pins it to."""

    module_path: str
    ref: str


class PRState(str, Enum):
    OPEN = "OPEN"
    CLOSED = "CLOSED"
    OTHER = "OTHER"

    @classmethod
    def parse(cls, value: object) -> PRState:
        try:
            return cls(str(value).upper())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class TreadmillPR:
    """One search hit from the code-review platform."""

    number: int
    title: str
    state: PRState


@dataclass(frozen=True)
class WorkflowOutcome:
    """Whether a run did anything worth verifying, and how to describe it."""

    changed: bool
    message: str
