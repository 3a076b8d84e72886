"""Repository inspection for the buildah vendor treadmill."""

from treadmill.git.pins import VersionExtractor, parse_pin
from treadmill.git.repo_state import RepoStateInspector, is_treadmill_subject, vendor_diff_problems

__all__ = [
    "RepoStateInspector",
    "VersionExtractor",
    "is_treadmill_subject",
    "parse_pin",
    "vendor_diff_problems",
]
