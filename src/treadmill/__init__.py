"""Buildah vendor treadmill: keep vendored buildah in sync with podman main."""

__version__ = "1.0.0"

TOOL_NAME = "buildah-vendor-treadmill"
