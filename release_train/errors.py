"""Error types raised by release-train.

Everything derives from ReleaseTrainError so the CLI can turn any of them
into a clean message and a non-zero exit.
"""

from __future__ import annotations

from pathlib import Path


class ReleaseTrainError(Exception):
    """Base class for all release-train errors."""


class WorkspaceNotFoundError(ReleaseTrainError):
    """No uv workspace (or no members in it) could be located."""


class ManifestInvalidError(ReleaseTrainError):
    """A pyproject.toml is missing required fields or is malformed."""


class CircularDependencyError(ReleaseTrainError):
    """The internal dependency graph contains one or more cycles.

    Attributes:
        cycles: One chain per strongly-connected component, each starting
            and ending with the same package name.
    """

    def __init__(self, cycles: list[list[str]]) -> None:
        self.cycles = cycles
        chains = "; ".join(" -> ".join(chain) for chain in cycles)
        super().__init__(f"Circular dependencies detected: {chains}")


class CheckpointCorruptError(ReleaseTrainError):
    """A stored checkpoint exists but cannot be read back."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = path
        super().__init__(
            f"Checkpoint {path} is unreadable ({reason}). "
            "Delete it, or run without --resume to start a fresh session."
        )


class RegistryError(ReleaseTrainError):
    """A registry operation (publish or existence probe) failed.

    Attributes:
        already_exists: True when the registry rejected an upload because
            the exact artifact is already there.
    """

    def __init__(self, message: str, *, already_exists: bool = False) -> None:
        self.already_exists = already_exists
        super().__init__(message)


class ReleaseFailedError(ReleaseTrainError):
    """Releasing a package failed and the pipeline halted."""

    def __init__(self, package: str, cause: RegistryError) -> None:
        self.package = package
        self.cause = cause
        super().__init__(f"Failed to release {package}: {cause}")
