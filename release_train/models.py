"""Data models for release-train.

These Pydantic models represent the core data structures used throughout
the release pipeline.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field


class Package(BaseModel):
    """Metadata for a single package in the uv workspace.

    Attributes:
        name: Canonical (PEP 503) package name, unique in the workspace.
        version: Version string from pyproject.toml. Only compared and
                 displayed, never parsed.
        location: Package directory; only the registry uses it.
        dependency_names: Canonical names this package requires, in the
                          order they first appear in its manifest.
        releasable: False for internal-only packages that must never be
                    uploaded.
    """

    name: str
    version: str
    location: Path
    dependency_names: list[str] = Field(default_factory=list)
    releasable: bool = True

    @property
    def token(self) -> str:
        """The ``name@version`` key used by checkpoints."""
        return f"{self.name}@{self.version}"


class Workspace(BaseModel):
    """A uv workspace: its root directory and member packages by name."""

    root: Path
    packages: dict[str, Package] = Field(default_factory=dict)


class ReleaseOptions(BaseModel):
    """Knobs for a single run of the release pipeline.

    Attributes:
        dry_run: Build artifacts but never upload.
        skip_already_registered: Probe the index before uploading and skip
                                 versions that are already there.
        credential: Opaque publish token handed to the registry.
        inter_release_delay: Seconds to wait between consecutive uploads.
    """

    dry_run: bool = False
    skip_already_registered: bool = False
    credential: str | None = None
    inter_release_delay: float = Field(default=0.0, ge=0)
