"""Workspace-level settings from [tool.release-train].

Example, in the workspace root pyproject.toml::

    [tool.release-train]
    include-dev-dependencies = false
    release-interval-seconds = 5
    publish-url = "https://test.pypi.org/legacy/"
    index-url = "https://test.pypi.org"
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import ManifestInvalidError
from .toml import TOOL_TABLE, get_tool_config, load_pyproject

DEFAULT_INDEX_URL = "https://pypi.org"


class ReleaseConfig(BaseModel):
    """Settings shared by every release of a workspace.

    Attributes:
        include_dev_dependencies: Let [dependency-groups] edges affect order.
        release_interval_seconds: Default pause between uploads.
        publish_url: Upload endpoint passed to ``uv publish``; uv's default
                     (PyPI) when unset.
        index_url: Base URL of the JSON API used to probe for existing versions.
        probe_timeout_seconds: HTTP timeout for that probe.
        release: Whether the root project itself may be uploaded.
    """

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    include_dev_dependencies: bool = Field(False, alias="include-dev-dependencies")
    release_interval_seconds: float = Field(0.0, ge=0, alias="release-interval-seconds")
    publish_url: str | None = Field(None, alias="publish-url")
    index_url: str = Field(DEFAULT_INDEX_URL, alias="index-url")
    probe_timeout_seconds: float = Field(30.0, gt=0, alias="probe-timeout-seconds")
    release: bool = True


def parse_config(doc: tomlkit.TOMLDocument) -> ReleaseConfig:
    """Validate the [tool.release-train] table of a root pyproject.toml.

    Raises:
        ManifestInvalidError: On unknown keys or values of the wrong type.
    """
    try:
        return ReleaseConfig.model_validate(get_tool_config(doc))
    except ValidationError as exc:
        raise ManifestInvalidError(f"Invalid [tool.{TOOL_TABLE}] table:\n{exc}") from exc


def load_config(root: Path) -> ReleaseConfig:
    """Load settings for the workspace rooted at ``root``."""
    return parse_config(load_pyproject(root / "pyproject.toml"))
