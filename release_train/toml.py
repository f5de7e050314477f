"""TOML reading utilities.

Uses tomlkit to read pyproject.toml files and to write the checkpoint file,
so both sides of the round trip use the same parser.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import tomlkit
from packaging.utils import canonicalize_name

from .errors import WorkspaceNotFoundError

# Trove classifier uv (and PyPI) treat as "never upload this package".
PRIVATE_CLASSIFIER = "Private :: Do Not Upload"
TOOL_TABLE = "release-train"


def load_pyproject(path: Path) -> tomlkit.TOMLDocument:
    """Load and parse a pyproject.toml file."""
    return tomlkit.parse(path.read_text())


def get_project_name(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract the canonical package name from [project].name.

    Names are normalized per PEP 503 (lowercase, hyphens instead of
    underscores) for consistent comparison.
    """
    name = doc.get("project", {}).get("name")
    return canonicalize_name(str(name)) if name else None


def get_project_version(doc: tomlkit.TOMLDocument) -> str | None:
    """Extract [project].version, or None when it is missing or dynamic."""
    version = doc.get("project", {}).get("version")
    return str(version) if version else None


def get_release_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect the dependency strings that matter for publish order.

    Gathers dependencies from three locations:
    - [project].dependencies (main runtime deps)
    - [project].optional-dependencies.* (extras ship in the published metadata)
    - [build-system].requires (needed to build the sdist from the index)

    Returns raw PEP 508 strings like "requests>=2.0" or "pkg[extra]~=1.0".
    """
    project = doc.get("project", {})
    deps: list[str] = [str(d) for d in project.get("dependencies", [])]
    for group_deps in project.get("optional-dependencies", {}).values():
        deps.extend(str(d) for d in group_deps)
    deps.extend(str(d) for d in doc.get("build-system", {}).get("requires", []))
    return deps


def get_dev_dependency_strings(doc: tomlkit.TOMLDocument) -> list[str]:
    """Collect PEP 735 [dependency-groups] entries.

    These never reach the index, so they only count towards ordering when
    the workspace opts in. ``{include-group = ...}`` tables are skipped since
    the included group is collected on its own.
    """
    deps: list[str] = []
    for group_deps in doc.get("dependency-groups", {}).values():
        deps.extend(str(d) for d in group_deps if isinstance(d, str))
    return deps


def get_workspace_members(doc: tomlkit.TOMLDocument) -> tuple[list[str], list[str]]:
    """Extract member and exclude glob patterns from [tool.uv.workspace].

    These patterns (e.g., "packages/*", "libs/*") define which directories
    contain workspace packages.

    Raises:
        WorkspaceNotFoundError: If no workspace members are defined.
    """
    workspace = doc.get("tool", {}).get("uv", {}).get("workspace", {})
    members = workspace.get("members")
    if not members:
        raise WorkspaceNotFoundError(
            "No [tool.uv.workspace] members defined in root pyproject.toml"
        )
    return [str(m) for m in members], [str(e) for e in workspace.get("exclude", [])]


def has_workspace_table(doc: tomlkit.TOMLDocument) -> bool:
    """Whether the document declares a [tool.uv.workspace] table."""
    return "workspace" in doc.get("tool", {}).get("uv", {})


def get_tool_config(doc: tomlkit.TOMLDocument) -> dict[str, Any]:
    """Return [tool.release-train] as plain Python values (empty if absent)."""
    table = doc.get("tool", {}).get(TOOL_TABLE)
    if table is None:
        return {}
    return table.unwrap()


def is_releasable(doc: tomlkit.TOMLDocument) -> bool:
    """Decide whether a package may be uploaded at all.

    A package is internal-only when it carries the ``Private :: Do Not
    Upload`` classifier or sets ``[tool.release-train] release = false``.
    """
    classifiers = doc.get("project", {}).get("classifiers", [])
    if PRIVATE_CLASSIFIER in classifiers:
        return False
    return bool(get_tool_config(doc).get("release", True))
