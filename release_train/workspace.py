"""Workspace discovery.

Locates the uv workspace root and turns each member's pyproject.toml into a
Package record.
"""

from __future__ import annotations

import glob
from pathlib import Path

import tomlkit
from tomlkit.exceptions import ParseError

from .deps import dependency_names
from .errors import ManifestInvalidError, WorkspaceNotFoundError
from .models import Package, Workspace
from .shell import warn
from .toml import (
    get_project_name,
    get_project_version,
    get_workspace_members,
    has_workspace_table,
    is_releasable,
    load_pyproject,
)


def find_workspace_root(start: Path) -> Path:
    """Find the nearest directory at or above ``start`` that is a uv workspace.

    Raises:
        WorkspaceNotFoundError: If no pyproject.toml with [tool.uv.workspace]
            exists in ``start`` or any of its parents.
    """
    start = start.resolve()
    for candidate in (start, *start.parents):
        pyproject = candidate / "pyproject.toml"
        if not pyproject.is_file():
            continue
        try:
            doc = load_pyproject(pyproject)
        except ParseError as exc:
            warn(f"Ignoring unparsable {pyproject}: {exc}")
            continue
        if has_workspace_table(doc):
            return candidate
    raise WorkspaceNotFoundError(f"No uv workspace found at or above {start}")


def expand_members(root: Path, members: list[str], exclude: list[str]) -> list[Path]:
    """Expand member globs into package directories, in a stable order.

    Only directories containing a pyproject.toml count; anything matched by
    an ``exclude`` pattern is dropped. Each directory appears once.
    """
    excluded: set[Path] = set()
    for pattern in exclude:
        excluded.update(Path(m).resolve() for m in glob.glob(str(root / pattern)))

    member_dirs: list[Path] = []
    for pattern in members:
        for match in sorted(glob.glob(str(root / pattern))):
            p = Path(match).resolve()
            if p in excluded or p in member_dirs:
                continue
            if (p / "pyproject.toml").is_file():
                member_dirs.append(p)
    return member_dirs


def parse_package(
    pyproject: Path, doc: tomlkit.TOMLDocument, *, include_dev: bool = False
) -> Package:
    """Build a Package from an already-parsed pyproject.toml.

    Raises:
        ManifestInvalidError: If name or version is missing, or a dependency
            string cannot be parsed.
    """
    name = get_project_name(doc)
    if not name:
        raise ManifestInvalidError(f"{pyproject}: missing [project].name")
    version = get_project_version(doc)
    if not version:
        raise ManifestInvalidError(
            f"{pyproject}: missing static [project].version (dynamic versions are not supported)"
        )
    try:
        deps = dependency_names(doc, include_dev=include_dev)
    except ManifestInvalidError as exc:
        raise ManifestInvalidError(f"{pyproject}: {exc}") from exc

    return Package(
        name=name,
        version=version,
        location=pyproject.parent,
        dependency_names=deps,
        releasable=is_releasable(doc),
    )


def discover_workspace(root: Path, *, include_dev: bool = False) -> Workspace:
    """Scan the workspace and collect every member package.

    Reads [tool.uv.workspace].members from the root pyproject.toml to find
    package directories. The root project is included too when it has a
    [project] table. Members whose manifest is invalid are skipped with a
    warning.

    Args:
        root: Workspace root directory.
        include_dev: Count [dependency-groups] as dependencies.

    Raises:
        WorkspaceNotFoundError: If the root declares no members, or none of
            them yields a package.
        ManifestInvalidError: If two members share a name.
    """
    root = root.resolve()
    root_pyproject = root / "pyproject.toml"
    if not root_pyproject.is_file():
        raise WorkspaceNotFoundError(f"No pyproject.toml in {root}")
    root_doc = load_pyproject(root_pyproject)
    members, exclude = get_workspace_members(root_doc)

    manifests: list[tuple[Path, tomlkit.TOMLDocument | None]] = []
    if "project" in root_doc:
        manifests.append((root_pyproject, root_doc))
    for d in expand_members(root, members, exclude):
        if d != root:
            manifests.append((d / "pyproject.toml", None))

    packages: dict[str, Package] = {}
    for pyproject, doc in manifests:
        try:
            if doc is None:
                doc = load_pyproject(pyproject)
            package = parse_package(pyproject, doc, include_dev=include_dev)
        except ParseError as exc:
            warn(f"Skipping {pyproject}: {exc}")
            continue
        except ManifestInvalidError as exc:
            warn(f"Skipping {exc}")
            continue

        if package.name in packages:
            other = packages[package.name].location
            raise ManifestInvalidError(
                f"Package name {package.name!r} is used by both {other} and {package.location}"
            )
        packages[package.name] = package

    if not packages:
        raise WorkspaceNotFoundError(f"No packages found matching workspace members in {root}")

    return Workspace(root=root, packages=packages)
