"""Dependency handling utilities.

Provides functions for parsing PEP 508 dependency strings into the
canonical names the dependency graph is keyed by.
"""

from __future__ import annotations

import tomlkit
from packaging.requirements import InvalidRequirement, Requirement
from packaging.utils import canonicalize_name

from .errors import ManifestInvalidError
from .toml import get_dev_dependency_strings, get_release_dependency_strings


def dep_canonical_name(dep_str: str) -> str:
    """Extract the canonical package name from a PEP 508 dependency string.

    Handles version specifiers, extras, and markers, and normalizes the name
    per PEP 503 (lowercase, hyphens instead of underscores).

    Examples:
        "requests>=2.0" → "requests"
        "My_Package[extra]~=1.0" → "my-package"

    Raises:
        ManifestInvalidError: If the string is not a valid requirement.
    """
    try:
        return canonicalize_name(Requirement(dep_str).name)
    except InvalidRequirement as exc:
        raise ManifestInvalidError(f"Invalid requirement {dep_str!r}: {exc}") from exc


def dependency_names(doc: tomlkit.TOMLDocument, *, include_dev: bool = False) -> list[str]:
    """List the canonical names a package depends on, first occurrence first.

    Args:
        doc: Parsed pyproject.toml of the package.
        include_dev: Also count [dependency-groups] entries.
    """
    dep_strings = get_release_dependency_strings(doc)
    if include_dev:
        dep_strings.extend(get_dev_dependency_strings(doc))

    names: list[str] = []
    seen: set[str] = set()
    for dep_str in dep_strings:
        name = dep_canonical_name(dep_str)
        if name not in seen:
            names.append(name)
            seen.add(name)
    return names
