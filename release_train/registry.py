"""Package index client.

The release pipeline only needs two operations from an index: upload a
package, and ask whether a version is already there. UvRegistry implements
them with ``uv build``/``uv publish`` and the index's JSON API.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

import httpx
from packaging.utils import (
    InvalidSdistFilename,
    InvalidWheelFilename,
    canonicalize_name,
    canonicalize_version,
    parse_sdist_filename,
    parse_wheel_filename,
)

from .config import DEFAULT_INDEX_URL
from .errors import RegistryError
from .models import Package
from .shell import run

# Substrings (lowercased) in ``uv publish`` stderr meaning the exact file is
# already on the index. PyPI and TestPyPI answer "400 File already exists".
ALREADY_EXISTS_SIGNATURES = ("file already exists",)

USER_AGENT = "release-train"


class Registry(Protocol):
    """What the release pipeline needs from a package index."""

    def release(self, package: Package, dry_run: bool, credential: str | None) -> None: ...

    def exists(self, package: Package) -> bool: ...


def is_artifact_of(path: Path, package: Package) -> bool:
    """Whether a built wheel or sdist belongs to this package version."""
    try:
        if path.name.endswith(".whl"):
            name, version, _, _ = parse_wheel_filename(path.name)
        elif path.name.endswith(".tar.gz"):
            name, version = parse_sdist_filename(path.name)
        else:
            return False
    except (InvalidWheelFilename, InvalidSdistFilename):
        return False
    return name == canonicalize_name(package.name) and canonicalize_version(
        version
    ) == canonicalize_version(package.version)


class UvRegistry:
    """Publishes with uv and probes a PyPI-compatible JSON API.

    Args:
        workspace_root: Root of the workspace; artifacts go to its ``dist/``.
        publish_url: Upload endpoint; uv's default when None.
        index_url: Base URL serving ``/pypi/<name>/<version>/json``.
        timeout: HTTP timeout for existence probes, in seconds.
        client: HTTP client to use instead of a fresh one (tests pass one
            with a mock transport).
    """

    def __init__(
        self,
        workspace_root: Path,
        *,
        publish_url: str | None = None,
        index_url: str = DEFAULT_INDEX_URL,
        timeout: float = 30.0,
        client: httpx.Client | None = None,
    ) -> None:
        self.workspace_root = workspace_root
        self.publish_url = publish_url
        self.index_url = index_url.rstrip("/")
        self.client = client or httpx.Client(
            timeout=timeout,
            headers={"User-Agent": USER_AGENT},
            follow_redirects=True,
        )

    def build(self, package: Package) -> list[Path]:
        """Build the package's wheel and sdist into ``dist/<name>/``.

        Raises:
            RegistryError: If ``uv build`` fails or produces nothing for this
                version.
        """
        out_dir = self.workspace_root / "dist" / package.name
        try:
            result = run(
                "uv",
                "build",
                str(package.location),
                "--out-dir",
                str(out_dir),
                cwd=str(self.workspace_root),
            )
        except OSError as exc:
            raise RegistryError(f"Could not run uv build for {package.name}: {exc}") from exc
        if result.returncode != 0:
            raise RegistryError(f"uv build failed for {package.name}:\n{result.stderr.strip()}")

        try:
            artifacts = sorted(p for p in out_dir.iterdir() if is_artifact_of(p, package))
        except OSError as exc:
            raise RegistryError(f"Could not list artifacts in {out_dir}: {exc}") from exc
        if not artifacts:
            raise RegistryError(
                f"uv build produced no artifacts for {package.name} {package.version} in {out_dir}"
            )
        return artifacts

    def release(self, package: Package, dry_run: bool, credential: str | None) -> None:
        """Build and upload one package.

        With ``dry_run`` the package is built but nothing is uploaded.

        Raises:
            RegistryError: If building or uploading fails. ``already_exists``
                is set when the index already holds the uploaded file.
        """
        artifacts = self.build(package)
        for artifact in artifacts:
            print(f"    built {artifact.name}")
        if dry_run:
            print(f"    dry run: skipping upload of {package.token}")
            return

        cmd = ["uv", "publish"]
        if self.publish_url:
            cmd.extend(["--publish-url", self.publish_url])
        cmd.extend(str(a) for a in artifacts)
        # Token travels through the environment so it never shows up in argv.
        env = {"UV_PUBLISH_TOKEN": credential} if credential else None

        try:
            result = run(*cmd, cwd=str(self.workspace_root), env=env)
        except OSError as exc:
            raise RegistryError(f"Could not run uv publish for {package.token}: {exc}") from exc
        if result.returncode != 0:
            stderr = result.stderr.strip()
            already_exists = any(sig in stderr.lower() for sig in ALREADY_EXISTS_SIGNATURES)
            raise RegistryError(
                f"uv publish failed for {package.token}:\n{stderr}",
                already_exists=already_exists,
            )

    def exists(self, package: Package) -> bool:
        """Ask the index whether this exact version is already published.

        Raises:
            RegistryError: On transport errors or unexpected HTTP statuses.
        """
        url = f"{self.index_url}/pypi/{package.name}/{package.version}/json"
        try:
            resp = self.client.get(url)
        except httpx.HTTPError as exc:
            raise RegistryError(f"Could not reach {url}: {exc}") from exc

        if resp.status_code == 200:
            return True
        if resp.status_code == 404:
            return False
        raise RegistryError(f"HTTP {resp.status_code} from {url}")
