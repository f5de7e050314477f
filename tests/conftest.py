"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest
import tomlkit

from release_train.checkpoint import MemoryCheckpointStore
from release_train.errors import RegistryError
from release_train.models import Package


class FakeRegistry:
    """In-memory registry recording every call made by the pipeline.

    Attributes:
        fail: Package names whose upload fails.
        already_uploaded: Package names the index rejects as existing.
        registered: Package names the existence probe reports as present.
        probe_error: Make every existence probe raise.
    """

    def __init__(self) -> None:
        self.fail: set[str] = set()
        self.already_uploaded: set[str] = set()
        self.registered: set[str] = set()
        self.probe_error = False
        self.released: list[str] = []
        self.probed: list[str] = []
        self.calls: list[tuple[str, bool, str | None]] = []

    def release(self, package: Package, dry_run: bool, credential: str | None) -> None:
        self.calls.append((package.name, dry_run, credential))
        if package.name in self.fail:
            raise RegistryError(f"upload of {package.name} rejected")
        if package.name in self.already_uploaded:
            raise RegistryError("400 File already exists", already_exists=True)
        self.released.append(package.name)

    def exists(self, package: Package) -> bool:
        self.probed.append(package.name)
        if self.probe_error:
            raise RegistryError("index unreachable")
        return package.name in self.registered


@pytest.fixture
def fake_registry() -> FakeRegistry:
    return FakeRegistry()


@pytest.fixture
def memory_store() -> MemoryCheckpointStore:
    return MemoryCheckpointStore()


@pytest.fixture
def make_workspace(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory that writes a uv workspace under tmp_path.

    ``packages`` maps each member name to the dependency strings it declares.
    Members listed in ``private`` get the "Private :: Do Not Upload"
    classifier. ``root_extra`` is appended to the root pyproject.toml.
    """

    def _make(
        packages: dict[str, list[str]],
        *,
        private: tuple[str, ...] = (),
        root_extra: str = "",
    ) -> Path:
        (tmp_path / "pyproject.toml").write_text(
            '[tool.uv.workspace]\nmembers = ["packages/*"]\n' + root_extra
        )
        for name, deps in packages.items():
            package_dir = tmp_path / "packages" / name
            package_dir.mkdir(parents=True)
            classifiers = '["Private :: Do Not Upload"]' if name in private else "[]"
            dep_list = ", ".join(f'"{dep}"' for dep in deps)
            (package_dir / "pyproject.toml").write_text(
                f'[project]\nname = "{name}"\nversion = "1.0.0"\n'
                f"classifiers = {classifiers}\n"
                f"dependencies = [{dep_list}]\n"
            )
        return tmp_path.resolve()

    return _make


@pytest.fixture
def tmp_pyproject(tmp_path: Path) -> Path:
    """Create a temporary pyproject.toml file."""
    content = """\
[project]
name = "test-package"
version = "1.0.0"
dependencies = [
    "requests>=2.0",
    "internal-dep>=1.0",
]

[project.optional-dependencies]
dev = ["pytest>=8.0", "another-internal>=0.5"]

[dependency-groups]
test = ["pytest>=8.0", "group-internal>=0.1"]
"""
    pyproject = tmp_path / "pyproject.toml"
    pyproject.write_text(content)
    return pyproject


@pytest.fixture
def sample_toml_doc() -> tomlkit.TOMLDocument:
    """Create a sample TOML document."""
    content = """\
[build-system]
requires = ["hatchling", "build-helper>=1.0"]
build-backend = "hatchling.build"

[project]
name = "My_Package"
version = "2.0.0"
dependencies = ["click>=8.0", "pydantic>=2.0"]

[project.optional-dependencies]
dev = ["pytest>=8.0"]
docs = ["sphinx>=7.0"]

[dependency-groups]
test = ["hypothesis>=6.0"]
all = [{include-group = "test"}, "coverage"]

[tool.uv.workspace]
members = ["packages/*", "libs/*"]
exclude = ["libs/legacy"]
"""
    return tomlkit.parse(content)
