"""Tests for release_train.models."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from release_train.models import Package, ReleaseOptions, Workspace


class TestPackage:
    def test_create_with_required_fields(self) -> None:
        pkg = Package(name="foo", version="1.0.0", location=Path("packages/foo"))
        assert pkg.dependency_names == []
        assert pkg.releasable

    def test_token(self) -> None:
        pkg = Package(name="foo", version="1.0.0", location=Path("foo"))
        assert pkg.token == "foo@1.0.0"

    def test_version_is_opaque(self) -> None:
        pkg = Package(name="foo", version="not-semver", location=Path("foo"))
        assert pkg.token == "foo@not-semver"


class TestWorkspace:
    def test_defaults_to_no_packages(self) -> None:
        assert Workspace(root=Path("/ws")).packages == {}


class TestReleaseOptions:
    def test_defaults(self) -> None:
        options = ReleaseOptions()
        assert not options.dry_run
        assert not options.skip_already_registered
        assert options.credential is None
        assert options.inter_release_delay == 0

    def test_negative_delay_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReleaseOptions(inter_release_delay=-1)
