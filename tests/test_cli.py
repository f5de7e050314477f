"""Tests for release_train.cli."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from release_train.cli import cli
from release_train.errors import ReleaseFailedError, RegistryError


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


class TestList:
    def test_prints_release_order_with_internal_deps(
        self, runner: CliRunner, make_workspace: Callable[..., Path]
    ) -> None:
        root = make_workspace(
            {"app": ["core>=1.0", "utils", "httpx"], "core": [], "utils": ["core"]}
        )

        result = runner.invoke(cli, ["list", "--workspace-root", str(root)])

        assert result.exit_code == 0, result.output
        assert result.output.splitlines() == [
            "core 1.0.0 (packages/core)",
            "utils 1.0.0 (packages/utils) → [core]",
            "app 1.0.0 (packages/app) → [core, utils]",
        ]

    def test_private_packages_hidden(
        self, runner: CliRunner, make_workspace: Callable[..., Path]
    ) -> None:
        root = make_workspace({"internal": []}, private=("internal",))
        result = runner.invoke(cli, ["list", "--workspace-root", str(root)])
        assert result.exit_code == 0
        assert "No releasable packages." in result.output

    def test_cycle_exits_non_zero(
        self, runner: CliRunner, make_workspace: Callable[..., Path]
    ) -> None:
        root = make_workspace({"x": ["y"], "y": ["x"]})
        result = runner.invoke(cli, ["list", "--workspace-root", str(root)])
        assert result.exit_code == 1
        assert "x -> y -> x" in result.output

    def test_missing_workspace(self, runner: CliRunner, tmp_path: Path) -> None:
        result = runner.invoke(cli, ["list", "--workspace-root", str(tmp_path)])
        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_group_level_workspace_root(
        self, runner: CliRunner, make_workspace: Callable[..., Path]
    ) -> None:
        root = make_workspace({"solo": []})
        result = runner.invoke(cli, ["--workspace-root", str(root), "list"])
        assert result.exit_code == 0, result.output
        assert "solo 1.0.0" in result.output


def test_summary_without_subcommand(
    runner: CliRunner, make_workspace: Callable[..., Path]
) -> None:
    root = make_workspace({"a": [], "b": ["a"], "c": []}, private=("c",))

    result = runner.invoke(cli, ["--workspace-root", str(root)])

    assert result.exit_code == 0, result.output
    assert "Total packages:       3" in result.output
    assert "Releasable packages:  2" in result.output
    assert "  1. a 1.0.0\n  2. b 1.0.0" in result.output


@patch("release_train.cli.release_workspace")
class TestRelease:
    def test_passes_options(
        self,
        mock_release: MagicMock,
        runner: CliRunner,
        make_workspace: Callable[..., Path],
    ) -> None:
        root = make_workspace({"a": []})

        result = runner.invoke(
            cli,
            [
                "release",
                "--workspace-root",
                str(root),
                "--dry-run",
                "--skip-already-registered",
                "--resume",
                "--release-interval-seconds",
                "1.5",
            ],
            env={"UV_PUBLISH_TOKEN": "pypi-token"},
        )

        assert result.exit_code == 0, result.output
        (called_root, options), kwargs = mock_release.call_args
        assert called_root == root
        assert options.dry_run
        assert options.skip_already_registered
        assert options.credential == "pypi-token"
        assert options.inter_release_delay == 1.5
        assert kwargs["resume"] is True

    def test_interval_defaults_to_config(
        self,
        mock_release: MagicMock,
        runner: CliRunner,
        make_workspace: Callable[..., Path],
    ) -> None:
        root = make_workspace(
            {"a": []}, root_extra="[tool.release-train]\nrelease-interval-seconds = 7\n"
        )

        result = runner.invoke(cli, ["release", "--workspace-root", str(root)], env={})

        assert result.exit_code == 0, result.output
        (_, options), kwargs = mock_release.call_args
        assert options.inter_release_delay == 7.0
        assert not options.dry_run
        assert kwargs["resume"] is False
        assert kwargs["config"].release_interval_seconds == 7.0

    def test_negative_interval_rejected(
        self,
        mock_release: MagicMock,
        runner: CliRunner,
        make_workspace: Callable[..., Path],
    ) -> None:
        root = make_workspace({"a": []})
        result = runner.invoke(
            cli,
            ["release", "--workspace-root", str(root), "--release-interval-seconds", "-1"],
        )
        assert result.exit_code == 2
        mock_release.assert_not_called()

    def test_dry_run_help_mentions_checkpoint(
        self, mock_release: MagicMock, runner: CliRunner
    ) -> None:
        result = runner.invoke(cli, ["release", "--help"])
        assert result.exit_code == 0
        assert "saved checkpoint is left untouched" in " ".join(result.output.split())

    def test_failure_exits_non_zero(
        self,
        mock_release: MagicMock,
        runner: CliRunner,
        make_workspace: Callable[..., Path],
    ) -> None:
        root = make_workspace({"a": []})
        mock_release.side_effect = ReleaseFailedError("a", RegistryError("403 Forbidden"))

        result = runner.invoke(cli, ["release", "--workspace-root", str(root)])

        assert result.exit_code == 1
        assert "Failed to release a: 403 Forbidden" in result.output
