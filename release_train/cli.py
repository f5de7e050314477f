"""CLI entry point for release-train."""

from __future__ import annotations

from pathlib import Path

import click

from release_train.config import load_config
from release_train.errors import ReleaseTrainError
from release_train.models import ReleaseOptions
from release_train.pipeline import releasable_order, release_workspace
from release_train.workspace import discover_workspace, find_workspace_root

workspace_root_option = click.option(
    "--workspace-root",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Workspace root, or any directory inside it. Defaults to the current directory.",
)


def _resolve_root(workspace_root: Path | None) -> Path:
    ctx = click.get_current_context()
    # Subcommand option wins over the one given before the subcommand.
    group_root = ctx.find_root().params.get("workspace_root")
    return find_workspace_root(workspace_root or group_root or Path.cwd())


@click.group(invoke_without_command=True)
@workspace_root_option
@click.version_option(package_name="release-train")
@click.pass_context
def cli(ctx: click.Context, workspace_root: Path | None) -> None:
    """Publish uv workspace packages in dependency order, resumably."""
    if ctx.invoked_subcommand is not None:
        return
    try:
        root = _resolve_root(workspace_root)
        workspace = discover_workspace(
            root, include_dev=load_config(root).include_dev_dependencies
        )
        packages = releasable_order(workspace)
    except ReleaseTrainError as exc:
        raise click.ClickException(str(exc)) from exc

    click.echo("Workspace")
    click.echo("=" * 60)
    click.echo(f"Root:                 {workspace.root}")
    click.echo(f"Total packages:       {len(workspace.packages)}")
    click.echo(f"Releasable packages:  {len(packages)}")
    if packages:
        click.echo()
        click.echo("Release order:")
        for i, package in enumerate(packages, start=1):
            click.echo(f"  {i}. {package.name} {package.version}")
    click.echo()
    click.echo("Run 'release-train list' for dependencies")
    click.echo("Run 'release-train release' to publish")


@cli.command(name="list")
@workspace_root_option
def list_cmd(workspace_root: Path | None) -> None:
    """Print releasable packages in the order they would be published."""
    try:
        root = _resolve_root(workspace_root)
        workspace = discover_workspace(
            root, include_dev=load_config(root).include_dev_dependencies
        )
        packages = releasable_order(workspace)
    except ReleaseTrainError as exc:
        raise click.ClickException(str(exc)) from exc

    if not packages:
        click.echo("No releasable packages.")
        return
    for package in packages:
        internal = [
            d
            for d in package.dependency_names
            if d in workspace.packages and d != package.name
        ]
        deps = f" → [{', '.join(internal)}]" if internal else ""
        location = package.location.relative_to(workspace.root)
        click.echo(f"{package.name} {package.version} ({location}){deps}")


@cli.command()
@workspace_root_option
@click.option(
    "--dry-run",
    is_flag=True,
    help="Build everything but upload nothing. A saved checkpoint is left untouched.",
)
@click.option(
    "--skip-already-registered",
    is_flag=True,
    help="Skip versions the index already has.",
)
@click.option("--resume", is_flag=True, help="Continue an interrupted release session.")
@click.option(
    "--credential",
    envvar="UV_PUBLISH_TOKEN",
    default=None,
    help="Token used to publish. [env: UV_PUBLISH_TOKEN]",
)
@click.option(
    "--release-interval-seconds",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait between uploads. Defaults to [tool.release-train] or 0.",
)
def release(
    workspace_root: Path | None,
    dry_run: bool,
    skip_already_registered: bool,
    resume: bool,
    credential: str | None,
    release_interval_seconds: float | None,
) -> None:
    """Publish every releasable package in dependency order."""
    try:
        root = _resolve_root(workspace_root)
        config = load_config(root)
        if release_interval_seconds is None:
            release_interval_seconds = config.release_interval_seconds
        options = ReleaseOptions(
            dry_run=dry_run,
            skip_already_registered=skip_already_registered,
            credential=credential,
            inter_release_delay=release_interval_seconds,
        )
        release_workspace(root, options, resume=resume, config=config)
    except ReleaseTrainError as exc:
        raise click.ClickException(str(exc)) from exc
