"""Release pipeline: discover → order → checkpoint → publish.

This module orchestrates a release session:
1. Discover all packages in the workspace
2. Sort them so dependencies are published before their dependents
3. Drop internal-only packages
4. Start a fresh checkpoint, or resume the one left by an interrupted run
5. Publish the remaining packages one at a time, checkpointing after each

A failed upload halts the session immediately. Everything released so far
stays in the checkpoint, and ``release-train release --resume`` carries on
from the failed package.
"""

from __future__ import annotations

import time
from pathlib import Path

from .checkpoint import Checkpoint, CheckpointStore, FileCheckpointStore, MemoryCheckpointStore
from .config import ReleaseConfig, load_config
from .errors import RegistryError, ReleaseFailedError
from .graph import filter_releasable, release_order
from .models import Package, ReleaseOptions, Workspace
from .registry import Registry, UvRegistry
from .shell import step, warn
from .workspace import discover_workspace


def releasable_order(workspace: Workspace) -> list[Package]:
    """Packages that may be uploaded, in publish order."""
    return filter_releasable(release_order(workspace))


def run_pipeline(
    packages: list[Package],
    checkpoint: Checkpoint,
    options: ReleaseOptions,
    registry: Registry,
    store: CheckpointStore,
) -> None:
    """Release packages in order, checkpointing after each one.

    For every package:
    1. Skip it if the checkpoint already lists this version.
    2. With ``skip_already_registered``, skip it if the index already has
       this version. A failing probe only warns.
    3. Upload it. An "already exists" rejection counts as success.
    4. Mark and persist the checkpoint, then wait ``inter_release_delay``
       before the next upload (never after the last one, never in dry runs).

    Args:
        packages: Releasable packages in publish order.
        checkpoint: Session checkpoint; updated in place.
        options: Dry-run, probing, credential and pacing settings.
        registry: Index client used to probe and upload.
        store: Where the checkpoint is persisted.

    Raises:
        ReleaseFailedError: On the first upload that fails. The failing
            package and everything after it are left unmarked.
    """
    last = len(packages) - 1
    for index, package in enumerate(packages):
        if checkpoint.is_released(package.name, package.version):
            print(f"  {package.token}: already released in this session")
            continue

        if options.skip_already_registered:
            try:
                registered = registry.exists(package)
            except RegistryError as exc:
                warn(f"Could not check whether {package.token} is registered: {exc}")
                registered = False
            if registered:
                print(f"  {package.token}: already on the index, skipping")
                checkpoint.mark_released(package.name, package.version)
                checkpoint.persist(store)
                continue

        print(f"  {package.token}: releasing ({package.location})")
        try:
            registry.release(package, options.dry_run, options.credential)
        except RegistryError as exc:
            if not exc.already_exists:
                raise ReleaseFailedError(package.name, exc) from exc
            print(f"  {package.token}: already uploaded, treating as released")

        checkpoint.mark_released(package.name, package.version)
        checkpoint.persist(store)

        if index < last and not options.dry_run and options.inter_release_delay > 0:
            print(f"  Waiting {options.inter_release_delay:g}s before the next release...")
            time.sleep(options.inter_release_delay)


def open_checkpoint(root: Path, *, resume: bool, store: CheckpointStore) -> Checkpoint:
    """Load the checkpoint to resume, or start a fresh session.

    A non-resuming session always throws away whatever a previous session
    left behind.

    Raises:
        CheckpointCorruptError: If resuming and the stored checkpoint is
            unreadable.
    """
    if resume:
        checkpoint = Checkpoint.load(root, store)
        if checkpoint is not None:
            print(f"  Resuming previous session ({len(checkpoint.released)} already released)")
            return checkpoint
        print("  No previous session found, starting fresh")
    else:
        Checkpoint.discard(root, store)
    return Checkpoint.new(root)


def release_workspace(
    root: Path,
    options: ReleaseOptions,
    *,
    resume: bool = False,
    config: ReleaseConfig | None = None,
    registry: Registry | None = None,
    store: CheckpointStore | None = None,
) -> None:
    """Execute a full release session for the workspace at ``root``.

    Dry runs may read a checkpoint to resume from, but never write, replace
    or delete stored checkpoints.

    Args:
        root: Workspace root directory.
        options: Pipeline settings.
        resume: Continue from the stored checkpoint instead of starting over.
        config: Workspace settings; read from pyproject.toml when omitted.
        registry: Index client; a UvRegistry built from ``config`` by default.
        store: Checkpoint storage; files under ``dist/`` by default.

    Raises:
        WorkspaceNotFoundError, CircularDependencyError: Before anything is
            uploaded.
        CheckpointCorruptError: If resuming from an unreadable checkpoint.
        ReleaseFailedError: If an upload fails; the checkpoint is saved first.
    """
    config = config or load_config(root)

    step("Discovering workspace packages")
    workspace = discover_workspace(root, include_dev=config.include_dev_dependencies)
    packages = releasable_order(workspace)
    for package in packages:
        print(f"  {package.name} {package.version}")

    if not packages:
        print("\nNo packages to release.")
        return

    durable = store or FileCheckpointStore()
    session_store: CheckpointStore = MemoryCheckpointStore() if options.dry_run else durable

    step("Preparing checkpoint")
    if resume:
        checkpoint = open_checkpoint(workspace.root, resume=True, store=durable)
    else:
        checkpoint = open_checkpoint(workspace.root, resume=False, store=session_store)

    pending = [p for p in packages if not checkpoint.is_released(p.name, p.version)]
    if not pending:
        print("\nAll packages have already been released.")
        Checkpoint.discard(workspace.root, session_store)
        return

    registry = registry or UvRegistry(
        workspace.root,
        publish_url=config.publish_url,
        index_url=config.index_url,
        timeout=config.probe_timeout_seconds,
    )

    mode = " (dry run)" if options.dry_run else ""
    step(f"Releasing {len(pending)} of {len(packages)} packages{mode}")
    try:
        run_pipeline(pending, checkpoint, options, registry, session_store)
    except ReleaseFailedError:
        checkpoint.persist(session_store)
        if not options.dry_run:
            print(
                "\nRelease interrupted. Checkpoint saved to "
                f"{session_store.describe(workspace.root)}; rerun with --resume to continue."
            )
        raise

    Checkpoint.discard(workspace.root, session_store)
    done = "Dry run complete" if options.dry_run else "All packages released"
    print(f"\n{'=' * 60}\n{done}!\n{'=' * 60}")
