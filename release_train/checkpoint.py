"""Release checkpoints.

A checkpoint records which ``name@version`` pairs a release session has
already uploaded, so an interrupted session can be resumed without
re-uploading anything. It is written after every package and deleted once
the whole session succeeds.

The on-disk form is a small TOML file under the workspace's ``dist/``
directory::

    workspace_root = "/home/me/monorepo"
    released = [
        "pkg-a@1.0.0",
        "pkg-b@2.1.0",
    ]
    last_updated = 2024-05-01T12:00:00Z
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import tomlkit
from pydantic import BaseModel, Field, ValidationError
from tomlkit.exceptions import ParseError

from .errors import CheckpointCorruptError

CHECKPOINT_FILENAME = ".release-train-checkpoint.toml"


def checkpoint_path(workspace_root: Path) -> Path:
    """Where the checkpoint for a workspace lives on disk."""
    return workspace_root / "dist" / CHECKPOINT_FILENAME


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CheckpointStore(Protocol):
    """Persistence backend for checkpoints, keyed by workspace root."""

    def read(self, workspace_root: Path) -> str | None: ...

    def write(self, workspace_root: Path, content: str) -> None: ...

    def delete(self, workspace_root: Path) -> None: ...

    def describe(self, workspace_root: Path) -> str: ...


class FileCheckpointStore:
    """Stores checkpoints as files next to the workspace's build output."""

    def read(self, workspace_root: Path) -> str | None:
        path = checkpoint_path(workspace_root)
        if not path.exists():
            return None
        return path.read_text()

    def write(self, workspace_root: Path, content: str) -> None:
        path = checkpoint_path(workspace_root)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)

    def delete(self, workspace_root: Path) -> None:
        checkpoint_path(workspace_root).unlink(missing_ok=True)

    def describe(self, workspace_root: Path) -> str:
        return str(checkpoint_path(workspace_root))


class MemoryCheckpointStore:
    """Keeps checkpoints in a dict. Used for dry runs and in tests."""

    def __init__(self) -> None:
        self.contents: dict[Path, str] = {}

    def read(self, workspace_root: Path) -> str | None:
        return self.contents.get(workspace_root)

    def write(self, workspace_root: Path, content: str) -> None:
        self.contents[workspace_root] = content

    def delete(self, workspace_root: Path) -> None:
        self.contents.pop(workspace_root, None)

    def describe(self, workspace_root: Path) -> str:
        return f"<memory:{workspace_root}>"


class Checkpoint(BaseModel):
    """Progress of one release session.

    Attributes:
        workspace_root: Resolved workspace root; identifies the checkpoint.
        released: ``name@version`` tokens already uploaded (or confirmed to
                  be on the index).
        last_updated: When the set last changed.
    """

    workspace_root: Path
    released: set[str] = Field(default_factory=set)
    last_updated: datetime = Field(default_factory=_now)

    @classmethod
    def new(cls, workspace_root: Path) -> Checkpoint:
        """Start an empty checkpoint for a workspace."""
        return cls(workspace_root=workspace_root.resolve())

    @classmethod
    def load(
        cls, workspace_root: Path, store: CheckpointStore | None = None
    ) -> Checkpoint | None:
        """Load the stored checkpoint for a workspace, if there is one.

        The loaded checkpoint is keyed to ``workspace_root`` even if it was
        written while the workspace lived elsewhere.

        Returns:
            The checkpoint, or None when nothing is stored for this root.

        Raises:
            CheckpointCorruptError: If stored content cannot be read or parsed.
        """
        store = store or FileCheckpointStore()
        root = workspace_root.resolve()
        try:
            content = store.read(root)
        except (OSError, UnicodeDecodeError) as exc:
            raise CheckpointCorruptError(store.describe(root), str(exc)) from exc
        if content is None:
            return None
        try:
            checkpoint = cls.model_validate(tomlkit.parse(content).unwrap())
        except (ParseError, ValidationError) as exc:
            raise CheckpointCorruptError(store.describe(root), str(exc)) from exc
        return checkpoint.model_copy(update={"workspace_root": root})

    @staticmethod
    def discard(workspace_root: Path, store: CheckpointStore | None = None) -> None:
        """Remove any stored checkpoint for a workspace. No-op if none exists."""
        store = store or FileCheckpointStore()
        store.delete(workspace_root.resolve())

    def mark_released(self, name: str, version: str) -> None:
        """Record ``name@version`` as released. Safe to call more than once."""
        self.released.add(f"{name}@{version}")
        self.last_updated = _now()

    def is_released(self, name: str, version: str) -> bool:
        """Whether this exact version of ``name`` was already released."""
        return f"{name}@{version}" in self.released

    def dumps(self) -> str:
        """Serialize to TOML, with tokens sorted for stable diffs."""
        released = tomlkit.array()
        released.extend(sorted(self.released))
        released.multiline(True)

        doc = tomlkit.document()
        doc.add(tomlkit.comment("release-train checkpoint; delete this file to start over"))
        doc["workspace_root"] = str(self.workspace_root)
        doc["released"] = released
        doc["last_updated"] = self.last_updated
        return tomlkit.dumps(doc)

    def persist(self, store: CheckpointStore | None = None) -> None:
        """Write the checkpoint, replacing whatever was stored for this root."""
        store = store or FileCheckpointStore()
        store.write(self.workspace_root, self.dumps())
