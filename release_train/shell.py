"""Subprocess and console utilities.

Provides a thin wrapper around subprocess for running uv, plus the output
helpers used to report progress through the release.
"""

from __future__ import annotations

import os
import subprocess
import sys


def run(
    *args: str, cwd: str | None = None, env: dict[str, str] | None = None
) -> subprocess.CompletedProcess[str]:
    """Run a command and capture its output.

    Never raises on a non-zero exit; callers inspect ``returncode`` and
    ``stderr`` themselves (the registry needs stderr to recognise uploads
    that already exist).

    Args:
        *args: Command and arguments (e.g., "uv", "build", "pkg/").
        cwd: Working directory for the command.
        env: Extra environment variables, layered over the current ones.

    Returns:
        CompletedProcess with text stdout/stderr.
    """
    full_env = {**os.environ, **env} if env else None
    return subprocess.run(
        args, cwd=cwd, env=full_env, capture_output=True, text=True, check=False
    )


def step(msg: str) -> None:
    """Print a visually distinct step header.

    Used to separate major phases of the release in terminal output.
    """
    print(f"\n{'─' * 60}\n{msg}\n{'─' * 60}")


def warn(msg: str) -> None:
    """Print a warning to stderr without interrupting the run."""
    print(f"Warning: {msg}", file=sys.stderr)
