"""Thin subprocess wrapper around the ``git`` executable.

Every call is scoped with ``git -C <repo_root>`` and bounded by a timeout.
Failures raise ``GitCommandError`` so the resolver can turn them into an
error string at its boundary.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path

from ..errors import GitCommandError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 5.0


def run_git(repo_root: Path, args: list[str], timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> str:
    """Run a git subcommand and return its stdout.

    Raises ``GitCommandError`` when git cannot be started, times out, or
    exits non-zero. Output is decoded as UTF-8 with replacement so binary
    blobs never raise decode errors.
    """
    logger.debug("git -C %s %s", repo_root, " ".join(args))
    try:
        proc = subprocess.run(
            ["git", "-C", str(repo_root), *args],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
            timeout=timeout_seconds,
        )
    except subprocess.TimeoutExpired as exc:
        raise GitCommandError(args, f"timed out after {timeout_seconds:g}s") from exc
    except OSError as exc:
        raise GitCommandError(args, f"failed to run git: {exc}") from exc

    if proc.returncode != 0:
        message = (proc.stderr or "").strip() or "git failed"
        raise GitCommandError(args, message.splitlines()[0], proc.returncode)
    return proc.stdout


def try_git(repo_root: Path, args: list[str], timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> str | None:
    """Run git and return stdout, or ``None`` on any failure."""
    try:
        return run_git(repo_root, args, timeout_seconds)
    except GitCommandError as exc:
        logger.debug("%s", exc)
        return None


def resolve_repo_root(path: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> Path | None:
    """Return the repository top-level directory containing ``path``."""
    start = path if path.is_dir() else path.parent
    output = try_git(start, ["rev-parse", "--show-toplevel"], timeout_seconds)
    if output is None:
        return None
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return None
    return Path(lines[0]).resolve()
