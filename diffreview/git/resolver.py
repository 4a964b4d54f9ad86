"""Comparison-target resolution: fast file listing and lazy per-file details.

Listing only asks git for names and statuses, so it stays cheap on large
changesets. Diff text and content are fetched per file by ``load_details``
when a file is actually selected.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path

from ..diff.changes import changed_positions, content_lines, count_changes, synthesize_untracked_diff
from ..errors import GitCommandError, NotFound, RetrievalFailure
from .models import (
    BranchInfo,
    BranchTarget,
    CommitInfo,
    CommitTarget,
    ComparisonTarget,
    DirtyTarget,
    FileChange,
    FileStatus,
)
from .parsing import BRANCH_FORMAT, LOG_FORMAT, parse_branches, parse_log, parse_name_status, parse_porcelain_status
from .runner import DEFAULT_TIMEOUT_SECONDS, resolve_repo_root, run_git

logger = logging.getLogger(__name__)

EMPTY_TREE_HASH = "4b825dc642cb6eb9a060e54bf8d69288fbee4904"
BINARY_PROBE_CHARS = 4_096
DEFAULT_COMMIT_LIMIT = 200


def read_text(path: Path) -> str:
    """Read text using tolerant encoding fallback order.

    Attempts UTF-8, UTF-8 with BOM, then latin-1; as a final fallback decodes
    raw bytes with UTF-8 replacement semantics.
    """
    for encoding in ("utf-8", "utf-8-sig", "latin-1"):
        try:
            return path.read_text(encoding=encoding)
        except UnicodeDecodeError:
            continue
    return path.read_bytes().decode("utf-8", errors="replace")


def looks_binary(text: str) -> bool:
    return "\0" in text[:BINARY_PROBE_CHARS]


def _is_binary_diff(diff_text: str) -> bool:
    return any(
        line.startswith("Binary files ") or line.startswith("GIT binary patch")
        for line in diff_text.split("\n")
    )


def _all_lines(content: str) -> frozenset[int]:
    return frozenset(range(len(content_lines(content))))


class ComparisonResolver:
    """Retrieve file lists and file details for one repository.

    ``repo_root`` is passed explicitly; nothing here depends on the process
    working directory.
    """

    def __init__(self, repo_root: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> None:
        self.repo_root = Path(repo_root).resolve()
        self.timeout_seconds = timeout_seconds

    @classmethod
    def discover(cls, path: Path, timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS) -> ComparisonResolver | None:
        """Create a resolver for the repository containing ``path``, if any."""
        repo_root = resolve_repo_root(Path(path).resolve(), timeout_seconds)
        if repo_root is None:
            return None
        return cls(repo_root, timeout_seconds)

    def _git(self, args: list[str]) -> str:
        return run_git(self.repo_root, args, self.timeout_seconds)

    # Listing ---------------------------------------------------------------

    def list_files(self, target: ComparisonTarget) -> tuple[list[FileChange], str | None]:
        """Return unloaded file records for ``target`` plus an optional error.

        On failure the list is empty and the error string describes why; an
        empty list with ``None`` error means there are no changes.
        """
        try:
            if isinstance(target, DirtyTarget):
                output = self._git(
                    ["-c", "core.quotePath=false", "status", "--porcelain=v1", "--untracked-files=all"]
                )
                files = parse_porcelain_status(output)
            else:
                old_rev, new_rev = self._revision_pair(target)
                output = self._git(["diff", "--name-status", "-z", "-M", old_rev, new_rev])
                files = parse_name_status(output)
        except RetrievalFailure as exc:
            logger.warning("listing %s failed: %s", target.describe(), exc)
            return [], str(exc)
        logger.debug("listed %d files for %s", len(files), target.describe())
        return files, None

    def list_commits(self, limit: int = DEFAULT_COMMIT_LIMIT) -> tuple[list[CommitInfo], str | None]:
        """Return recent commits on the current head, newest first."""
        try:
            output = self._git(["log", f"-n{max(1, limit)}", f"--pretty=format:{LOG_FORMAT}"])
        except RetrievalFailure as exc:
            logger.warning("listing commits failed: %s", exc)
            return [], str(exc)
        return parse_log(output), None

    def list_branches(self) -> tuple[list[BranchInfo], str | None]:
        """Return local branches sorted by most recent commit, current one flagged."""
        try:
            output = self._git(["for-each-ref", "--sort=-committerdate", f"--format={BRANCH_FORMAT}", "refs/heads"])
        except RetrievalFailure as exc:
            logger.warning("listing branches failed: %s", exc)
            return [], str(exc)
        return parse_branches(output), None

    def current_branch(self) -> str | None:
        try:
            name = self._git(["rev-parse", "--abbrev-ref", "HEAD"]).strip()
        except RetrievalFailure:
            return None
        return name or None

    def resolve_commit(self, revision: str) -> str | None:
        """Return the full hash ``revision`` names, or ``None`` if it is not a commit."""
        try:
            full_hash = self._git(["rev-parse", "--verify", "--quiet", f"{revision}^{{commit}}"]).strip()
        except RetrievalFailure:
            return None
        return full_hash or None

    def _revision_pair(self, target: CommitTarget | BranchTarget) -> tuple[str, str]:
        """Return ``(old, new)`` revisions compared for a commit or branch target."""
        if isinstance(target, CommitTarget):
            try:
                self._git(["rev-parse", "--verify", "--quiet", f"{target.hash}^{{commit}}"])
            except GitCommandError as exc:
                raise NotFound(f"commit {target.hash} not found") from exc
            try:
                parent = self._git(["rev-parse", "--verify", "--quiet", f"{target.hash}^1"]).strip()
            except GitCommandError:
                parent = EMPTY_TREE_HASH
            return parent, target.hash

        try:
            merge_base = self._git(["merge-base", "HEAD", target.name]).strip()
        except GitCommandError as exc:
            raise NotFound(f"no merge-base between HEAD and {target.name}") from exc
        return merge_base, "HEAD"

    # Details ---------------------------------------------------------------

    def load_details(self, file: FileChange, target: ComparisonTarget) -> FileChange:
        """Return ``file`` with diff, content and changed lines filled in.

        A retrieval failure is logged and returned as ``file`` with
        ``load_error`` set; callers treat it as final for that file rather
        than retrying.
        """
        try:
            if isinstance(target, DirtyTarget):
                return self._load_dirty(file)
            return self._load_historical(file, target)
        except (RetrievalFailure, OSError) as exc:
            logger.warning("loading %s for %s failed: %s", file.path, target.describe(), exc)
            return replace(file, load_error=str(exc))

    def _load_dirty(self, file: FileChange) -> FileChange:
        if file.status is FileStatus.UNTRACKED:
            content = read_text(self.repo_root / file.path)
            if looks_binary(content):
                return replace(file, is_binary=True)
            diff = synthesize_untracked_diff(content)
            changed = _all_lines(content)
            return self._finish(file, diff=diff, content=content, changed=changed)

        if file.status is FileStatus.DELETED:
            diff = self._git(["diff", "--no-ext-diff", "--no-color", "HEAD", "--", file.path])
            content = self._git(["show", f"HEAD:{file.path}"])
            return self._finish(file, diff=diff, content=content, changed=_all_lines(content))

        content = read_text(self.repo_root / file.path)
        paths = [file.old_path, file.path] if file.old_path else [file.path]
        staged = self._git(["diff", "--no-ext-diff", "--no-color", "-M", "--cached", "--", *paths])
        diff = staged or self._git(["diff", "--no-ext-diff", "--no-color", "--", file.path])
        return self._finish(file, diff=diff, content=content, changed=changed_positions(diff))

    def _load_historical(self, file: FileChange, target: CommitTarget | BranchTarget) -> FileChange:
        old_rev, new_rev = self._revision_pair(target)
        paths = [file.old_path, file.path] if file.old_path else [file.path]
        diff = self._git(["diff", "--no-ext-diff", "--no-color", "-M", old_rev, new_rev, "--", *paths])
        if file.status is FileStatus.DELETED:
            content = self._show_blob(old_rev, file.path)
            return self._finish(file, diff=diff, content=content, changed=_all_lines(content))
        content = self._show_blob(new_rev, file.path)
        return self._finish(file, diff=diff, content=content, changed=changed_positions(diff))

    def _show_blob(self, revision: str, path: str) -> str:
        try:
            return self._git(["show", f"{revision}:{path}"])
        except GitCommandError as exc:
            raise NotFound(f"{revision}:{path} not found") from exc

    def _finish(self, file: FileChange, *, diff: str, content: str, changed: frozenset[int]) -> FileChange:
        if looks_binary(content) or _is_binary_diff(diff):
            return replace(file, diff=diff, is_binary=True)
        additions, deletions = count_changes(diff)
        return replace(
            file,
            diff=diff,
            content=content,
            additions=additions,
            deletions=deletions,
            changed_lines=changed,
            first_change_line=min(changed) if changed else 0,
        )
