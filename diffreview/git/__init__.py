"""Git collaborator: process runner, output parsers, models, and resolver."""

from __future__ import annotations

from .models import (
    BranchInfo,
    BranchTarget,
    CommitInfo,
    CommitTarget,
    ComparisonMode,
    ComparisonTarget,
    DirtyTarget,
    FileChange,
    FileStatus,
)
from .resolver import ComparisonResolver, read_text
from .runner import resolve_repo_root, run_git

__all__ = [
    "BranchInfo",
    "BranchTarget",
    "CommitInfo",
    "CommitTarget",
    "ComparisonMode",
    "ComparisonResolver",
    "ComparisonTarget",
    "DirtyTarget",
    "FileChange",
    "FileStatus",
    "read_text",
    "resolve_repo_root",
    "run_git",
]
