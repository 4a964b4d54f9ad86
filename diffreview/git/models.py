"""Records describing comparison targets and the files changed under them."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union


class ComparisonMode(Enum):
    DIRTY = "dirty"
    COMMIT = "commit"
    BRANCH = "branch"

    @property
    def label(self) -> str:
        return self.value.capitalize()


@dataclass(frozen=True)
class DirtyTarget:
    """Uncommitted working-tree changes (staged and unstaged)."""

    mode = ComparisonMode.DIRTY

    def describe(self) -> str:
        return "working tree"


@dataclass(frozen=True)
class CommitTarget:
    """Changes introduced by a single commit against its first parent."""

    hash: str
    mode = ComparisonMode.COMMIT

    def describe(self) -> str:
        return f"commit {self.hash[:7]}"


@dataclass(frozen=True)
class BranchTarget:
    """Changes on the current head since its merge-base with ``name``."""

    name: str
    mode = ComparisonMode.BRANCH

    def describe(self) -> str:
        return f"HEAD vs {self.name}"


ComparisonTarget = Union[DirtyTarget, CommitTarget, BranchTarget]


class FileStatus(Enum):
    ADDED = "A"
    MODIFIED = "M"
    DELETED = "D"
    RENAMED = "R"
    UNTRACKED = "?"

    @property
    def code(self) -> str:
        return self.value

    @property
    def label(self) -> str:
        return self.name.capitalize()


@dataclass(frozen=True)
class FileChange:
    """One changed file; diff/content fields stay empty until lazily loaded.

    ``load_error`` holds the failure message when loading details failed.
    """

    path: str
    status: FileStatus
    old_path: str | None = None
    additions: int = 0
    deletions: int = 0
    diff: str = ""
    content: str = ""
    changed_lines: frozenset[int] = field(default_factory=frozenset)
    first_change_line: int = 0
    is_binary: bool = False
    load_error: str | None = None

    @property
    def line_count(self) -> int:
        return len(self.content.split("\n")) if self.content else 0


@dataclass(frozen=True)
class CommitInfo:
    hash: str
    short_hash: str
    author: str
    relative_date: str
    subject: str


@dataclass(frozen=True)
class BranchInfo:
    name: str
    is_current: bool = False
    relative_date: str = ""
    subject: str = ""
