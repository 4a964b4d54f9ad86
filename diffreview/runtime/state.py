from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from ..git.models import (
    BranchInfo,
    BranchTarget,
    CommitInfo,
    CommitTarget,
    ComparisonMode,
    ComparisonTarget,
    DirtyTarget,
    FileChange,
)
from ..search.content import SearchResults

DEFAULT_CONTEXT_LINES = 5
DEFAULT_VIEWPORT_HEIGHT = 40


class ViewLevel(Enum):
    LIST = "list"
    FILES = "files"


class FocusedPanel(Enum):
    FILES = "files"
    DIFF = "diff"


@dataclass(frozen=True)
class ReviewState:
    """Immutable snapshot of the review session.

    Transitions in ``runtime.transitions`` return new snapshots; the
    presentation layer only ever reads these.
    """

    mode: ComparisonMode = ComparisonMode.DIRTY
    view_level: ViewLevel = ViewLevel.FILES
    focused_panel: FocusedPanel = FocusedPanel.FILES
    commits: tuple[CommitInfo, ...] = ()
    branches: tuple[BranchInfo, ...] = ()
    list_index: int = 0
    selected_commit: CommitInfo | None = None
    selected_branch: BranchInfo | None = None
    files: tuple[FileChange, ...] = ()
    file_index: int = 0
    scroll_offset: int = 0
    chunk_index: int = -1
    search: SearchResults | None = None
    loading: bool = False
    loading_path: str | None = None
    error: str | None = None
    loaded_paths: frozenset[str] = field(default_factory=frozenset)
    viewport_height: int = DEFAULT_VIEWPORT_HEIGHT
    context_lines: int = DEFAULT_CONTEXT_LINES
    show_help: bool = False
    status_message: str = ""

    @property
    def target(self) -> ComparisonTarget | None:
        """Comparison target of the files view, or ``None`` while on a list."""
        if self.mode is ComparisonMode.DIRTY:
            return DirtyTarget()
        if self.view_level is not ViewLevel.FILES:
            return None
        if self.mode is ComparisonMode.COMMIT and self.selected_commit is not None:
            return CommitTarget(self.selected_commit.hash)
        if self.mode is ComparisonMode.BRANCH and self.selected_branch is not None:
            return BranchTarget(self.selected_branch.name)
        return None

    @property
    def selected_file(self) -> FileChange | None:
        if 0 <= self.file_index < len(self.files):
            return self.files[self.file_index]
        return None

    @property
    def list_length(self) -> int:
        if self.mode is ComparisonMode.COMMIT:
            return len(self.commits)
        if self.mode is ComparisonMode.BRANCH:
            return len(self.branches)
        return 0

    @property
    def is_empty(self) -> bool:
        """No changes to show, as opposed to a failed load."""
        if self.loading or self.error is not None:
            return False
        if self.view_level is ViewLevel.LIST:
            return self.list_length == 0
        return not self.files

    @property
    def selected_file_loaded(self) -> bool:
        selected = self.selected_file
        return selected is not None and selected.path in self.loaded_paths

    @property
    def content_line_count(self) -> int:
        selected = self.selected_file
        return selected.line_count if selected is not None else 0
