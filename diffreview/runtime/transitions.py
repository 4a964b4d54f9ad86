"""Pure state transitions for the review session.

Every function takes a ``ReviewState`` and returns a new one; nothing here
talks to git. ``ReviewSession`` decides which retrieval to start after a
transition and feeds the results back through the ``apply_*`` functions.
"""

from __future__ import annotations

from dataclasses import replace

from ..diff.changes import chunk_starts, next_chunk, prev_chunk
from ..git.models import (
    BranchInfo,
    BranchTarget,
    CommitInfo,
    CommitTarget,
    ComparisonMode,
    ComparisonTarget,
    FileChange,
)
from ..search.content import SearchResults, next_match, prev_match, scroll_target_for_line, search_content
from .screen import clamp_scroll, context_scroll_start, half_page, max_scroll_offset
from .state import FocusedPanel, ReviewState, ViewLevel

MODE_CYCLE = (ComparisonMode.DIRTY, ComparisonMode.COMMIT, ComparisonMode.BRANCH)
WRAPPED_FIRST_CHANGE = "wrapped to first change"
WRAPPED_LAST_CHANGE = "wrapped to last change"
SEARCH_WRAPPED = "search wrapped"


def _clamp_index(index: int, length: int) -> int:
    if length <= 0:
        return 0
    return max(0, min(index, length - 1))


def _reset_file_view(state: ReviewState) -> ReviewState:
    """Reset per-file view state: scroll, chunk cursor and search."""
    return replace(state, scroll_offset=0, chunk_index=-1, search=None, status_message="")


# Mode and hierarchy ---------------------------------------------------------


def cycle_mode(state: ReviewState) -> ReviewState:
    """Move to the next comparison mode and clear everything mode-specific."""
    next_mode = MODE_CYCLE[(MODE_CYCLE.index(state.mode) + 1) % len(MODE_CYCLE)]
    return set_mode(state, next_mode)


def set_mode(state: ReviewState, mode: ComparisonMode) -> ReviewState:
    view_level = ViewLevel.FILES if mode is ComparisonMode.DIRTY else ViewLevel.LIST
    return replace(
        state,
        mode=mode,
        view_level=view_level,
        focused_panel=FocusedPanel.FILES,
        commits=(),
        branches=(),
        list_index=0,
        selected_commit=None,
        selected_branch=None,
        files=(),
        file_index=0,
        scroll_offset=0,
        chunk_index=-1,
        search=None,
        loading=True,
        loading_path=None,
        error=None,
        loaded_paths=frozenset(),
        status_message="",
    )


def go_back(state: ReviewState) -> ReviewState:
    """Step one level up: diff → files → list; a no-op at the top."""
    if state.focused_panel is FocusedPanel.DIFF:
        return replace(state, focused_panel=FocusedPanel.FILES)
    if state.view_level is ViewLevel.FILES and state.mode is not ComparisonMode.DIRTY:
        return replace(
            state,
            view_level=ViewLevel.LIST,
            selected_commit=None,
            selected_branch=None,
            files=(),
            file_index=0,
            scroll_offset=0,
            chunk_index=-1,
            search=None,
            loading=False,
            loading_path=None,
            error=None,
            loaded_paths=frozenset(),
            status_message="",
        )
    return state


def select_list_entry(state: ReviewState) -> ReviewState:
    """Open the commit or branch under the list cursor as the files view."""
    if state.view_level is not ViewLevel.LIST:
        return state
    selected_commit: CommitInfo | None = None
    selected_branch: BranchInfo | None = None
    if state.mode is ComparisonMode.COMMIT:
        if not state.commits:
            return state
        selected_commit = state.commits[_clamp_index(state.list_index, len(state.commits))]
    elif state.mode is ComparisonMode.BRANCH:
        if not state.branches:
            return state
        selected_branch = state.branches[_clamp_index(state.list_index, len(state.branches))]
        if selected_branch.is_current:
            return replace(state, status_message=f"{selected_branch.name} is the current branch")
    else:
        return state

    return replace(
        state,
        view_level=ViewLevel.FILES,
        focused_panel=FocusedPanel.FILES,
        selected_commit=selected_commit,
        selected_branch=selected_branch,
        files=(),
        file_index=0,
        scroll_offset=0,
        chunk_index=-1,
        search=None,
        loading=True,
        loading_path=None,
        error=None,
        loaded_paths=frozenset(),
        status_message="",
    )


def open_target(state: ReviewState, target: ComparisonTarget) -> ReviewState:
    """Enter the files view for ``target`` directly, without picking it from a list.

    The commit or branch does not have to be among the listed entries; its
    list is left empty and is fetched again on the way back.
    """
    opened = set_mode(state, target.mode)
    if isinstance(target, CommitTarget):
        commit = CommitInfo(hash=target.hash, short_hash=target.hash[:7], author="", relative_date="", subject="")
        return replace(opened, view_level=ViewLevel.FILES, selected_commit=commit)
    if isinstance(target, BranchTarget):
        return replace(opened, view_level=ViewLevel.FILES, selected_branch=BranchInfo(name=target.name))
    return opened


def begin_refresh(state: ReviewState) -> ReviewState:
    """Drop loaded content so the current level is listed again."""
    if state.view_level is ViewLevel.LIST:
        return replace(state, loading=True, error=None, status_message="")
    return replace(
        _reset_file_view(state),
        files=(),
        loading=True,
        loading_path=None,
        error=None,
        loaded_paths=frozenset(),
    )


# Listing results -------------------------------------------------------------


def apply_commit_list(state: ReviewState, commits: list[CommitInfo], error: str | None) -> ReviewState:
    return replace(
        state,
        commits=tuple(commits),
        list_index=_clamp_index(state.list_index, len(commits)),
        loading=False,
        error=error,
    )


def apply_branch_list(state: ReviewState, branches: list[BranchInfo], error: str | None) -> ReviewState:
    return replace(
        state,
        branches=tuple(branches),
        list_index=_clamp_index(state.list_index, len(branches)),
        loading=False,
        error=error,
    )


def apply_file_list(state: ReviewState, files: list[FileChange], error: str | None) -> ReviewState:
    """Replace the file collection wholesale with a fresh, unloaded listing."""
    return replace(
        _reset_file_view(state),
        files=tuple(files),
        file_index=_clamp_index(state.file_index, len(files)),
        loading=False,
        loading_path=None,
        error=error,
        loaded_paths=frozenset(),
    )


# File selection and detail loads -------------------------------------------


def select_file(state: ReviewState, index: int) -> ReviewState:
    if not state.files:
        return state
    index = _clamp_index(index, len(state.files))
    if index == state.file_index:
        return state
    return replace(_reset_file_view(state), file_index=index, loading_path=None)


def begin_detail_load(state: ReviewState, path: str) -> ReviewState:
    return replace(state, loading_path=path)


def apply_detail_load(state: ReviewState, target: ComparisonTarget, loaded: FileChange) -> ReviewState:
    """Install a finished detail load if it still matches the current view.

    The result is discarded when the comparison target changed or another
    file has been selected since the load was started.
    """
    selected = state.selected_file
    if state.target != target or selected is None or selected.path != loaded.path:
        return state

    files = list(state.files)
    files[state.file_index] = loaded
    line_count = loaded.line_count
    message = f"failed to load {loaded.path}: {loaded.load_error}" if loaded.load_error else state.status_message
    return replace(
        state,
        files=tuple(files),
        loaded_paths=state.loaded_paths | {loaded.path},
        loading_path=None,
        scroll_offset=context_scroll_start(
            loaded.first_change_line,
            state.context_lines,
            line_count,
            state.viewport_height,
        ),
        chunk_index=-1,
        status_message=message,
    )


# Cursor and scrolling --------------------------------------------------------


def set_list_index(state: ReviewState, index: int) -> ReviewState:
    return replace(state, list_index=_clamp_index(index, state.list_length), status_message="")


def scroll_to(state: ReviewState, offset: int) -> ReviewState:
    return replace(state, scroll_offset=clamp_scroll(offset, state.content_line_count, state.viewport_height))


def scroll_by(state: ReviewState, delta: int) -> ReviewState:
    return scroll_to(state, state.scroll_offset + delta)


def scroll_half_page(state: ReviewState, direction: int) -> ReviewState:
    return scroll_by(state, direction * half_page(state.viewport_height))


def scroll_page(state: ReviewState, direction: int) -> ReviewState:
    return scroll_by(state, direction * max(1, state.viewport_height))


def scroll_to_bottom(state: ReviewState) -> ReviewState:
    return replace(state, scroll_offset=max_scroll_offset(state.content_line_count, state.viewport_height))


def move_cursor(state: ReviewState, delta: int) -> ReviewState:
    """Move whichever cursor the focused panel owns."""
    if state.view_level is ViewLevel.LIST:
        return set_list_index(state, state.list_index + delta)
    if state.focused_panel is FocusedPanel.DIFF:
        return scroll_by(state, delta)
    return select_file(state, state.file_index + delta)


def cursor_first(state: ReviewState) -> ReviewState:
    if state.view_level is ViewLevel.LIST:
        return set_list_index(state, 0)
    if state.focused_panel is FocusedPanel.DIFF:
        return scroll_to(state, 0)
    return select_file(state, 0)


def cursor_last(state: ReviewState) -> ReviewState:
    if state.view_level is ViewLevel.LIST:
        return set_list_index(state, state.list_length - 1)
    if state.focused_panel is FocusedPanel.DIFF:
        return scroll_to_bottom(state)
    return select_file(state, len(state.files) - 1)


def focus_panel(state: ReviewState, panel: FocusedPanel) -> ReviewState:
    if panel is FocusedPanel.DIFF and (state.view_level is not ViewLevel.FILES or not state.files):
        return state
    return replace(state, focused_panel=panel)


def toggle_focus(state: ReviewState) -> ReviewState:
    other = FocusedPanel.DIFF if state.focused_panel is FocusedPanel.FILES else FocusedPanel.FILES
    return focus_panel(state, other)


def set_viewport_height(state: ReviewState, height: int) -> ReviewState:
    resized = replace(state, viewport_height=max(1, height))
    return scroll_to(resized, resized.scroll_offset)


def toggle_help(state: ReviewState) -> ReviewState:
    return replace(state, show_help=not state.show_help)


# Chunks ----------------------------------------------------------------------


def current_chunk_starts(state: ReviewState) -> list[int]:
    selected = state.selected_file
    if selected is None:
        return []
    return chunk_starts(selected.changed_lines)


def jump_chunk(state: ReviewState, direction: int) -> ReviewState:
    """Move to the next (``direction > 0``) or previous chunk and scroll to it."""
    starts = current_chunk_starts(state)
    if not starts or direction == 0:
        return state
    count = len(starts)
    if direction > 0:
        index = next_chunk(state.chunk_index, count)
        wrapped = state.chunk_index >= count - 1
        message = WRAPPED_FIRST_CHANGE if wrapped else ""
    else:
        index = prev_chunk(state.chunk_index, count)
        wrapped = state.chunk_index <= 0
        message = WRAPPED_LAST_CHANGE if wrapped else ""
    return replace(
        state,
        chunk_index=index,
        scroll_offset=context_scroll_start(
            starts[index],
            state.context_lines,
            state.content_line_count,
            state.viewport_height,
        ),
        status_message=message,
    )


# Search ----------------------------------------------------------------------


def _scroll_to_current_match(state: ReviewState) -> ReviewState:
    if state.search is None:
        return state
    match = state.search.current_match
    if match is None:
        return state
    return replace(
        state,
        scroll_offset=scroll_target_for_line(
            match.line,
            state.context_lines,
            state.content_line_count,
            state.viewport_height,
        ),
    )


def apply_search(state: ReviewState, query: str) -> ReviewState:
    """Search the selected file's loaded content and jump to the first hit."""
    if not query:
        return clear_search(state)
    selected = state.selected_file
    content = selected.content if selected is not None else ""
    matches = tuple(search_content(content, query))
    searched = replace(
        state,
        search=SearchResults(query=query, matches=matches, current=0),
        status_message="" if matches else f"no matches for {query!r}",
    )
    return _scroll_to_current_match(searched)


def step_match(state: ReviewState, direction: int) -> ReviewState:
    results = state.search
    if results is None or results.count == 0 or direction == 0:
        return state
    if direction > 0:
        index = next_match(results.current, results.count)
        wrapped = results.current >= results.count - 1
    else:
        index = prev_match(results.current, results.count)
        wrapped = results.current <= 0
    stepped = replace(
        state,
        search=replace(results, current=index),
        status_message=SEARCH_WRAPPED if wrapped else "",
    )
    return _scroll_to_current_match(stepped)


def clear_search(state: ReviewState) -> ReviewState:
    return replace(state, search=None, status_message="")
