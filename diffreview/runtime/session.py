"""Review session: owns the current snapshot and drives git retrieval.

The session applies pure transitions, starts listing and detail loads on a
task runner, and installs their results when ``poll`` drains them. Listing
results are latest-request-wins; detail results are keyed by
``(path, target)`` and dropped if the view moved on while they ran.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import replace
from typing import Protocol

from ..git.models import ComparisonMode, ComparisonTarget, FileChange
from ..git.resolver import DEFAULT_COMMIT_LIMIT, ComparisonResolver
from . import transitions
from .state import DEFAULT_CONTEXT_LINES, DEFAULT_VIEWPORT_HEIGHT, FocusedPanel, ReviewState, ViewLevel
from .tasks import BackgroundTasks, TaskResult

logger = logging.getLogger(__name__)

StateListener = Callable[[ReviewState], None]

LIST_FILES = "files"
LIST_COMMITS = "commits"
LIST_BRANCHES = "branches"


class TaskRunner(Protocol):
    def submit(self, key, fn: Callable[[], object]) -> bool: ...

    def in_flight(self, key) -> bool: ...

    def drain_results(self) -> list[TaskResult]: ...


class ReviewSession:
    """Stateful front for the review state machine.

    All mutation happens on the caller's thread: inside action methods and
    inside ``poll``. Listeners receive every new snapshot.
    """

    def __init__(
        self,
        resolver: ComparisonResolver,
        *,
        tasks: TaskRunner | None = None,
        context_lines: int = DEFAULT_CONTEXT_LINES,
        viewport_height: int = DEFAULT_VIEWPORT_HEIGHT,
        commit_limit: int = DEFAULT_COMMIT_LIMIT,
    ) -> None:
        self.resolver = resolver
        self.tasks: TaskRunner = tasks if tasks is not None else BackgroundTasks()
        self.commit_limit = commit_limit
        self._state = ReviewState(context_lines=max(0, context_lines), viewport_height=max(1, viewport_height))
        self._listeners: list[StateListener] = []
        self._listing_request_id = 0

    @property
    def state(self) -> ReviewState:
        return self._state

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register ``listener`` for new snapshots; returns an unsubscribe callable."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _set_state(self, new_state: ReviewState) -> bool:
        if new_state == self._state:
            return False
        self._state = new_state
        for listener in list(self._listeners):
            listener(new_state)
        return True

    # Retrieval -------------------------------------------------------------

    def _request_listing(self) -> None:
        """Start the listing the current level needs; older listings become stale."""
        state = self._state
        self._listing_request_id += 1
        request_id = self._listing_request_id
        resolver = self.resolver

        if state.view_level is ViewLevel.LIST:
            if state.mode is ComparisonMode.COMMIT:
                limit = self.commit_limit
                self.tasks.submit((LIST_COMMITS, request_id), lambda: resolver.list_commits(limit))
            else:
                self.tasks.submit((LIST_BRANCHES, request_id), resolver.list_branches)
            return

        target = state.target
        if target is None:
            return
        self.tasks.submit((LIST_FILES, request_id, target), lambda: resolver.list_files(target))

    def _ensure_selected_loaded(self) -> None:
        """Start a detail load for the selected file unless it is loaded or loading."""
        state = self._state
        selected = state.selected_file
        target = state.target
        if selected is None or target is None or selected.path in state.loaded_paths:
            return
        key = ("details", selected.path, target)
        if not self.tasks.in_flight(key):
            resolver = self.resolver
            file = selected
            self.tasks.submit(key, lambda: resolver.load_details(file, target))
        self._set_state(transitions.begin_detail_load(self._state, selected.path))

    def poll(self) -> bool:
        """Apply finished retrieval results; return whether the state changed."""
        changed = False
        for result in self.tasks.drain_results():
            changed = self._apply_result(result) or changed
        return changed

    def settle(self, max_rounds: int = 64) -> None:
        """Drain and apply results until the runner has nothing left.

        Intended for ``SynchronousTasks``, where applying one result (a file
        listing) can immediately produce another (the first file's details).
        """
        for _round in range(max_rounds):
            results = self.tasks.drain_results()
            if not results:
                return
            for result in results:
                self._apply_result(result)

    def _apply_result(self, result: TaskResult) -> bool:
        key = result.key
        if not isinstance(key, tuple) or not key:
            return False
        kind = key[0]
        if kind == "details":
            _kind, path, target = key
            return self._apply_details(path, target, result)
        if key[1] != self._listing_request_id:
            logger.debug("discarding stale %s listing %s", kind, key[1])
            return False
        if result.error is not None:
            return self._set_state(replace(self._state, loading=False, error=str(result.error)))

        items, error = result.value  # type: ignore[misc]
        if kind == LIST_COMMITS:
            return self._set_state(transitions.apply_commit_list(self._state, items, error))
        if kind == LIST_BRANCHES:
            return self._set_state(transitions.apply_branch_list(self._state, items, error))

        target = key[2]
        if self._state.target != target:
            return False
        changed = self._set_state(transitions.apply_file_list(self._state, items, error))
        self._ensure_selected_loaded()
        return changed

    def _apply_details(self, path: str, target: ComparisonTarget, result: TaskResult) -> bool:
        state = self._state
        selected = state.selected_file
        if state.target != target or selected is None or selected.path != path:
            logger.debug("discarding superseded load of %s", path)
            return False
        if result.error is not None:
            loaded = replace(selected, load_error=str(result.error))
        elif not isinstance(result.value, FileChange):
            loaded = replace(selected, load_error=f"unexpected detail result for {path}")
        else:
            loaded = result.value
        return self._set_state(transitions.apply_detail_load(state, target, loaded))

    # Actions ---------------------------------------------------------------

    def start(self) -> None:
        """Begin the first listing for the initial (dirty) mode."""
        self._set_state(replace(self._state, loading=True, error=None))
        self._request_listing()

    def refresh(self) -> None:
        self._set_state(transitions.begin_refresh(self._state))
        self._request_listing()

    def cycle_mode(self) -> None:
        self._set_state(transitions.cycle_mode(self._state))
        self._request_listing()

    def set_mode(self, mode: ComparisonMode) -> None:
        self._set_state(transitions.set_mode(self._state, mode))
        self._request_listing()

    def go_back(self) -> None:
        before = self._state
        self._set_state(transitions.go_back(before))
        if before.view_level is ViewLevel.FILES and self._state.view_level is ViewLevel.LIST:
            # Drop any file listing still in flight for the closed target.
            self._listing_request_id += 1
            if self._state.list_length == 0:
                self._set_state(replace(self._state, loading=True))
                self._request_listing()

    def open_target(self, target: ComparisonTarget) -> None:
        """Show the files changed under ``target`` without choosing it from a list."""
        self._set_state(transitions.open_target(self._state, target))
        self._request_listing()

    def select_list_entry(self) -> None:
        before = self._state
        self._set_state(transitions.select_list_entry(before))
        if before.view_level is ViewLevel.LIST and self._state.view_level is ViewLevel.FILES:
            self._request_listing()

    def activate(self) -> None:
        """Enter: open a list entry, or move focus from the file list to the diff."""
        if self._state.view_level is ViewLevel.LIST:
            self.select_list_entry()
        elif self._state.focused_panel is FocusedPanel.FILES:
            self.focus_panel(FocusedPanel.DIFF)

    def select_file(self, index: int) -> None:
        self._set_state(transitions.select_file(self._state, index))
        self._ensure_selected_loaded()

    def move_cursor(self, delta: int) -> None:
        self._set_state(transitions.move_cursor(self._state, delta))
        self._ensure_selected_loaded()

    def cursor_first(self) -> None:
        self._set_state(transitions.cursor_first(self._state))
        self._ensure_selected_loaded()

    def cursor_last(self) -> None:
        self._set_state(transitions.cursor_last(self._state))
        self._ensure_selected_loaded()

    def focus_panel(self, panel: FocusedPanel) -> None:
        self._set_state(transitions.focus_panel(self._state, panel))

    def toggle_focus(self) -> None:
        self._set_state(transitions.toggle_focus(self._state))

    def scroll_by(self, delta: int) -> None:
        self._set_state(transitions.scroll_by(self._state, delta))

    def scroll_half_page(self, direction: int) -> None:
        self._set_state(transitions.scroll_half_page(self._state, direction))

    def scroll_page(self, direction: int) -> None:
        self._set_state(transitions.scroll_page(self._state, direction))

    def scroll_to_top(self) -> None:
        self._set_state(transitions.scroll_to(self._state, 0))

    def scroll_to_bottom(self) -> None:
        self._set_state(transitions.scroll_to_bottom(self._state))

    def set_viewport_height(self, height: int) -> None:
        self._set_state(transitions.set_viewport_height(self._state, height))

    def next_chunk(self) -> None:
        self._set_state(transitions.jump_chunk(self._state, 1))

    def prev_chunk(self) -> None:
        self._set_state(transitions.jump_chunk(self._state, -1))

    def search(self, query: str) -> None:
        self._set_state(transitions.apply_search(self._state, query))

    def next_match(self) -> None:
        self._set_state(transitions.step_match(self._state, 1))

    def prev_match(self) -> None:
        self._set_state(transitions.step_match(self._state, -1))

    def clear_search(self) -> None:
        self._set_state(transitions.clear_search(self._state))

    def toggle_help(self) -> None:
        self._set_state(transitions.toggle_help(self._state))


def open_session(resolver: ComparisonResolver, **kwargs) -> ReviewSession:
    """Create a session and kick off the initial working-tree listing."""
    session = ReviewSession(resolver, **kwargs)
    session.start()
    return session


