"""Key-name dispatch onto review session actions.

Key names are already-decoded tokens (``"j"``, ``"down"``, ``"ctrl+d"``,
``"escape"``); translating terminal escape sequences into them is the
presentation layer's job.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass

from .session import ReviewSession
from .state import FocusedPanel, ViewLevel


@dataclass(frozen=True)
class KeyComboBinding:
    """Mapping from one or more key tokens to a single action callback."""

    combos: tuple[str, ...]
    handler: Callable[[], bool | None]
    description: str = ""


class KeyComboRegistry:
    """Small key-dispatch table with optional key normalization strategy."""

    def __init__(self, normalize: Callable[[str], str] | None = None) -> None:
        self._normalize = normalize if normalize is not None else self._identity
        self._handlers: dict[str, Callable[[], bool | None]] = {}
        self.bindings: list[KeyComboBinding] = []

    @staticmethod
    def _identity(key: str) -> str:
        return key

    def register_binding(self, binding: KeyComboBinding) -> KeyComboRegistry:
        """Register one binding, overwriting existing handlers for same combos."""
        for combo in binding.combos:
            self._handlers[self._normalize(combo)] = binding.handler
        self.bindings.append(binding)
        return self

    def register_bindings(self, *bindings: KeyComboBinding) -> KeyComboRegistry:
        for binding in bindings:
            self.register_binding(binding)
        return self

    def dispatch(self, key: str) -> bool | None:
        """Invoke bound handler for ``key``; ``None`` means the key is unbound."""
        handler = self._handlers.get(self._normalize(key))
        if handler is None:
            return None
        return handler()


def _normalize_key(key: str) -> str:
    # Single characters are case-sensitive (``n`` vs ``N``); named keys are not.
    return key if len(key) == 1 else key.lower()


def build_review_keymap(session: ReviewSession) -> KeyComboRegistry:
    """Bind the review key map to ``session``.

    ``n``/``N`` step through search matches while a search is active and
    through change chunks otherwise. ``escape`` clears an active search
    before it navigates back. Quitting is left to the caller.
    """

    def _diff_focused() -> bool:
        state = session.state
        return state.view_level is ViewLevel.FILES and state.focused_panel is FocusedPanel.DIFF

    def _next() -> bool:
        if session.state.search is not None:
            session.next_match()
        else:
            session.next_chunk()
        return True

    def _prev() -> bool:
        if session.state.search is not None:
            session.prev_match()
        else:
            session.prev_chunk()
        return True

    def _escape() -> bool:
        if session.state.search is not None:
            session.clear_search()
        else:
            session.go_back()
        return True

    def _focus_files() -> bool:
        if not _diff_focused():
            return False
        session.focus_panel(FocusedPanel.FILES)
        return True

    def _focus_diff() -> bool:
        if _diff_focused():
            return False
        session.focus_panel(FocusedPanel.DIFF)
        return True

    def _action(fn: Callable[[], None]) -> Callable[[], bool]:
        def _run() -> bool:
            fn()
            return True

        return _run

    registry = KeyComboRegistry(normalize=_normalize_key)
    registry.register_bindings(
        KeyComboBinding(("m",), _action(session.cycle_mode), "Cycle modes: Dirty → Commit → Branch"),
        KeyComboBinding(("escape",), _escape, "Clear search, or go back (diff → files → list)"),
        KeyComboBinding(("j", "down"), _action(lambda: session.move_cursor(1)), "Move down / scroll down"),
        KeyComboBinding(("k", "up"), _action(lambda: session.move_cursor(-1)), "Move up / scroll up"),
        KeyComboBinding(("g", "home"), _action(session.cursor_first), "Go to first item / top"),
        KeyComboBinding(("G", "end"), _action(session.cursor_last), "Go to last item / bottom"),
        KeyComboBinding(("tab",), _action(session.toggle_focus), "Switch between panels"),
        KeyComboBinding(("h", "left"), _focus_files, "Focus file list"),
        KeyComboBinding(("l", "right"), _focus_diff, "Focus diff"),
        KeyComboBinding(("enter",), _action(session.activate), "Select / open diff view"),
        KeyComboBinding(("n",), _next, "Next match, or next chunk"),
        KeyComboBinding(("N",), _prev, "Previous match, or previous chunk"),
        KeyComboBinding(("ctrl+d",), _action(lambda: session.scroll_half_page(1)), "Half page down"),
        KeyComboBinding(("ctrl+u",), _action(lambda: session.scroll_half_page(-1)), "Half page up"),
        KeyComboBinding(("ctrl+f", "pagedown"), _action(lambda: session.scroll_page(1)), "Full page down"),
        KeyComboBinding(("ctrl+b", "pageup"), _action(lambda: session.scroll_page(-1)), "Full page up"),
        KeyComboBinding(("r",), _action(session.refresh), "Refresh current view"),
        KeyComboBinding(("?",), _action(session.toggle_help), "Toggle help"),
    )
    return registry
