from __future__ import annotations

from dataclasses import dataclass

from ..runtime.screen import context_scroll_start


@dataclass(frozen=True)
class SearchMatch:
    line: int  # 0-based
    start: int  # 0-based column
    length: int

    @property
    def end(self) -> int:
        return self.start + self.length


@dataclass(frozen=True)
class SearchResults:
    """Matches for one query over one file's content plus the current hit."""

    query: str
    matches: tuple[SearchMatch, ...] = ()
    current: int = 0

    @property
    def count(self) -> int:
        return len(self.matches)

    @property
    def current_match(self) -> SearchMatch | None:
        if not self.matches or not (0 <= self.current < len(self.matches)):
            return None
        return self.matches[self.current]


def search_content(content: str, query: str) -> list[SearchMatch]:
    """Find every literal, case-sensitive occurrence of ``query`` per line.

    The scan cursor moves one character past each hit start, so runs such as
    ``"aa"`` in ``"aaa"`` report both overlapping positions.
    """
    if not query or not content:
        return []

    matches: list[SearchMatch] = []
    length = len(query)
    for line_idx, line in enumerate(content.split("\n")):
        cursor = 0
        while True:
            found = line.find(query, cursor)
            if found < 0:
                break
            matches.append(SearchMatch(line=line_idx, start=found, length=length))
            cursor = found + 1
    return matches


def next_match(current_index: int, match_count: int) -> int:
    if match_count == 0:
        return current_index
    if current_index < 0 or current_index >= match_count - 1:
        return 0
    return current_index + 1


def prev_match(current_index: int, match_count: int) -> int:
    if match_count == 0:
        return current_index
    if current_index <= 0:
        return match_count - 1
    return current_index - 1


def scroll_target_for_line(line: int, context_lines: int, line_count: int, viewport_height: int) -> int:
    """Scroll offset that shows ``line`` with ``context_lines`` rows above it."""
    return context_scroll_start(line, context_lines, line_count, viewport_height)


def line_highlight_ranges(
    matches: tuple[SearchMatch, ...] | list[SearchMatch],
    line: int,
    current_index: int | None = None,
) -> list[tuple[int, int, bool]]:
    """Return ``(start, end, is_current)`` spans for overlays on one line."""
    spans: list[tuple[int, int, bool]] = []
    for match_idx, match in enumerate(matches):
        if match.line != line:
            continue
        spans.append((match.start, match.end, match_idx == current_index))
    return spans
