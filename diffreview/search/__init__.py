"""In-content search package exports."""

from __future__ import annotations

from .content import (
    SearchMatch,
    SearchResults,
    line_highlight_ranges,
    next_match,
    prev_match,
    scroll_target_for_line,
    search_content,
)

__all__ = [
    "SearchMatch",
    "SearchResults",
    "line_highlight_ranges",
    "next_match",
    "prev_match",
    "scroll_target_for_line",
    "search_content",
]
