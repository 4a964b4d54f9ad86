"""Scroll geometry helpers shared by chunk and search jumps."""

from __future__ import annotations


def max_scroll_offset(line_count: int, viewport_height: int) -> int:
    """Largest scroll start that still fills the viewport."""
    return max(0, line_count - max(1, viewport_height))


def clamp_scroll(offset: int, line_count: int, viewport_height: int) -> int:
    return max(0, min(offset, max_scroll_offset(line_count, viewport_height)))


def context_scroll_start(target_line: int, context_lines: int, line_count: int, viewport_height: int) -> int:
    """Scroll start placing ``target_line`` ``context_lines`` rows below the top."""
    return clamp_scroll(target_line - context_lines, line_count, viewport_height)


def half_page(viewport_height: int) -> int:
    return max(1, viewport_height // 2)
