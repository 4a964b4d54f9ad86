"""Changed-line positions, change chunks, and chunk navigation.

Positions are 0-indexed rows of the *new* file. Deletions have no row of
their own there, so each deletion is anchored at the row that follows the
last unchanged line, i.e. "something was removed here".
"""

from __future__ import annotations

from collections.abc import Iterable

from .parser import match_hunk_header


def changed_positions(diff_text: str) -> frozenset[int]:
    """Return new-file positions touched by additions or anchored deletions."""
    positions: set[int] = set()
    current_line = 0

    for raw_line in diff_text.split("\n"):
        if raw_line.startswith("@@"):
            hunk = match_hunk_header(raw_line)
            if hunk is not None:
                current_line = hunk.new_start - 1
        elif raw_line.startswith("+") and not raw_line.startswith("+++"):
            positions.add(current_line)
            current_line += 1
        elif raw_line.startswith("-") and not raw_line.startswith("---"):
            positions.add(current_line)
        elif raw_line.startswith(" ") or raw_line == "":
            current_line += 1

    return frozenset(positions)


def count_changes(diff_text: str) -> tuple[int, int]:
    """Count ``(additions, deletions)`` in a diff body, ignoring file headers."""
    additions = 0
    deletions = 0
    for raw_line in diff_text.split("\n"):
        if raw_line.startswith("+") and not raw_line.startswith("+++"):
            additions += 1
        elif raw_line.startswith("-") and not raw_line.startswith("---"):
            deletions += 1
    return additions, deletions


def content_lines(content: str) -> list[str]:
    """Split ``content`` into rows on ``"\\n"`` only, without a trailing empty row."""
    lines = content.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def synthesize_untracked_diff(content: str) -> str:
    """Build a unified diff that declares every line of ``content`` as added."""
    lines = content_lines(content)
    if not lines:
        return ""
    out = [f"@@ -0,0 +1,{len(lines)} @@"]
    out.extend(f"+{line}" for line in lines)
    return "\n".join(out)


def chunk_starts(positions: Iterable[int]) -> list[int]:
    """Return start positions of maximal runs of contiguous positions."""
    starts: list[int] = []
    previous: int | None = None
    for position in sorted(set(positions)):
        if previous is None or position - previous > 1:
            starts.append(position)
        previous = position
    return starts


def next_chunk(current_index: int, chunk_count: int) -> int:
    """Advance chunk index with wraparound; ``-1`` means not on a chunk yet."""
    if chunk_count == 0:
        return current_index
    if current_index < 0:
        return 0
    if current_index >= chunk_count - 1:
        return 0
    return current_index + 1


def prev_chunk(current_index: int, chunk_count: int) -> int:
    """Step back one chunk, wrapping from the first to the last."""
    if chunk_count == 0:
        return current_index
    if current_index <= 0:
        return chunk_count - 1
    return current_index - 1
