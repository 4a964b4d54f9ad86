"""Diff text parsing and change tracking.

Re-exports the parser and tracker so callers can import from
``diffreview.diff`` without depending on module layout.
"""

from __future__ import annotations

from .changes import (
    changed_positions,
    chunk_starts,
    count_changes,
    next_chunk,
    prev_chunk,
    synthesize_untracked_diff,
)
from .parser import HUNK_RE, DiffHunk, DiffLine, DiffLineKind, match_hunk_header, parse_diff, parse_hunks

__all__ = [
    "DiffHunk",
    "DiffLine",
    "DiffLineKind",
    "HUNK_RE",
    "changed_positions",
    "chunk_starts",
    "count_changes",
    "match_hunk_header",
    "next_chunk",
    "parse_diff",
    "parse_hunks",
    "prev_chunk",
    "synthesize_untracked_diff",
]
