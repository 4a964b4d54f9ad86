"""Unified-diff parsing into typed display rows and hunk records.

``parse_diff`` is total: any text, including garbage, yields a list.
Malformed hunk headers are emitted as header rows without renumbering.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from enum import Enum

logger = logging.getLogger(__name__)

HUNK_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")
_METADATA_PREFIXES = ("+++", "---", "diff --git", "new file", "index ")


class DiffLineKind(Enum):
    HEADER = "header"
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"


@dataclass(frozen=True)
class DiffLine:
    """One display row of a parsed diff.

    Additions carry only ``new_line_number``, deletions only
    ``old_line_number``, context rows both, headers neither.
    """

    kind: DiffLineKind
    content: str
    old_line_number: int | None = None
    new_line_number: int | None = None

    @property
    def is_change(self) -> bool:
        return self.kind in (DiffLineKind.ADDITION, DiffLineKind.DELETION)


@dataclass(frozen=True)
class DiffHunk:
    """Parsed ``@@`` header ranges; omitted counts default to 1."""

    old_start: int
    old_count: int
    new_start: int
    new_count: int


def match_hunk_header(line: str) -> DiffHunk | None:
    """Return hunk ranges for a ``@@`` header line, or ``None`` if malformed."""
    match = HUNK_RE.match(line)
    if match is None:
        return None
    return DiffHunk(
        old_start=int(match.group(1)),
        old_count=int(match.group(2) or "1"),
        new_start=int(match.group(3)),
        new_count=int(match.group(4) or "1"),
    )


def parse_hunks(diff_text: str) -> list[DiffHunk]:
    """Return all well-formed hunk headers in source order."""
    hunks: list[DiffHunk] = []
    for raw_line in diff_text.split("\n"):
        if not raw_line.startswith("@@"):
            continue
        hunk = match_hunk_header(raw_line)
        if hunk is not None:
            hunks.append(hunk)
    return hunks


def parse_diff(diff_text: str) -> list[DiffLine]:
    """Parse unified diff text into display rows.

    File-level metadata (``+++``/``---``/``diff --git``/``new file``/``index``)
    is dropped. Context rows are only produced once a hunk header has
    initialized a line counter, so stray blank lines ahead of the first hunk
    are skipped.
    """
    if not diff_text:
        return []

    lines: list[DiffLine] = []
    old_line = 0
    new_line = 0

    for raw_line in diff_text.split("\n"):
        if raw_line.startswith("@@"):
            hunk = match_hunk_header(raw_line)
            if hunk is not None:
                old_line = hunk.old_start
                new_line = hunk.new_start
            else:
                logger.debug("malformed hunk header kept without renumbering: %r", raw_line)
            lines.append(DiffLine(DiffLineKind.HEADER, raw_line))
            continue

        if raw_line.startswith(_METADATA_PREFIXES):
            continue

        if raw_line.startswith("+"):
            lines.append(DiffLine(DiffLineKind.ADDITION, raw_line[1:], new_line_number=new_line))
            new_line += 1
        elif raw_line.startswith("-"):
            lines.append(DiffLine(DiffLineKind.DELETION, raw_line[1:], old_line_number=old_line))
            old_line += 1
        elif raw_line.startswith(" ") or raw_line == "":
            if old_line > 0 or new_line > 0:
                lines.append(
                    DiffLine(
                        DiffLineKind.CONTEXT,
                        raw_line[1:],
                        old_line_number=old_line,
                        new_line_number=new_line,
                    )
                )
                old_line += 1
                new_line += 1

    return lines
