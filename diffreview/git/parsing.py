"""Parsers for git's machine-readable listing formats.

These functions are pure: they take captured stdout and return records, so
they are tested without a repository.
"""

from __future__ import annotations

from .models import BranchInfo, CommitInfo, FileChange, FileStatus

FIELD_SEP = "\x1f"
LOG_FORMAT = "%H%x1f%h%x1f%an%x1f%ar%x1f%s"
BRANCH_FORMAT = "%(HEAD)%1f%(refname:short)%1f%(committerdate:relative)%1f%(contents:subject)"

_QUOTED_ESCAPES = {'"': '"', "\\": "\\", "t": "\t", "n": "\n", "r": "\r", "a": "\a", "b": "\b", "f": "\f", "v": "\v"}


def unquote_path(path_text: str) -> str:
    """Undo git's C-style quoting of unusual path names."""
    if len(path_text) < 2 or not (path_text.startswith('"') and path_text.endswith('"')):
        return path_text
    body = path_text[1:-1]
    out: list[str] = []
    raw_bytes = bytearray()
    index = 0
    while index < len(body):
        ch = body[index]
        if ch == "\\" and index + 1 < len(body):
            nxt = body[index + 1]
            octal = body[index + 1 : index + 4]
            if len(octal) == 3 and all(digit in "01234567" for digit in octal):
                raw_bytes.append(int(octal, 8) & 0xFF)
                index += 4
                continue
            if raw_bytes:
                out.append(raw_bytes.decode("utf-8", errors="replace"))
                raw_bytes.clear()
            out.append(_QUOTED_ESCAPES.get(nxt, nxt))
            index += 2
            continue
        if raw_bytes:
            out.append(raw_bytes.decode("utf-8", errors="replace"))
            raw_bytes.clear()
        out.append(ch)
        index += 1
    if raw_bytes:
        out.append(raw_bytes.decode("utf-8", errors="replace"))
    return "".join(out)


def classify_porcelain_status(code: str) -> FileStatus:
    """Map a two-letter porcelain code onto a single status.

    Precedence is fixed: added, deleted, renamed, untracked, then modified.
    """
    staged = code[0] if code else " "
    unstaged = code[1] if len(code) > 1 else " "
    if staged == "A" or unstaged == "A":
        return FileStatus.ADDED
    if staged == "D" or unstaged == "D":
        return FileStatus.DELETED
    if staged == "R" or unstaged == "R":
        return FileStatus.RENAMED
    if staged == "?" and unstaged == "?":
        return FileStatus.UNTRACKED
    return FileStatus.MODIFIED


def parse_porcelain_status(output: str) -> list[FileChange]:
    """Parse ``git status --porcelain=v1`` lines into unloaded file records.

    Rename entries use the ``old -> new`` form. Directory entries (trailing
    ``/``) and ignored entries are skipped.
    """
    files: list[FileChange] = []
    for line in output.split("\n"):
        line = line.rstrip("\r")
        if len(line) < 4 or not line.strip():
            continue
        code = line[:2]
        if code == "!!":
            continue
        path_text = line[3:]
        old_path: str | None = None
        if " -> " in path_text:
            old_text, _sep, new_text = path_text.partition(" -> ")
            old_path = unquote_path(old_text)
            path_text = new_text
        path = unquote_path(path_text)
        if not path or path.endswith("/"):
            continue
        files.append(FileChange(path=path, status=classify_porcelain_status(code), old_path=old_path))
    return files


def classify_name_status(code: str) -> FileStatus:
    """Map a ``git diff --name-status`` letter (with optional score) to a status."""
    letter = code[:1]
    if letter in ("A", "C"):
        return FileStatus.ADDED
    if letter == "D":
        return FileStatus.DELETED
    if letter == "R":
        return FileStatus.RENAMED
    return FileStatus.MODIFIED


def parse_name_status(output: str) -> list[FileChange]:
    """Parse NUL-delimited ``git diff --name-status -z`` output.

    Rename and copy records carry two paths, source first.
    """
    files: list[FileChange] = []
    tokens = output.split("\0")
    index = 0
    while index < len(tokens):
        code = tokens[index].strip()
        index += 1
        if not code:
            continue
        letter = code[:1]
        if letter in ("R", "C"):
            if index + 1 >= len(tokens):
                break
            old_path = tokens[index]
            new_path = tokens[index + 1]
            index += 2
            if not new_path:
                continue
            files.append(FileChange(path=new_path, status=classify_name_status(code), old_path=old_path or None))
            continue
        if index >= len(tokens):
            break
        path = tokens[index]
        index += 1
        if not path or path.endswith("/"):
            continue
        files.append(FileChange(path=path, status=classify_name_status(code)))
    return files


def parse_log(output: str) -> list[CommitInfo]:
    """Parse ``git log`` output produced with ``LOG_FORMAT``."""
    commits: list[CommitInfo] = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        parts = line.split(FIELD_SEP)
        if len(parts) < 5:
            continue
        full_hash, short_hash, author, relative_date = parts[:4]
        subject = FIELD_SEP.join(parts[4:])
        commits.append(
            CommitInfo(
                hash=full_hash.strip(),
                short_hash=short_hash.strip(),
                author=author,
                relative_date=relative_date,
                subject=subject,
            )
        )
    return commits


def parse_branches(output: str) -> list[BranchInfo]:
    """Parse ``git for-each-ref`` output produced with ``BRANCH_FORMAT``."""
    branches: list[BranchInfo] = []
    for line in output.split("\n"):
        if not line.strip():
            continue
        parts = line.split(FIELD_SEP)
        if len(parts) < 2:
            continue
        marker = parts[0]
        name = parts[1].strip()
        if not name:
            continue
        branches.append(
            BranchInfo(
                name=name,
                is_current=marker.strip() == "*",
                relative_date=parts[2] if len(parts) > 2 else "",
                subject=FIELD_SEP.join(parts[3:]) if len(parts) > 3 else "",
            )
        )
    return branches
