"""Command-line front door for diffreview.

Parses CLI options, resolves the repository, and drives a review session
synchronously to print a headless report: the changed-file list, one file's
parsed diff, and optional search hits.
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from .diff.changes import chunk_starts
from .diff.parser import DiffLineKind, parse_diff
from .git.models import BranchTarget, CommitTarget, ComparisonMode, ComparisonTarget, DirtyTarget, FileChange
from .git.resolver import ComparisonResolver
from .highlight import HighlightedLine, HighlightToken, highlight_diff_lines
from .logs import configure_logging
from .runtime.config import ReviewSettings, load_settings
from .runtime.session import ReviewSession
from .runtime.state import ReviewState, ViewLevel
from .runtime.tasks import SynchronousTasks
from .search.content import line_highlight_ranges

logger = logging.getLogger(__name__)

_RESET = "\033[0m"
_ADDED_SGR = "\033[32m"
_REMOVED_SGR = "\033[31m"
_HEADER_SGR = "\033[36m"
_DIM_SGR = "\033[90m"
_MATCH_SGR = "\033[7m"


def _positive_int(value: str) -> int:
    """argparse type for positive integer values."""
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed <= 0:
        raise argparse.ArgumentTypeError("value must be >= 1")
    return parsed


def _nonnegative_int(value: str) -> int:
    try:
        parsed = int(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid integer value: {value!r}") from exc
    if parsed < 0:
        raise argparse.ArgumentTypeError("value must be >= 0")
    return parsed


def _paint(text: str, sgr: str, color: bool) -> str:
    return f"{sgr}{text}{_RESET}" if color and text else text


def _token_sgr(token: HighlightToken) -> str:
    codes: list[str] = []
    if token.bold:
        codes.append("1")
    if token.italic:
        codes.append("3")
    if token.color and len(token.color) == 7:
        red = int(token.color[1:3], 16)
        green = int(token.color[3:5], 16)
        blue = int(token.color[5:7], 16)
        codes.append(f"38;2;{red};{green};{blue}")
    return f"\033[{';'.join(codes)}m" if codes else ""


def render_tokens(tokens: HighlightedLine) -> str:
    out: list[str] = []
    for token in tokens:
        sgr = _token_sgr(token)
        out.append(f"{sgr}{token.text}{_RESET}" if sgr else token.text)
    return "".join(out)


def format_file_row(file: FileChange, selected: bool = False, color: bool = False) -> str:
    """One file-list row: status code, change counts, and path."""
    marker = ">" if selected else " "
    counts = f"{_paint(f'+{file.additions}', _ADDED_SGR, color)} {_paint(f'-{file.deletions}', _REMOVED_SGR, color)}"
    path = f"{file.old_path} -> {file.path}" if file.old_path else file.path
    return f"{marker} {file.status.code} {counts} {path}"


def render_file_list(state: ReviewState, color: bool = False) -> str:
    if state.error is not None:
        return f"error: {state.error}\n"
    if state.is_empty:
        return "No changes detected\n"
    rows = [format_file_row(file, idx == state.file_index, color) for idx, file in enumerate(state.files)]
    return "\n".join(rows) + "\n"


def render_diff(file: FileChange, color: bool = False, style: str = "monokai") -> str:
    """Render parsed diff rows with old/new line-number gutters."""
    if file.load_error:
        return f"Failed to load: {file.load_error}\n"
    if file.is_binary:
        return "Binary file not shown\n"
    diff_lines = parse_diff(file.diff)
    if not diff_lines:
        return "No diff available for this file\n"
    rows = highlight_diff_lines(diff_lines, file.path, style) if color else [(line, []) for line in diff_lines]
    width = max(4, len(str(max(len(diff_lines), file.line_count))) + 1)
    out: list[str] = []
    for line, tokens in rows:
        if line.kind is DiffLineKind.HEADER:
            out.append(_paint(line.content, _HEADER_SGR, color))
            continue
        old_no = "" if line.old_line_number is None else str(line.old_line_number)
        new_no = "" if line.new_line_number is None else str(line.new_line_number)
        gutter = _paint(f"{old_no:>{width}} {new_no:>{width}}", _DIM_SGR, color)
        if line.kind is DiffLineKind.ADDITION:
            body = _paint("+" + line.content, _ADDED_SGR, color)
        elif line.kind is DiffLineKind.DELETION:
            body = _paint("-" + line.content, _REMOVED_SGR, color)
        else:
            body = " " + (render_tokens(tokens) if color and tokens else line.content)
        out.append(f"{gutter} {body}")
    return "\n".join(out) + "\n"


def render_search(state: ReviewState, color: bool = False) -> str:
    results = state.search
    selected = state.selected_file
    if results is None or selected is None:
        return ""
    if not results.matches:
        return f"no matches for {results.query!r}\n"
    content_lines = selected.content.split("\n")
    out = [f"{results.count} matches for {results.query!r}"]
    seen: set[int] = set()
    for match in results.matches:
        if match.line in seen:
            continue
        seen.add(match.line)
        text = content_lines[match.line]
        if color:
            pieces: list[str] = []
            cursor = 0
            for start, end, _current in line_highlight_ranges(results.matches, match.line):
                if start < cursor:
                    continue
                pieces.append(text[cursor:start])
                pieces.append(_paint(text[start:end], _MATCH_SGR, True))
                cursor = end
            pieces.append(text[cursor:])
            text = "".join(pieces)
        out.append(f"{match.line + 1}:{match.start + 1}: {text}")
    return "\n".join(out) + "\n"


def render_list(state: ReviewState) -> str:
    if state.error is not None:
        return f"error: {state.error}\n"
    if state.mode is ComparisonMode.COMMIT:
        if not state.commits:
            return "No commits\n"
        return "".join(
            f"{commit.short_hash} {commit.relative_date:>16} {commit.author}: {commit.subject}\n"
            for commit in state.commits
        )
    if not state.branches:
        return "No branches\n"
    return "".join(
        f"{'*' if branch.is_current else ' '} {branch.name} ({branch.relative_date}) {branch.subject}\n"
        for branch in state.branches
    )


def _open_target(session: ReviewSession, target: ComparisonTarget) -> None:
    """Drive the session to the files view for ``target``."""
    if not isinstance(target, BranchTarget):
        session.open_target(target)
        session.settle()
        return

    session.set_mode(ComparisonMode.BRANCH)
    session.settle()
    state = session.state
    names = [branch.name for branch in state.branches]
    if target.name not in names:
        raise SystemExit(f"Not found: {target.describe()}")
    session.move_cursor(names.index(target.name) - state.list_index)
    session.select_list_entry()
    if session.state.view_level is not ViewLevel.FILES:
        raise SystemExit(session.state.status_message or f"Cannot open {target.describe()}")
    session.settle()


def build_report(
    resolver: ComparisonResolver,
    target: ComparisonTarget,
    settings: ReviewSettings,
    file_path: str | None = None,
    query: str | None = None,
    color: bool = False,
) -> str:
    """Run a synchronous session for ``target`` and render the report text."""
    session = ReviewSession(
        resolver,
        tasks=SynchronousTasks(),
        context_lines=settings.context_lines,
        commit_limit=settings.commit_limit,
    )
    _open_target(session, target)
    state = session.state
    out = [f"# {target.describe()}\n", render_file_list(state, color)]

    if file_path is not None:
        index = next((idx for idx, file in enumerate(state.files) if file.path == file_path), None)
        if index is None:
            raise SystemExit(f"File not changed under {target.describe()}: {file_path}")
        session.select_file(index)
        session.settle()
        state = session.state
        selected = state.selected_file
        if selected is None:
            raise SystemExit(f"File not changed under {target.describe()}: {file_path}")
        chunks = chunk_starts(selected.changed_lines)
        out.append(f"\n# {selected.path} [{selected.status.label}] +{selected.additions} -{selected.deletions}")
        out.append(f" | {len(chunks)} chunks\n" if chunks else "\n")
        out.append(render_diff(selected, color, settings.style))
        if query:
            session.search(query)
            out.append("\n" + render_search(session.state, color))
    return "".join(out)


def main(argv: list[str] | None = None) -> None:
    """Parse CLI arguments and print a review report for a repository."""
    parser = argparse.ArgumentParser(description="Review git changes: working tree, a commit, or a branch diff.")
    parser.add_argument("path", nargs="?", default=None, help="Repository path. Defaults to current directory.")
    target_group = parser.add_mutually_exclusive_group()
    target_group.add_argument("--commit", metavar="REV", help="Show changes introduced by one commit.")
    target_group.add_argument("--branch", metavar="NAME", help="Show HEAD changes since its merge-base with NAME.")
    target_group.add_argument("--list-commits", action="store_true", help="List recent commits and exit.")
    target_group.add_argument("--list-branches", action="store_true", help="List branches and exit.")
    parser.add_argument("--file", metavar="PATH", help="Print the parsed diff for one changed file.")
    parser.add_argument("--search", metavar="QUERY", help="Search the selected file's content (requires --file).")
    parser.add_argument("--context-lines", type=_nonnegative_int, default=None, help="Rows kept above jump targets.")
    parser.add_argument("--limit", type=_positive_int, default=None, help="Number of commits to list.")
    parser.add_argument("--style", default=None, help="Pygments style name for highlighting.")
    parser.add_argument("--no-color", action="store_true", help="Disable color output even on TTY.")
    parser.add_argument("--log-level", default="warning", help="Log level (debug, info, warning, error).")
    parser.add_argument("--log-file", type=Path, default=None, help="Write logs to this file instead of stderr.")
    args = parser.parse_args(argv)

    if args.search and not args.file:
        raise SystemExit("--search requires --file.")

    configure_logging(args.log_level, args.log_file)
    settings = load_settings()
    settings = ReviewSettings(
        context_lines=args.context_lines if args.context_lines is not None else settings.context_lines,
        commit_limit=args.limit if args.limit is not None else settings.commit_limit,
        git_timeout_seconds=settings.git_timeout_seconds,
        style=args.style or settings.style,
    )

    path = Path(args.path) if args.path else Path.cwd()
    if not path.exists():
        raise SystemExit(f"Path not found: {path}")
    resolver = ComparisonResolver.discover(path, settings.git_timeout_seconds)
    if resolver is None:
        raise SystemExit(f"Not a git repository: {path}")
    logger.info("reviewing %s", resolver.repo_root)

    color = not args.no_color and sys.stdout.isatty()

    if args.list_commits or args.list_branches:
        session = ReviewSession(resolver, tasks=SynchronousTasks(), commit_limit=settings.commit_limit)
        session.set_mode(ComparisonMode.COMMIT if args.list_commits else ComparisonMode.BRANCH)
        session.settle()
        if session.state.view_level is not ViewLevel.LIST:
            raise SystemExit(f"Cannot list {session.state.mode.label.lower()} entries")
        sys.stdout.write(render_list(session.state))
        return

    target: ComparisonTarget
    if args.commit:
        full_hash = resolver.resolve_commit(args.commit)
        if full_hash is None:
            raise SystemExit(f"Not a commit: {args.commit}")
        target = CommitTarget(full_hash)
    elif args.branch:
        target = BranchTarget(args.branch)
    else:
        target = DirtyTarget()
    sys.stdout.write(build_report(resolver, target, settings, args.file, args.search, color))


if __name__ == "__main__":
    main()
