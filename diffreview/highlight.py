"""Syntax highlighting into colored token lines using Pygments.

Highlighting only decorates text that has already been parsed; any lexer or
style failure degrades to one plain token per line so the diff data itself
is never affected.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import PurePath

from pygments.lexers import TextLexer, get_lexer_for_filename
from pygments.styles import get_style_by_name
from pygments.util import ClassNotFound

from .diff.parser import DiffLine, DiffLineKind

logger = logging.getLogger(__name__)

DEFAULT_STYLE = "monokai"

_VALID_STYLES: set[str] = set()
_INVALID_STYLES: set[str] = set()


@dataclass(frozen=True)
class HighlightToken:
    text: str
    color: str | None = None  # "#rrggbb"
    bold: bool = False
    italic: bool = False


HighlightedLine = list[HighlightToken]


def plain_lines(text: str) -> list[HighlightedLine]:
    """One uncolored token per line, matching ``text.split("\\n")``."""
    return [[HighlightToken(line)] for line in text.split("\n")]


def _normalize_style(style: str) -> str:
    """Validate/canonicalize requested style name with cache-backed checks."""
    if style in _VALID_STYLES:
        return style
    if style in _INVALID_STYLES:
        return DEFAULT_STYLE
    try:
        get_style_by_name(style)
    except ClassNotFound:
        _INVALID_STYLES.add(style)
        return DEFAULT_STYLE
    _VALID_STYLES.add(style)
    return style


def _lexer_for_path(path: str, text: str):
    try:
        return get_lexer_for_filename(PurePath(path).name, text, stripnl=False, ensurenl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False, ensurenl=False)


def highlight(text: str, path: str, style: str = DEFAULT_STYLE) -> list[HighlightedLine]:
    """Tokenize ``text`` with the lexer chosen by ``path``'s filename.

    Returns exactly one token list per ``text.split("\\n")`` line.
    """
    expected = text.split("\n")
    try:
        style_cls = get_style_by_name(_normalize_style(style))
        lexer = _lexer_for_path(path, text)
        lines: list[HighlightedLine] = [[]]
        for token_type, value in lexer.get_tokens(text):
            token_style = style_cls.style_for_token(token_type)
            color = f"#{token_style['color']}" if token_style.get("color") else None
            pieces = value.split("\n")
            for piece_idx, piece in enumerate(pieces):
                if piece_idx > 0:
                    lines.append([])
                if piece:
                    lines[-1].append(
                        HighlightToken(
                            piece,
                            color=color,
                            bold=bool(token_style.get("bold")),
                            italic=bool(token_style.get("italic")),
                        )
                    )
    except Exception as exc:
        logger.debug("highlighting %s failed: %s", path, exc)
        return plain_lines(text)

    if len(lines) > len(expected) and not any(token.text for token in lines[-1]):
        lines = lines[: len(expected)]
    if len(lines) != len(expected):
        return plain_lines(text)
    return lines


def highlight_diff_lines(
    diff_lines: list[DiffLine],
    path: str,
    style: str = DEFAULT_STYLE,
) -> list[tuple[DiffLine, HighlightedLine]]:
    """Pair each diff row with display tokens.

    Context and addition rows are highlighted together so multi-line syntax
    (strings, comments) stays consistent; header and deletion rows stay plain.
    """
    plain = [(line, [HighlightToken(line.content)]) for line in diff_lines]
    visible = [line.content for line in diff_lines if line.kind not in (DiffLineKind.HEADER, DiffLineKind.DELETION)]
    if not visible:
        return plain

    highlighted = highlight("\n".join(visible), path, style)
    result: list[tuple[DiffLine, HighlightedLine]] = []
    highlight_idx = 0
    for line, plain_tokens in plain:
        if line.kind in (DiffLineKind.HEADER, DiffLineKind.DELETION):
            result.append((line, plain_tokens))
            continue
        tokens = highlighted[highlight_idx] if highlight_idx < len(highlighted) else plain_tokens
        highlight_idx += 1
        result.append((line, tokens or plain_tokens))
    return result
