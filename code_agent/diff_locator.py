"""Unified diff helpers for anchoring PR review comments.

GitHub's review comment API takes a ``position``: a 1-indexed line offset into a
file's diff patch, counting every line of the patch including hunk headers.
This module maps new-file line numbers onto those positions.
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from code_agent.models import DiffHunk, DiffLine, DiffLineKind, PositionedComment, ReviewComment

_HUNK_RE = re.compile(r"^@@ -(?P<old_start>\d+)(?:,\d+)? \+(?P<new_start>\d+)(?:,\d+)? @@")
_NO_NEWLINE_MARKER = "\\"


def parse_hunk_header(line: str) -> tuple[int, int] | None:
    match = _HUNK_RE.match(line)
    if not match:
        return None
    return int(match.group("old_start")), int(match.group("new_start"))


def _split_lines(diff: str) -> list[str]:
    lines = (diff or "").split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    return lines


def _is_file_marker(line: str) -> bool:
    return line.startswith("---") or line.startswith("+++")


def _walk(diff: str) -> Iterator[tuple[int, str, DiffLineKind | None, int | None, tuple[int, int] | None]]:
    """Yield ``(position, text, kind, new_line, header)`` for every diff line.

    ``kind`` is ``None`` for hunk headers and file markers. ``new_line`` is only
    set on lines that exist in the new file.
    """
    counter = 0
    for position, raw in enumerate(_split_lines(diff), start=1):
        header = parse_hunk_header(raw)
        if header is not None:
            counter = header[1] - 1
            yield position, raw, None, None, header
            continue
        if _is_file_marker(raw):
            yield position, raw, None, None, None
            continue
        if raw.startswith("-"):
            yield position, raw, DiffLineKind.REMOVED, None, None
            continue
        # "\ No newline at end of file" takes a position but is not a file line;
        # counting it would anchor the next line number on the marker itself.
        if raw.startswith(_NO_NEWLINE_MARKER):
            yield position, raw, DiffLineKind.MARKER, None, None
            continue
        counter += 1
        kind = DiffLineKind.ADDED if raw.startswith("+") else DiffLineKind.CONTEXT
        yield position, raw, kind, counter, None


def locate_line_position(diff: str, line: int) -> int | None:
    """Return the 1-based diff position of new-file ``line``, or ``None``."""
    if line <= 0:
        return None
    for position, _, _, new_line, _ in _walk(diff):
        if new_line == line:
            return position
    return None


def new_line_at_position(diff: str, position: int) -> int | None:
    for current, _, _, new_line, _ in _walk(diff):
        if current == position:
            return new_line
    return None


def parse_diff(diff: str) -> list[DiffHunk]:
    hunks: list[DiffHunk] = []
    current: DiffHunk | None = None

    for position, raw, kind, new_line, header in _walk(diff):
        if header is not None:
            current = DiffHunk(header=raw, header_position=position, old_start=header[0], new_start=header[1])
            hunks.append(current)
            continue
        if kind is None:
            continue
        if current is None:
            # Content before the first header counts from line 1.
            current = DiffHunk()
            hunks.append(current)
        text = raw if kind == DiffLineKind.MARKER else raw[1:]
        current.lines.append(DiffLine(position=position, kind=kind, text=text, new_line=new_line))

    return hunks


def position_comments(
    diff: str, comments: list[ReviewComment]
) -> tuple[list[PositionedComment], list[ReviewComment]]:
    positioned: list[PositionedComment] = []
    unresolved: list[ReviewComment] = []
    for comment in comments:
        position = locate_line_position(diff, comment.line)
        if position is None:
            unresolved.append(comment)
            continue
        positioned.append(PositionedComment(line=comment.line, comment=comment.comment, position=position))
    return positioned, unresolved
