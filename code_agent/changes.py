"""Apply AI-proposed file edits to a working tree."""

from __future__ import annotations

from pathlib import Path

from code_agent.models import ChangeSpec
from code_agent.reporting import Reporter


def apply_change(content: str, change: ChangeSpec) -> str:
    """Return ``content`` with ``change`` applied.

    With an ``original`` snippet only its first literal occurrence is replaced;
    when the snippet is absent from ``content`` nothing changes. Without one the
    replacement becomes the whole content.
    """
    replacement = change.replacement or ""
    if change.original:
        return content.replace(change.original, replacement, 1)
    return replacement


def _read_text(path: Path) -> str:
    with path.open(encoding="utf-8", newline="") as handle:
        return handle.read()


def _write_text(path: Path, content: str) -> None:
    with path.open("w", encoding="utf-8", newline="") as handle:
        handle.write(content)


def apply_changes(changes: list[ChangeSpec], root: str | Path, reporter: Reporter) -> list[Path]:
    """Apply ``changes`` in order under ``root`` and return the files written, once each.

    Incomplete specs and missing targets are skipped. I/O errors propagate.
    """
    base = Path(root)
    written: list[Path] = []
    for change in changes:
        if not change.file or not change.replacement:
            reporter.info(f"Skipping invalid change for file: {change.file}")
            continue

        path = base / change.file
        if not path.is_file():
            reporter.info(f"File does not exist: {change.file}")
            continue

        try:
            content = _read_text(path)
            _write_text(path, apply_change(content, change))
        except OSError as exc:
            reporter.error(f"Error updating file {change.file}: {exc}", file=change.file)
            raise
        if path not in written:
            written.append(path)
        reporter.info(f"Updated file: {change.file}")
    return written
