"""Run reporters: leveled records shared by drivers and components."""

from __future__ import annotations

import logging
import sys
from typing import Protocol, TextIO


class Reporter(Protocol):
    def info(self, message: str) -> None: ...

    def warning(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None: ...

    def error(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None: ...

    def notice(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None: ...


def _location_suffix(file: str | None, line: int | None) -> str:
    if not file:
        return ""
    if line:
        return f" [{file}:{line}]"
    return f" [{file}]"


class LoggingReporter:
    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("code_agent.run")

    def info(self, message: str) -> None:
        self._logger.info(message)

    def warning(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None:
        _ = title
        self._logger.warning("%s%s", message, _location_suffix(file, line))

    def error(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None:
        _ = title
        self._logger.error("%s%s", message, _location_suffix(file, line))

    def notice(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None:
        _ = title
        self._logger.info("NOTICE %s%s", message, _location_suffix(file, line))


def _escape_data(value: str) -> str:
    return value.replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def _escape_property(value: str) -> str:
    return _escape_data(value).replace(":", "%3A").replace(",", "%2C")


def format_workflow_command(
    command: str,
    message: str,
    *,
    file: str | None = None,
    line: int | None = None,
    title: str | None = None,
) -> str:
    properties: list[str] = []
    if title:
        properties.append(f"title={_escape_property(title)}")
    if file:
        properties.append(f"file={_escape_property(file)}")
        if line:
            properties.append(f"line={line}")
    props = f" {','.join(properties)}" if properties else ""
    return f"::{command}{props}::{_escape_data(message)}"


class GithubActionsReporter:
    """Emit GitHub Actions workflow commands so records surface as run annotations."""

    def __init__(self, stream: TextIO | None = None, *, default_title: str | None = None) -> None:
        self._stream = stream or sys.stdout
        self._default_title = default_title

    def _write(self, text: str) -> None:
        self._stream.write(text + "\n")
        self._stream.flush()

    def _annotate(self, command: str, message: str, file: str | None, line: int | None, title: str | None) -> None:
        self._write(format_workflow_command(command, message, file=file, line=line, title=title or self._default_title))

    def info(self, message: str) -> None:
        self._write(message)

    def warning(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None:
        self._annotate("warning", message, file, line, title)

    def error(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None:
        self._annotate("error", message, file, line, title)

    def notice(self, message: str, *, file: str | None = None, line: int | None = None, title: str | None = None) -> None:
        self._annotate("notice", message, file, line, title)
