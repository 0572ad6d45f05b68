"""Extraction and validation of structured JSON from model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

from pydantic import ValidationError

from code_agent.models import ReviewComment, Solution
from code_agent.reporting import Reporter

_FENCED_JSON_RE = re.compile(r"```json[ \t]*\r?\n(.*?)\r?\n[ \t]*```", re.DOTALL)
_FENCE_MARKER_RE = re.compile(r"```json|```")
_INVALID_BRANCH_RE = re.compile(r"[\s~^:?*\[\\]|\.\.|@\{|//")
logger = logging.getLogger(__name__)


class AIResponseMalformedError(ValueError):
    """Model output could not be turned into the structure a run depends on."""

    def __init__(self, message: str, *, raw_text: str | None = None) -> None:
        super().__init__(message)
        self.raw_text = raw_text


def _warn(reporter: Reporter | None, message: str) -> None:
    if reporter is not None:
        reporter.warning(message)
    else:
        logger.warning(message)


def _is_line_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return value > 0
    if isinstance(value, float):
        return value.is_integer() and value > 0
    return False


def parse_review_list(text: str | None, *, reporter: Reporter | None = None) -> list[ReviewComment] | None:
    """Parse a JSON array of ``{line, comment}`` objects.

    Invalid entries are dropped silently. Returns ``None`` when the payload as a
    whole is unusable so the caller can move on to the next file.
    """
    if not text or not text.strip():
        _warn(reporter, "Invalid review format received: empty response")
        return None
    try:
        payload = json.loads(text.strip())
    except json.JSONDecodeError as exc:
        _warn(reporter, f"Invalid review format received: {exc}")
        return None
    if not isinstance(payload, list):
        _warn(reporter, "Invalid review format received: Response is not an array")
        return None

    reviews: list[ReviewComment] = []
    for item in payload:
        if not isinstance(item, dict):
            continue
        line = item.get("line")
        comment = item.get("comment")
        if not _is_line_number(line):
            continue
        if not isinstance(comment, str) or not comment:
            continue
        reviews.append(ReviewComment(line=int(line), comment=comment))
    return reviews


def extract_json_object(text: str) -> str | None:
    """Return the first balanced top-level ``{...}`` region of ``text``.

    Braces inside JSON string literals are ignored. Returns ``None`` when there
    is no opening brace or it is never closed.
    """
    start = text.find("{")
    if start < 0:
        return None

    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[start : index + 1]
    return None


def extract_json_candidate(text: str) -> str:
    fenced = _FENCED_JSON_RE.search(text)
    if fenced:
        candidate = fenced.group(1)
    else:
        candidate = extract_json_object(text) or text
    return _FENCE_MARKER_RE.sub("", candidate).strip()


def parse_solution(text: str | None) -> Solution:
    """Parse a fix solution object, raising ``AIResponseMalformedError`` on any failure."""
    if not text or not text.strip():
        raise AIResponseMalformedError("Failed to parse solution from AI response: empty response", raw_text=text)

    candidate = extract_json_candidate(text)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.debug("Unparseable solution candidate: %r", candidate[:500])
        raise AIResponseMalformedError(f"Failed to parse solution from AI response: {exc}", raw_text=text) from exc
    if not isinstance(payload, dict):
        raise AIResponseMalformedError("Failed to parse solution from AI response: expected a JSON object", raw_text=text)

    try:
        return Solution.model_validate(payload)
    except ValidationError as exc:
        raise AIResponseMalformedError(f"Solution failed validation: {exc}", raw_text=text) from exc


def is_valid_branch_name(name: str) -> bool:
    if not name or name.startswith("-") or name.startswith("/"):
        return False
    if name.endswith("/") or name.endswith(".") or name.endswith(".lock"):
        return False
    return not _INVALID_BRANCH_RE.search(name)


def parse_branch_name(text: str | None) -> str | None:
    """Read ``{"branch": "<name>"}``; any problem yields ``None``."""
    if not text or not text.strip():
        return None
    candidate = extract_json_candidate(text)
    try:
        payload = json.loads(candidate)
    except json.JSONDecodeError as exc:
        logger.warning("Failed to parse branch info response: %s", exc)
        return None
    if not isinstance(payload, dict):
        return None
    branch = payload.get("branch")
    if not isinstance(branch, str):
        return None
    branch = branch.strip()
    if not is_valid_branch_name(branch):
        if branch:
            logger.warning("Ignoring invalid branch name from AI response: %r", branch)
        return None
    return branch
