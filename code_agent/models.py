"""Core Pydantic domain models for code-agent."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DiffLineKind(str, Enum):
    CONTEXT = "context"
    ADDED = "added"
    REMOVED = "removed"
    MARKER = "marker"


class DiffLine(BaseModel):
    model_config = ConfigDict(extra="forbid")

    position: int = Field(ge=1)
    kind: DiffLineKind
    text: str
    new_line: int | None = None


class DiffHunk(BaseModel):
    model_config = ConfigDict(extra="forbid")

    header: str | None = None
    header_position: int | None = None
    old_start: int | None = None
    new_start: int | None = None
    lines: list[DiffLine] = Field(default_factory=list)

    @property
    def added_lines(self) -> list[str]:
        return [line.text for line in self.lines if line.kind == DiffLineKind.ADDED]

    @property
    def removed_lines(self) -> list[str]:
        return [line.text for line in self.lines if line.kind == DiffLineKind.REMOVED]


class ReviewComment(BaseModel):
    model_config = ConfigDict(extra="forbid")

    line: int = Field(gt=0)
    comment: str = Field(min_length=1)


class PositionedComment(ReviewComment):
    position: int = Field(ge=1)


class ChangeSpec(BaseModel):
    model_config = ConfigDict(extra="ignore")

    file: str | None = None
    original: str | None = None
    replacement: str | None = None


class Solution(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    analysis: str = ""
    files: list[str] = Field(default_factory=list)
    solution: str = ""
    changes: list[ChangeSpec] = Field(default_factory=list)
    commit_message: str | None = Field(default=None, alias="commitMessage")


class Issue(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    title: str
    body: str | None = None


class PullRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    number: int
    title: str = ""
    html_url: str = ""
    head_sha: str = ""
    head_ref: str | None = None
    base_ref: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _flatten_refs(cls, data: Any) -> Any:
        # GitHub nests refs as head/base objects; accept both shapes.
        if not isinstance(data, dict):
            return data
        flattened = dict(data)
        head = flattened.pop("head", None)
        base = flattened.pop("base", None)
        if isinstance(head, dict):
            flattened.setdefault("head_sha", head.get("sha") or "")
            flattened.setdefault("head_ref", head.get("ref"))
        if isinstance(base, dict):
            flattened.setdefault("base_ref", base.get("ref"))
        return flattened


class PullRequestFile(BaseModel):
    model_config = ConfigDict(extra="ignore")

    filename: str
    status: str = "modified"
    patch: str | None = None


class ReviewCounters(BaseModel):
    model_config = ConfigDict(extra="forbid")

    processed: int = 0
    skipped: int = 0
    errored: int = 0
    comments_posted: int = 0

    def summary(self, duration_seconds: float) -> str:
        return (
            f"PR Review completed in {duration_seconds:.2f}s: "
            f"{self.processed} processed, {self.skipped} skipped, {self.errored} errors "
            f"({self.comments_posted} comments posted)"
        )


class IssueFixResult(BaseModel):
    model_config = ConfigDict(extra="forbid")

    issue_number: int
    base_branch: str
    branch: str
    pull_number: int
    pull_url: str = ""
    changed_files: list[str] = Field(default_factory=list)
