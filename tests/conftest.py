from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from code_agent.models import Issue, PullRequest, PullRequestFile
from code_agent.vcs import GitCommandError, GitRepository


class RecordingReporter:
    def __init__(self) -> None:
        self.records: list[tuple[str, str, dict[str, Any]]] = []

    def _record(self, level: str, message: str, **props: Any) -> None:
        self.records.append((level, message, props))

    def info(self, message: str) -> None:
        self._record("info", message)

    def warning(self, message: str, **props: Any) -> None:
        self._record("warning", message, **props)

    def error(self, message: str, **props: Any) -> None:
        self._record("error", message, **props)

    def notice(self, message: str, **props: Any) -> None:
        self._record("notice", message, **props)

    def messages(self, level: str) -> list[str]:
        return [message for recorded, message, _ in self.records if recorded == level]


class ScriptedProvider:
    """Completion provider returning queued responses (or raising queued exceptions)."""

    def __init__(self, *responses: str | Exception, model: str = "fake-model") -> None:
        self.responses = list(responses)
        self.prompts: list[str] = []
        self._model = model

    def model_id(self) -> str:
        return self._model

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        self.prompts.append(prompt)
        if not self.responses:
            raise AssertionError("unexpected completion request")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


class FakeTracker:
    def __init__(
        self,
        *,
        files: list[dict[str, Any]] | None = None,
        pull: dict[str, Any] | None = None,
        issue: dict[str, Any] | None = None,
    ) -> None:
        self.files = [PullRequestFile.model_validate(item) for item in files or []]
        self.pull = PullRequest.model_validate(pull or {"number": 7, "title": "Add feature", "head": {"sha": "abc123"}})
        self.issue = Issue.model_validate(issue or {"number": 42, "title": "Crash on save", "body": "Found on develop"})
        self.review_comments: list[dict[str, Any]] = []
        self.issue_comments: list[tuple[int, str]] = []
        self.created_pulls: list[dict[str, Any]] = []
        self.fail_review_comment_for: dict[str, Exception] = {}

    async def get_issue(self, number: int) -> Issue:
        return self.issue.model_copy(update={"number": number})

    async def get_pull(self, number: int) -> PullRequest:
        return self.pull

    async def list_pull_files(self, number: int) -> list[PullRequestFile]:
        return list(self.files)

    async def create_pull(self, *, title: str, body: str, head: str, base: str) -> PullRequest:
        self.created_pulls.append({"title": title, "body": body, "head": head, "base": base})
        return PullRequest(number=99, title=title, html_url="https://github.com/acme/repo/pull/99")

    async def create_issue_comment(self, number: int, body: str) -> None:
        self.issue_comments.append((number, body))

    async def create_review_comment(self, number: int, *, body: str, commit_id: str, path: str, position: int) -> None:
        failure = self.fail_review_comment_for.get(path)
        if failure is not None:
            raise failure
        self.review_comments.append(
            {"number": number, "body": body, "commit_id": commit_id, "path": path, "position": position}
        )


class FakeGit(GitRepository):
    """Records git primitives; branch fallback logic is inherited."""

    def __init__(self, path: str | Path = ".", *, fail: set[str] | None = None) -> None:
        super().__init__(path)
        self.calls: list[tuple[str, ...]] = []
        self.fail = fail or set()

    def _call(self, *call: str) -> None:
        self.calls.append(call)
        key = " ".join(call)
        for pattern in self.fail:
            if key.startswith(pattern):
                raise GitCommandError(list(call), 128, f"fatal: {pattern} refused")

    async def fetch_branch(self, remote: str, branch: str, *, depth: int | None = 1) -> None:
        self._call("fetch", remote, branch)

    async def create_branch(self, branch: str, start_point: str | None = None) -> None:
        if start_point:
            self._call("checkout", branch, start_point)
        else:
            self._call("checkout", branch)

    async def add_all(self) -> None:
        self._call("add")

    async def commit(self, message: str) -> None:
        self._call("commit", message)

    async def push(self, remote: str, branch: str) -> None:
        self._call("push", remote, branch)


@pytest.fixture
def reporter() -> RecordingReporter:
    return RecordingReporter()
