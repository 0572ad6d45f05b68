"""Issue tracker interface consumed by the drivers."""

from __future__ import annotations

from typing import Protocol

from code_agent.models import Issue, PullRequest, PullRequestFile


class IssueTracker(Protocol):
    async def get_issue(self, number: int) -> Issue: ...

    async def get_pull(self, number: int) -> PullRequest: ...

    async def list_pull_files(self, number: int) -> list[PullRequestFile]: ...

    async def create_pull(self, *, title: str, body: str, head: str, base: str) -> PullRequest: ...

    async def create_issue_comment(self, number: int, body: str) -> None: ...

    async def create_review_comment(
        self,
        number: int,
        *,
        body: str,
        commit_id: str,
        path: str,
        position: int,
    ) -> None: ...
