"""GitHub issue tracker backed by the gh CLI."""

from __future__ import annotations

import asyncio
import json
import logging
import os
import re
import time
from datetime import UTC, datetime
from typing import Any

from code_agent.models import Issue, PullRequest, PullRequestFile

_RATE_LIMIT_RE = re.compile(r"(?:api|secondary) rate limit", re.IGNORECASE)
_NOT_FOUND_RE = re.compile(r"\(HTTP 404\)")
logger = logging.getLogger(__name__)


class GithubApiError(RuntimeError):
    def __init__(self, message: str, *, stderr: str = "") -> None:
        super().__init__(message)
        self.stderr = stderr


class GithubNotFoundError(GithubApiError):
    pass


class GithubRateLimitError(GithubApiError):
    def __init__(
        self,
        message: str,
        *,
        stderr: str = "",
        reset_at: datetime | None = None,
        retry_after_seconds: float | None = None,
    ) -> None:
        super().__init__(message, stderr=stderr)
        self.reset_at = reset_at
        self.retry_after_seconds = retry_after_seconds


class GithubGhClient:
    def __init__(
        self,
        repo: str,
        gh_bin: str = "gh",
        *,
        token: str | None = None,
        rate_limit_retries: int = 2,
        secondary_backoff_base_seconds: float = 5.0,
        rate_limit_max_sleep_seconds: float = 90.0,
    ) -> None:
        self.repo = repo
        self.gh_bin = gh_bin
        self.token = token
        self.rate_limit_retries = max(0, rate_limit_retries)
        self.secondary_backoff_base_seconds = max(1.0, secondary_backoff_base_seconds)
        self.rate_limit_max_sleep_seconds = max(1.0, rate_limit_max_sleep_seconds)
        self._backoff_until = 0.0

    def _env(self) -> dict[str, str] | None:
        if not self.token:
            return None
        return {**os.environ, "GH_TOKEN": self.token}

    async def _run(self, cmd: list[str], stdin: str | None = None) -> tuple[int, str, str]:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdin=asyncio.subprocess.PIPE if stdin is not None else asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=self._env(),
        )
        stdout, stderr = await proc.communicate(stdin.encode("utf-8") if stdin is not None else None)
        return proc.returncode or 0, stdout.decode("utf-8"), stderr.decode("utf-8")

    async def get_paginated(self, endpoint: str, per_page: int = 100, max_items: int | None = None) -> list[dict[str, Any]]:
        items: list[dict[str, Any]] = []
        page = 1
        while True:
            payload = await self.get_page(endpoint, page=page, per_page=per_page)
            if not payload:
                break
            items.extend(payload)
            if max_items is not None and len(items) >= max_items:
                return items[:max_items]
            if len(payload) < per_page:
                break
            page += 1
        return items

    async def get_page(self, endpoint: str, *, page: int, per_page: int = 100) -> list[dict[str, Any]]:
        query = f"{endpoint}{'&' if '?' in endpoint else '?'}per_page={per_page}&page={page}"
        payload = await self.api_json(query)
        if not isinstance(payload, list):
            return []
        return payload

    async def api_json(self, endpoint: str, method: str = "GET", body: dict[str, Any] | None = None) -> Any:
        path = endpoint if endpoint.startswith("repos/") else f"repos/{self.repo}/{endpoint.lstrip('/')}"
        cmd = [self.gh_bin, "api", path, "-X", method, "-H", "Accept: application/vnd.github+json"]
        if body is not None:
            cmd.extend(["--input", "-"])

        for attempt in range(self.rate_limit_retries + 1):
            await self._wait_for_backoff()
            returncode, stdout, stderr = await self._run(cmd, json.dumps(body) if body is not None else None)

            if returncode == 0:
                output = stdout.strip()
                if not output:
                    return None
                return json.loads(output)

            stderr = stderr.strip()
            if _NOT_FOUND_RE.search(stderr):
                raise GithubNotFoundError(f"gh api not found: {method} {path}\n{stderr}", stderr=stderr)
            if not _RATE_LIMIT_RE.search(stderr):
                raise GithubApiError(f"gh api failed: {method} {path}\n{stderr}", stderr=stderr)

            reset_at = await self._get_rate_limit_reset_at()
            retry_after_seconds = self._compute_rate_limit_wait_seconds(reset_at=reset_at, attempt=attempt)
            self._set_backoff(retry_after_seconds)
            has_retry = attempt < self.rate_limit_retries

            logger.warning(
                "GitHub rate limit hit for %s (attempt %s/%s). backoff=%.1fs reset_at=%s",
                endpoint,
                attempt + 1,
                self.rate_limit_retries + 1,
                retry_after_seconds,
                reset_at.isoformat() if reset_at else "unknown",
            )

            if has_retry and retry_after_seconds <= self.rate_limit_max_sleep_seconds:
                continue

            raise GithubRateLimitError(
                f"gh api failed: {method} {path}\n{stderr}",
                stderr=stderr,
                reset_at=reset_at,
                retry_after_seconds=retry_after_seconds,
            )
        raise GithubApiError(f"gh api failed unexpectedly after retries for endpoint={endpoint}")

    async def _wait_for_backoff(self) -> None:
        wait_seconds = self._backoff_until - time.monotonic()
        if wait_seconds > 0:
            await asyncio.sleep(wait_seconds)

    def _set_backoff(self, wait_seconds: float) -> None:
        target = time.monotonic() + max(0.0, wait_seconds)
        self._backoff_until = max(self._backoff_until, target)

    def _compute_rate_limit_wait_seconds(self, *, reset_at: datetime | None, attempt: int) -> float:
        if reset_at is not None:
            until_reset = (reset_at - datetime.now(UTC)).total_seconds()
            if until_reset > self.rate_limit_max_sleep_seconds:
                return until_reset
            return max(1.0, until_reset + 1.0)
        backoff = self.secondary_backoff_base_seconds * (2**attempt)
        return float(min(self.rate_limit_max_sleep_seconds, max(1.0, backoff)))

    async def _get_rate_limit_reset_at(self) -> datetime | None:
        cmd = [self.gh_bin, "api", "rate_limit", "-X", "GET", "-H", "Accept: application/vnd.github+json"]
        returncode, stdout, _ = await self._run(cmd)
        if returncode != 0 or not stdout.strip():
            return None
        try:
            data = json.loads(stdout)
        except json.JSONDecodeError:
            return None

        reset_epochs: list[int] = []
        resources = data.get("resources")
        buckets = list(resources.values()) if isinstance(resources, dict) else []
        buckets.append(data.get("rate"))
        for bucket in buckets:
            if not isinstance(bucket, dict):
                continue
            remaining = bucket.get("remaining")
            reset = bucket.get("reset")
            if isinstance(remaining, int) and remaining <= 0 and isinstance(reset, int):
                reset_epochs.append(reset)
        if not reset_epochs:
            return None
        return datetime.fromtimestamp(max(reset_epochs), UTC)


class GithubGhTracker:
    def __init__(
        self,
        repo: str,
        gh_bin: str = "gh",
        *,
        token: str | None = None,
        rate_limit_retries: int = 2,
        secondary_backoff_base_seconds: float = 5.0,
        rate_limit_max_sleep_seconds: float = 90.0,
    ) -> None:
        self.repo = repo
        self.client = GithubGhClient(
            repo=repo,
            gh_bin=gh_bin,
            token=token,
            rate_limit_retries=rate_limit_retries,
            secondary_backoff_base_seconds=secondary_backoff_base_seconds,
            rate_limit_max_sleep_seconds=rate_limit_max_sleep_seconds,
        )

    async def get_issue(self, number: int) -> Issue:
        payload = await self.client.api_json(f"issues/{number}")
        return Issue.model_validate(payload)

    async def get_pull(self, number: int) -> PullRequest:
        payload = await self.client.api_json(f"pulls/{number}")
        return PullRequest.model_validate(payload)

    async def list_pull_files(self, number: int) -> list[PullRequestFile]:
        payload = await self.client.get_paginated(f"pulls/{number}/files")
        logger.debug("Fetched %s changed files for PR #%s", len(payload), number)
        return [PullRequestFile.model_validate(item) for item in payload]

    async def create_pull(self, *, title: str, body: str, head: str, base: str) -> PullRequest:
        payload = await self.client.api_json(
            "pulls",
            method="POST",
            body={"title": title, "body": body, "head": head, "base": base},
        )
        return PullRequest.model_validate(payload)

    async def create_issue_comment(self, number: int, body: str) -> None:
        await self.client.api_json(f"issues/{number}/comments", method="POST", body={"body": body})

    async def create_review_comment(
        self,
        number: int,
        *,
        body: str,
        commit_id: str,
        path: str,
        position: int,
    ) -> None:
        await self.client.api_json(
            f"pulls/{number}/comments",
            method="POST",
            body={"body": body, "commit_id": commit_id, "path": path, "position": position},
        )
