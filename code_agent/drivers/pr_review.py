"""Line-level AI review of a pull request's diff."""

from __future__ import annotations

import logging
import time
from pathlib import PurePosixPath

from code_agent.ai.base import CompletionProvider
from code_agent.ai_response import parse_review_list
from code_agent.config import ReviewConfig
from code_agent.connectors.base import IssueTracker
from code_agent.connectors.github_gh import GithubNotFoundError
from code_agent.diff_locator import position_comments
from code_agent.models import PullRequest, PullRequestFile, ReviewComment, ReviewCounters
from code_agent.prompts import review_prompt
from code_agent.reporting import Reporter

logger = logging.getLogger(__name__)


def is_reviewable(file: PullRequestFile, skip_extensions: list[str]) -> bool:
    if file.status == "removed":
        return False
    suffix = PurePosixPath(file.filename).suffix.lstrip(".").lower()
    return suffix not in {ext.lstrip(".").lower() for ext in skip_extensions}


class PullRequestReviewDriver:
    def __init__(
        self,
        *,
        config: ReviewConfig,
        tracker: IssueTracker,
        provider: CompletionProvider,
        reporter: Reporter,
    ) -> None:
        self.config = config
        self.tracker = tracker
        self.provider = provider
        self.reporter = reporter

    async def request_review(self, file: PullRequestFile, patch: str) -> list[ReviewComment] | None:
        self.reporter.info(f"Requesting review from {self.provider.model_id()} for {file.filename}...")
        text = await self.provider.complete(review_prompt(file.filename, patch), max_tokens=self.config.max_tokens)
        return parse_review_list(text, reporter=self.reporter)

    async def review_file(self, number: int, pull: PullRequest, file: PullRequestFile, counters: ReviewCounters) -> None:
        patch = file.patch
        if not patch:
            self.reporter.warning(f"Skipping file {file.filename} - no patch available", file=file.filename)
            counters.skipped += 1
            return

        self.reporter.info(f"Reviewing file: {file.filename}")
        reviews = await self.request_review(file, patch)
        positioned, unresolved = position_comments(patch, reviews or [])
        for review in unresolved:
            self.reporter.warning(f"Could not find position for line {review.line} in {file.filename}")
        for review in positioned:
            await self.tracker.create_review_comment(
                number,
                body=review.comment,
                commit_id=pull.head_sha,
                path=file.filename,
                position=review.position,
            )
            counters.comments_posted += 1
        counters.processed += 1

    async def run(self, number: int) -> ReviewCounters:
        started = time.monotonic()
        title = self.config.annotation_title
        try:
            self.reporter.info("Starting PR review process...")
            files = await self.tracker.list_pull_files(number)
            self.reporter.info(f"Found {len(files)} files in the PR")
            pull = await self.tracker.get_pull(number)
            self.reporter.info(f"PR details fetched: {pull.title}")

            counters = ReviewCounters()
            for file in files:
                if not is_reviewable(file, self.config.skip_extensions):
                    self.reporter.info(f"Skipping file: {file.filename} (removed or unsupported type)")
                    counters.skipped += 1
                    continue
                try:
                    await self.review_file(number, pull, file, counters)
                except GithubNotFoundError:
                    self.reporter.info(f"Skipping file: {file.filename} (not found)")
                    counters.skipped += 1
                except Exception as exc:  # noqa: BLE001
                    logger.debug("Review of %s failed", file.filename, exc_info=True)
                    counters.errored += 1
                    self.reporter.error(f"Failed to review {file.filename}: {exc}", file=file.filename, title=title)
        except Exception as exc:
            self.reporter.error(f"PR review process failed: {exc}", title=title)
            raise

        duration = time.monotonic() - started
        self.reporter.notice(counters.summary(duration), title=title)
        return counters
