"""Driver wiring shared by the CLI and the webhook receiver."""

from __future__ import annotations

import logging
from pathlib import Path

from code_agent.config import AgentConfig, resolve_setting
from code_agent.connectors.base import IssueTracker
from code_agent.drivers import IssueFixDriver, PullRequestReviewDriver
from code_agent.events import EventRoute, RunKind
from code_agent.models import Issue, IssueFixResult, ReviewCounters
from code_agent.reporting import Reporter
from code_agent.services.command_runtime import CommandRuntime

logger = logging.getLogger(__name__)


def build_tracker(runtime: CommandRuntime, config: AgentConfig, repo: str) -> IssueTracker:
    return runtime.tracker_cls(
        repo=repo,
        gh_bin=config.github.gh_bin,
        token=resolve_setting(None, config.github.token_env, runtime.environ),
        rate_limit_retries=config.github.rate_limit_retries,
        secondary_backoff_base_seconds=config.github.secondary_backoff_base_seconds,
        rate_limit_max_sleep_seconds=config.github.rate_limit_max_sleep_seconds,
    )


def build_issue_fix_driver(
    runtime: CommandRuntime,
    config: AgentConfig,
    *,
    tracker: IssueTracker,
    repo_path: str | Path,
    reporter: Reporter,
) -> IssueFixDriver:
    settings = config.issue_fix
    solution_provider = runtime.provider_factory(config, settings.solution_backend, runtime.environ)
    try:
        branch_provider = runtime.provider_factory(config, settings.branch_backend, runtime.environ)
    except ValueError as exc:
        # Branch extraction is optional; without it the default base branch is used.
        logger.warning("Branch extraction disabled: %s", exc)
        branch_provider = None
    return IssueFixDriver(
        config=settings,
        tracker=tracker,
        git=runtime.git_cls(repo_path),
        solution_provider=solution_provider,
        branch_provider=branch_provider,
        reporter=reporter,
        workdir=repo_path,
    )


def build_review_driver(
    runtime: CommandRuntime,
    config: AgentConfig,
    *,
    tracker: IssueTracker,
    reporter: Reporter,
) -> PullRequestReviewDriver:
    return PullRequestReviewDriver(
        config=config.review,
        tracker=tracker,
        provider=runtime.provider_factory(config, config.review.backend, runtime.environ),
        reporter=reporter,
    )


async def run_issue_fix(
    runtime: CommandRuntime,
    config: AgentConfig,
    *,
    repo: str,
    repo_path: str | Path,
    reporter: Reporter,
    issue: Issue | None = None,
    issue_number: int | None = None,
) -> IssueFixResult:
    tracker = build_tracker(runtime, config, repo)
    if issue is None:
        if issue_number is None:
            raise ValueError("run_issue_fix needs an issue or an issue number")
        issue = await tracker.get_issue(issue_number)
    driver = build_issue_fix_driver(runtime, config, tracker=tracker, repo_path=repo_path, reporter=reporter)
    return await driver.run(issue)


async def run_pr_review(
    runtime: CommandRuntime,
    config: AgentConfig,
    *,
    repo: str,
    number: int,
    reporter: Reporter,
) -> ReviewCounters:
    tracker = build_tracker(runtime, config, repo)
    driver = build_review_driver(runtime, config, tracker=tracker, reporter=reporter)
    return await driver.run(number)


async def run_route(
    runtime: CommandRuntime,
    config: AgentConfig,
    route: EventRoute,
    *,
    repo: str,
    repo_path: str | Path,
    reporter: Reporter,
) -> IssueFixResult | ReviewCounters:
    target_repo = route.repo or repo
    if route.kind == RunKind.ISSUE_FIX:
        return await run_issue_fix(runtime, config, repo=target_repo, repo_path=repo_path, reporter=reporter, issue=route.issue)
    if route.pull_number is None:
        raise ValueError("Review route is missing a pull request number")
    return await run_pr_review(runtime, config, repo=target_repo, number=route.pull_number, reporter=reporter)
