"""Issue -> branch -> AI fix -> pull request."""

from __future__ import annotations

import logging
from pathlib import Path

from code_agent.ai.base import CompletionProvider
from code_agent.ai_response import parse_branch_name, parse_solution
from code_agent.changes import apply_changes
from code_agent.config import IssueFixConfig
from code_agent.connectors.base import IssueTracker
from code_agent.models import Issue, IssueFixResult, PullRequest, Solution
from code_agent.prompts import branch_prompt, solution_prompt
from code_agent.reporting import Reporter
from code_agent.vcs import GitRepository

logger = logging.getLogger(__name__)


def build_pull_body(issue: Issue, solution: Solution, footer: str) -> str:
    parts = [f"This PR addresses issue #{issue.number}", solution.analysis, solution.solution, footer]
    return "\n\n".join(part for part in parts if part)


class IssueFixDriver:
    """Turns one issue into a fix branch and pull request.

    Collaborators are injected; a driver instance holds no state between runs.
    """

    def __init__(
        self,
        *,
        config: IssueFixConfig,
        tracker: IssueTracker,
        git: GitRepository,
        solution_provider: CompletionProvider,
        branch_provider: CompletionProvider | None,
        reporter: Reporter,
        workdir: str | Path,
    ) -> None:
        self.config = config
        self.tracker = tracker
        self.git = git
        self.solution_provider = solution_provider
        self.branch_provider = branch_provider
        self.reporter = reporter
        self.workdir = Path(workdir)

    async def extract_base_branch(self, issue: Issue) -> str | None:
        if self.branch_provider is None or not (issue.body or "").strip():
            return None
        try:
            text = await self.branch_provider.complete(branch_prompt(issue.body), max_tokens=self.config.branch_max_tokens)
        except Exception as exc:  # noqa: BLE001
            self.reporter.warning(f"Error extracting branch info: {exc}")
            return None
        return parse_branch_name(text)

    async def prepare_branch(self, branch: str, base: str) -> None:
        error = await self.git.checkout_new_branch(branch, self.config.remote, base)
        if error is not None:
            self.reporter.warning(f"Error checking out branch: {error}")

    async def request_solution(self, issue: Issue) -> Solution:
        logger.debug("Requesting solution for issue #%s from %s", issue.number, self.solution_provider.model_id())
        text = await self.solution_provider.complete(solution_prompt(issue))
        return parse_solution(text)

    async def run(self, issue: Issue) -> IssueFixResult:
        try:
            return await self._run(issue)
        except Exception as exc:
            self.reporter.error(f"Error processing issue: {exc}")
            raise

    async def _run(self, issue: Issue) -> IssueFixResult:
        self.reporter.info(f"Processing issue #{issue.number}: {issue.title}")

        base_branch = await self.extract_base_branch(issue) or self.config.default_base_branch
        branch = f"{self.config.branch_prefix}{issue.number}"
        self.reporter.info(f"Using base branch: {base_branch}")
        self.reporter.info(f"Creating new branch: {branch}")
        await self.prepare_branch(branch, base_branch)

        self.reporter.info("Analyzing issue with AI and knowledge base...")
        solution = await self.request_solution(issue)
        self.reporter.info(f"AI solution found. Affected files: {', '.join(solution.files)}")

        self.reporter.info("Applying changes to files...")
        written = apply_changes(solution.changes, self.workdir, self.reporter)

        self.reporter.info("Committing changes...")
        await self.git.add_all()
        await self.git.commit(solution.commit_message or f"Fix issue #{issue.number}")

        self.reporter.info("Pushing to remote...")
        await self.git.push(self.config.remote, branch)

        self.reporter.info("Creating pull request...")
        pull = await self.tracker.create_pull(
            title=f"Fix issue #{issue.number}: {issue.title}",
            body=build_pull_body(issue, solution, self.config.pr_footer),
            head=branch,
            base=base_branch,
        )
        await self.tracker.create_issue_comment(issue.number, self._issue_comment(pull))
        self.reporter.info(f"Successfully created PR #{pull.number}")

        return IssueFixResult(
            issue_number=issue.number,
            base_branch=base_branch,
            branch=branch,
            pull_number=pull.number,
            pull_url=pull.html_url,
            changed_files=[self._display_path(path) for path in written],
        )

    def _display_path(self, path: Path) -> str:
        if path.is_relative_to(self.workdir):
            return path.relative_to(self.workdir).as_posix()
        return str(path)

    @staticmethod
    def _issue_comment(pull: PullRequest) -> str:
        link = f" ({pull.html_url})" if pull.html_url else ""
        return f"I've created a fix for this issue in PR #{pull.number}{link}. Please review the changes."
