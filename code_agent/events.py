"""Map GitHub event payloads onto runs."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict

from code_agent.config import AgentConfig
from code_agent.models import Issue


class RunKind(str, Enum):
    ISSUE_FIX = "issue_fix"
    PR_REVIEW = "pr_review"


class EventRoute(BaseModel):
    model_config = ConfigDict(extra="forbid")

    kind: RunKind
    repo: str | None = None
    issue: Issue | None = None
    pull_number: int | None = None


def _login(user: Any) -> str:
    if isinstance(user, dict):
        return str(user.get("login") or "")
    return ""


def _repo_slug(payload: dict[str, Any]) -> str | None:
    repository = payload.get("repository")
    if isinstance(repository, dict):
        return repository.get("full_name")
    return None


def _route_issue(payload: dict[str, Any], config: AgentConfig) -> EventRoute | None:
    if payload.get("action") != "assigned":
        return None
    issue = payload.get("issue")
    if not isinstance(issue, dict):
        return None
    assignee = _login(payload.get("assignee")) or _login(issue.get("assignee"))
    if assignee.lower() != config.issue_fix.agent_login.lower():
        return None
    return EventRoute(kind=RunKind.ISSUE_FIX, repo=_repo_slug(payload), issue=Issue.model_validate(issue))


def _route_pull_request(payload: dict[str, Any], config: AgentConfig) -> EventRoute | None:
    if payload.get("action") != "review_requested":
        return None
    pull = payload.get("pull_request")
    if not isinstance(pull, dict) or "number" not in pull:
        return None
    requested = {_login(payload.get("requested_reviewer")).lower()}
    requested.update(_login(user).lower() for user in pull.get("requested_reviewers") or [])
    requested.discard("")
    wanted = {login.lower() for login in config.review.reviewer_logins}
    if not wanted & requested:
        return None
    return EventRoute(kind=RunKind.PR_REVIEW, repo=_repo_slug(payload), pull_number=int(pull["number"]))


def route_event(event_name: str, payload: dict[str, Any], config: AgentConfig) -> EventRoute | None:
    """Return the run an event should start, or ``None`` to ignore it."""
    if event_name == "issues":
        return _route_issue(payload, config)
    if event_name == "pull_request":
        return _route_pull_request(payload, config)
    return None
