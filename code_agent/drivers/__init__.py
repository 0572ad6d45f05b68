"""Workflow drivers."""

from .issue_fix import IssueFixDriver
from .pr_review import PullRequestReviewDriver

__all__ = ["IssueFixDriver", "PullRequestReviewDriver"]
