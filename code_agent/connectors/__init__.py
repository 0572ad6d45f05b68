"""Issue tracker interfaces and implementations."""

from .github_gh import GithubApiError, GithubGhTracker, GithubNotFoundError, GithubRateLimitError

__all__ = ["GithubGhTracker", "GithubApiError", "GithubNotFoundError", "GithubRateLimitError"]
