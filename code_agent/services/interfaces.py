"""Factory interfaces used by command/runtime orchestration."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Protocol

from code_agent.ai.base import CompletionProvider
from code_agent.config import AgentConfig
from code_agent.connectors.base import IssueTracker
from code_agent.vcs import GitRepository


class TrackerFactory(Protocol):
    def __call__(
        self,
        *,
        repo: str,
        gh_bin: str = "gh",
        token: str | None = None,
        rate_limit_retries: int = 2,
        secondary_backoff_base_seconds: float = 5.0,
        rate_limit_max_sleep_seconds: float = 90.0,
    ) -> IssueTracker: ...


class GitFactory(Protocol):
    def __call__(self, path: str | Path) -> GitRepository: ...


class ProviderFactory(Protocol):
    def __call__(self, config: AgentConfig, backend: str, environ: Mapping[str, str]) -> CompletionProvider: ...
