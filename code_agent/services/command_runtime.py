"""Typed command runtime dependency container."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass, field

from code_agent.ai import build_completion_provider
from code_agent.connectors.github_gh import GithubGhTracker
from code_agent.services.interfaces import GitFactory, ProviderFactory, TrackerFactory
from code_agent.vcs import GitRepository


@dataclass(frozen=True)
class CommandRuntime:
    tracker_cls: TrackerFactory
    git_cls: GitFactory
    provider_factory: ProviderFactory
    environ: Mapping[str, str] = field(default_factory=dict)


def default_runtime() -> CommandRuntime:
    return CommandRuntime(
        tracker_cls=GithubGhTracker,
        git_cls=GitRepository,
        provider_factory=build_completion_provider,
        environ=dict(os.environ),
    )
