"""Shared helpers for CLI command modules."""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

import yaml

from code_agent.config import AgentConfig, load_effective_config
from code_agent.reporting import GithubActionsReporter, LoggingReporter, Reporter
from code_agent.services.command_runtime import CommandRuntime
from code_agent.vcs import validate_repo_path_matches

logger = logging.getLogger(__name__)

ALIAS_TO_CANONICAL = {
    "fix": "fix-issue",
    "review": "review-pr",
    "webhook": "serve",
}


def normalize_command(name: str) -> str:
    return ALIAS_TO_CANONICAL.get(name, name)


def load_yaml_dict(path: str | None) -> dict | None:
    if not path:
        return None
    data = yaml.safe_load(Path(path).read_text())
    if data is None:
        return None
    if not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data


def runtime_override_from_args(args: argparse.Namespace) -> dict | None:
    override = load_yaml_dict(getattr(args, "runtime_override", None)) or {}
    gh_bin = getattr(args, "gh_bin", None)
    if gh_bin:
        override.setdefault("github", {})["gh_bin"] = gh_bin
    for flag, key in (
        ("gh_rate_limit_retries", "rate_limit_retries"),
        ("gh_secondary_backoff_seconds", "secondary_backoff_base_seconds"),
        ("gh_rate_limit_max_sleep_seconds", "rate_limit_max_sleep_seconds"),
    ):
        value = getattr(args, flag, None)
        if value is not None:
            override.setdefault("github", {})[key] = value
    return override or None


def load_config(args: argparse.Namespace) -> AgentConfig:
    return load_effective_config(
        repo_path=args.repo_path,
        org_defaults=load_yaml_dict(args.org_config),
        system_defaults=load_yaml_dict(args.system_config),
        runtime_override=runtime_override_from_args(args),
    )


def build_reporter(args: argparse.Namespace, config: AgentConfig, *, runtime: CommandRuntime) -> Reporter:
    annotations = getattr(args, "annotations", None)
    if annotations is None:
        annotations = runtime.environ.get("GITHUB_ACTIONS", "").lower() == "true"
    if annotations:
        return GithubActionsReporter(default_title=config.review.annotation_title)
    return LoggingReporter()


def add_common_config_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--repo-path", default=".", help="Local clone of the target repository")
    cmd.add_argument("--org-config", help="Optional org defaults YAML")
    cmd.add_argument("--system-config", help="Optional system defaults YAML")
    cmd.add_argument("--runtime-override", help="Optional runtime override YAML")


def add_repo_validation_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument(
        "--skip-repo-path-check",
        action="store_true",
        help="Skip validation that repo-path origin matches --repo",
    )


def add_github_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument("--gh-bin", default=None, help="Path/name of gh binary (default from config)")
    cmd.add_argument(
        "--gh-rate-limit-retries",
        type=int,
        default=None,
        help="Retries per GitHub API call when rate-limited",
    )
    cmd.add_argument(
        "--gh-secondary-backoff-seconds",
        type=float,
        default=None,
        help="Base backoff for secondary limits (exponential per retry)",
    )
    cmd.add_argument(
        "--gh-rate-limit-max-sleep-seconds",
        type=float,
        default=None,
        help="Maximum automatic sleep before surfacing a rate-limit failure",
    )


def add_reporter_flags(cmd: argparse.ArgumentParser) -> None:
    cmd.add_argument(
        "--annotations",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Emit GitHub Actions annotations (default: on when GITHUB_ACTIONS=true)",
    )


def validate_repo_path_if_needed(args: argparse.Namespace) -> None:
    if getattr(args, "skip_repo_path_check", False):
        return
    asyncio.run(validate_repo_path_matches(args.repo_path, args.repo))
