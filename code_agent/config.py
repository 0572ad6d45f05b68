"""Configuration models and loading for code-agent."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field

CONFIG_FILENAME = ".code-agent.yaml"


class AnthropicConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    model: str = "claude-3-5-sonnet-20241022"
    api_key: str | None = None
    api_key_env: str | None = "ANTHROPIC_API_KEY"
    max_tokens: int = 1000


class BedrockConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    model_id: str = "anthropic.claude-3-5-sonnet-v1"
    region: str | None = None
    region_env: str | None = "AWS_REGION"
    knowledge_base_id: str | None = None
    knowledge_base_id_env: str | None = "KNOWLEDGE_BASE_ID"
    max_tokens: int = 4000
    anthropic_version: str = "bedrock-2023-05-31"


class ReviewConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    backend: str = "anthropic"
    max_tokens: int = 1000
    skip_extensions: list[str] = Field(default_factory=lambda: ["pdf", "docx", "prof", "png", "jpg", "jpeg", "gif"])
    reviewer_logins: list[str] = Field(default_factory=list)
    annotation_title: str = "PR Review Bot"


class IssueFixConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    solution_backend: str = "bedrock"
    branch_backend: str = "anthropic"
    branch_max_tokens: int = 500
    default_base_branch: str = "main"
    branch_prefix: str = "issue-"
    remote: str = "origin"
    agent_login: str = "code-agent-bot"
    pr_footer: str = "Automatically generated by Code Agent."


class GithubConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    gh_bin: str = "gh"
    token_env: str | None = "GITHUB_TOKEN"
    rate_limit_retries: int = 2
    secondary_backoff_base_seconds: float = 5.0
    rate_limit_max_sleep_seconds: float = 90.0
    webhook_secret_env: str | None = "GITHUB_WEBHOOK_SECRET"


class AgentConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    anthropic: AnthropicConfig = Field(default_factory=AnthropicConfig)
    bedrock: BedrockConfig = Field(default_factory=BedrockConfig)
    review: ReviewConfig = Field(default_factory=ReviewConfig)
    issue_fix: IssueFixConfig = Field(default_factory=IssueFixConfig)
    github: GithubConfig = Field(default_factory=GithubConfig)


def resolve_setting(value: str | None, env_name: str | None, environ: Mapping[str, str]) -> str | None:
    """Prefer an explicit value, then the named environment variable."""
    if value:
        return value
    if env_name:
        resolved = environ.get(env_name, "")
        if resolved:
            return resolved
    return None


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _load_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    data = yaml.safe_load(path.read_text())
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML at {path} must decode to a mapping")
    return data


def load_effective_config(
    repo_path: str | Path,
    org_defaults: dict[str, Any] | None = None,
    system_defaults: dict[str, Any] | None = None,
    runtime_override: dict[str, Any] | None = None,
) -> AgentConfig:
    """Load config with precedence runtime > repo .code-agent.yaml > org > system."""
    repo_config = _load_yaml(Path(repo_path) / CONFIG_FILENAME)

    merged: dict[str, Any] = {}
    for layer in (system_defaults, org_defaults, repo_config, runtime_override):
        if layer:
            merged = _deep_merge(merged, layer)

    return AgentConfig.model_validate(merged)
