"""Completion backends and selection."""

from __future__ import annotations

from collections.abc import Mapping

from code_agent.ai.base import CompletionProvider
from code_agent.config import AgentConfig, resolve_setting

BACKENDS = ("anthropic", "bedrock")


def build_completion_provider(config: AgentConfig, backend: str, environ: Mapping[str, str]) -> CompletionProvider:
    if backend == "anthropic":
        from code_agent.ai.anthropic_messages import AnthropicCompletionProvider

        api_key = resolve_setting(config.anthropic.api_key, config.anthropic.api_key_env, environ)
        if not api_key:
            raise ValueError(f"Anthropic backend requires an API key (set {config.anthropic.api_key_env or 'anthropic.api_key'})")
        return AnthropicCompletionProvider(api_key=api_key, model=config.anthropic.model, max_tokens=config.anthropic.max_tokens)

    if backend == "bedrock":
        from code_agent.ai.bedrock_knowledge_base import BedrockKnowledgeBaseProvider

        return BedrockKnowledgeBaseProvider(
            region=resolve_setting(config.bedrock.region, config.bedrock.region_env, environ),
            knowledge_base_id=resolve_setting(config.bedrock.knowledge_base_id, config.bedrock.knowledge_base_id_env, environ),
            model_id=config.bedrock.model_id,
            max_tokens=config.bedrock.max_tokens,
            anthropic_version=config.bedrock.anthropic_version,
        )

    raise ValueError(f"Unsupported completion backend: {backend} (expected one of {', '.join(BACKENDS)})")


__all__ = ["BACKENDS", "CompletionProvider", "build_completion_provider"]
