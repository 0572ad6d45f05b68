import asyncio
import io
import json
from types import SimpleNamespace

import pytest

from code_agent.ai import build_completion_provider
from code_agent.ai.anthropic_messages import AnthropicCompletionProvider
from code_agent.ai.bedrock_knowledge_base import BedrockKnowledgeBaseProvider, BedrockResponseError
from code_agent.config import AgentConfig


class _FakeMessages:
    def __init__(self, response) -> None:  # noqa: ANN001
        self.response = response
        self.calls: list[dict] = []

    async def create(self, **kwargs):  # noqa: ANN003
        self.calls.append(kwargs)
        return self.response


class _FakeBedrockClient:
    def __init__(self, payload: dict) -> None:
        self.payload = payload
        self.calls: list[dict] = []

    def invoke_model(self, **kwargs):  # noqa: ANN003
        self.calls.append(kwargs)
        return {"body": io.BytesIO(json.dumps(self.payload).encode("utf-8"))}


def test_anthropic_provider_sends_single_user_message() -> None:
    messages = _FakeMessages(SimpleNamespace(content=[SimpleNamespace(type="text", text="  [ ]  ")]))
    provider = AnthropicCompletionProvider(
        api_key="key",
        model="claude-test",
        max_tokens=1000,
        client=SimpleNamespace(messages=messages),
    )

    text = asyncio.run(provider.complete("review this", max_tokens=500))

    assert text == "[ ]"
    assert messages.calls == [
        {"model": "claude-test", "max_tokens": 500, "messages": [{"role": "user", "content": "review this"}]}
    ]


def test_anthropic_provider_empty_content_is_empty_text() -> None:
    messages = _FakeMessages(SimpleNamespace(content=[]))
    provider = AnthropicCompletionProvider(api_key="key", model="m", client=SimpleNamespace(messages=messages))
    assert asyncio.run(provider.complete("x")) == ""
    assert messages.calls[0]["max_tokens"] == 1000


def test_bedrock_provider_reads_nested_content_and_passes_knowledge_base() -> None:
    client = _FakeBedrockClient({"content": [{"type": "text", "text": '{"files": []}'}]})
    provider = BedrockKnowledgeBaseProvider(
        region="us-east-1",
        knowledge_base_id="KB123",
        model_id="anthropic.claude-3-5-sonnet-v1",
        client=client,
    )

    text = asyncio.run(provider.complete("fix it"))

    assert text == '{"files": []}'
    call = client.calls[0]
    assert call["modelId"] == "anthropic.claude-3-5-sonnet-v1"
    body = json.loads(call["body"])
    assert body["knowledgeBaseId"] == "KB123"
    assert body["max_tokens"] == 4000
    assert body["anthropic_version"] == "bedrock-2023-05-31"
    assert body["messages"] == [{"role": "user", "content": [{"type": "text", "text": "fix it"}]}]


def test_bedrock_provider_missing_content_raises() -> None:
    client = _FakeBedrockClient({"content": []})
    provider = BedrockKnowledgeBaseProvider(region=None, knowledge_base_id=None, model_id="m", client=client)
    with pytest.raises(BedrockResponseError):
        asyncio.run(provider.complete("fix it"))


def test_factory_requires_anthropic_key_and_rejects_unknown_backend() -> None:
    config = AgentConfig()
    with pytest.raises(ValueError):
        build_completion_provider(config, "anthropic", {})
    with pytest.raises(ValueError):
        build_completion_provider(config, "openai", {})

    provider = build_completion_provider(config, "anthropic", {"ANTHROPIC_API_KEY": "secret"})
    assert provider.model_id() == "claude-3-5-sonnet-20241022"
