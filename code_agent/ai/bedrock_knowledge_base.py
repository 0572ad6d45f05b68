"""Knowledge-base augmented completions through AWS Bedrock runtime."""

from __future__ import annotations

import asyncio
import json
from typing import Any

import boto3


class BedrockResponseError(ValueError):
    pass


class BedrockKnowledgeBaseProvider:
    def __init__(
        self,
        *,
        region: str | None,
        knowledge_base_id: str | None,
        model_id: str,
        max_tokens: int = 4000,
        anthropic_version: str = "bedrock-2023-05-31",
        client: Any | None = None,
    ) -> None:
        self._knowledge_base_id = knowledge_base_id
        self._model_id = model_id
        self._max_tokens = max_tokens
        self._anthropic_version = anthropic_version
        self._client = client or boto3.client("bedrock-runtime", region_name=region)

    def model_id(self) -> str:
        return self._model_id

    def _request_body(self, prompt: str, max_tokens: int) -> dict[str, Any]:
        body: dict[str, Any] = {
            "anthropic_version": self._anthropic_version,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": [{"type": "text", "text": prompt}]}],
        }
        if self._knowledge_base_id:
            body["knowledgeBaseId"] = self._knowledge_base_id
        return body

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        body = self._request_body(prompt, max_tokens or self._max_tokens)
        # boto3 calls block.
        response = await asyncio.to_thread(
            self._client.invoke_model,
            modelId=self._model_id,
            contentType="application/json",
            accept="application/json",
            body=json.dumps(body),
        )
        raw = response["body"].read()
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8")
        payload = json.loads(raw)

        content = payload.get("content") if isinstance(payload, dict) else None
        if not isinstance(content, list) or not content or not isinstance(content[0], dict):
            raise BedrockResponseError("Bedrock response is missing content")
        text = content[0].get("text")
        if not isinstance(text, str):
            raise BedrockResponseError("Bedrock response content has no text")
        return text
