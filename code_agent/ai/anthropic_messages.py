"""Direct Anthropic messages API completion provider."""

from __future__ import annotations

from typing import Any

from anthropic import AsyncAnthropic


def _first_text(content: Any) -> str:
    if not content:
        return ""
    block = content[0]
    text = getattr(block, "text", None)
    if text is None and isinstance(block, dict):
        text = block.get("text")
    return (text or "").strip()


class AnthropicCompletionProvider:
    def __init__(
        self,
        api_key: str | None,
        model: str,
        max_tokens: int = 1000,
        *,
        client: Any | None = None,
    ) -> None:
        self._model = model
        self._max_tokens = max_tokens
        self._client = client or AsyncAnthropic(api_key=api_key)

    def model_id(self) -> str:
        return self._model

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        response = await self._client.messages.create(
            model=self._model,
            max_tokens=max_tokens or self._max_tokens,
            messages=[{"role": "user", "content": prompt}],
        )
        return _first_text(getattr(response, "content", None))
