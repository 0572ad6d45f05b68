"""Completion provider abstractions."""

from __future__ import annotations

from typing import Protocol


class CompletionProvider(Protocol):
    def model_id(self) -> str:
        ...

    async def complete(self, prompt: str, *, max_tokens: int | None = None) -> str:
        ...
