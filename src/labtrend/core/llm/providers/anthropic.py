"""Anthropic Claude provider."""

from __future__ import annotations

import time
from typing import Any, Sequence

from labtrend.core.llm.provider import ChatTurn, DocumentAttachment, ProviderResponse


class AnthropicProvider:
    """Claude provider using the Anthropic SDK."""

    def __init__(self, api_key: str, model: str = "claude-sonnet-4-5-20250929") -> None:
        import anthropic

        self.client = anthropic.AsyncAnthropic(api_key=api_key)
        self.model = model

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
        *,
        history: Sequence[ChatTurn] | None = None,
        attachment: DocumentAttachment | None = None,
    ) -> ProviderResponse:
        messages: list[dict[str, Any]] = [
            {
                "role": "assistant" if turn.role == "model" else "user",
                "content": turn.text,
            }
            for turn in history or ()
        ]

        content: list[dict[str, Any]] = []
        if attachment is not None:
            content.append({
                "type": "image" if attachment.is_image else "document",
                "source": {
                    "type": "base64",
                    "media_type": attachment.mime_type,
                    "data": attachment.data,
                },
            })
        content.append({"type": "text", "text": user_message})
        messages.append({"role": "user", "content": content})

        start = time.monotonic()
        response = await self.client.messages.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system_message,
            messages=messages,
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        text = response.content[0].text if response.content else ""
        return ProviderResponse(
            content=text,
            input_tokens=response.usage.input_tokens,
            output_tokens=response.usage.output_tokens,
            model=self.model,
            latency_ms=elapsed_ms,
        )
