"""OpenAI GPT provider."""

from __future__ import annotations

import time
from typing import Any, Sequence

from labtrend.core.llm.provider import ChatTurn, DocumentAttachment, ProviderResponse


class OpenAIProvider:
    """OpenAI provider using the OpenAI SDK."""

    def __init__(self, api_key: str, model: str = "gpt-4o") -> None:
        import openai

        self.client = openai.AsyncOpenAI(api_key=api_key)
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
        messages: list[dict[str, Any]] = [{"role": "system", "content": system_message}]
        messages.extend(
            {
                "role": "assistant" if turn.role == "model" else "user",
                "content": turn.text,
            }
            for turn in history or ()
        )

        if attachment is None:
            messages.append({"role": "user", "content": user_message})
        else:
            data_url = f"data:{attachment.mime_type};base64,{attachment.data}"
            if attachment.is_image:
                part: dict[str, Any] = {"type": "image_url", "image_url": {"url": data_url}}
            else:
                part = {
                    "type": "file",
                    "file": {"filename": "document.pdf", "file_data": data_url},
                }
            messages.append({
                "role": "user",
                "content": [part, {"type": "text", "text": user_message}],
            })

        start = time.monotonic()
        response = await self.client.chat.completions.create(
            model=self.model,
            max_tokens=max_tokens,
            temperature=temperature,
            messages=messages,
        )
        elapsed_ms = (time.monotonic() - start) * 1000

        choice = response.choices[0] if response.choices else None
        content = choice.message.content or "" if choice else ""
        usage = response.usage
        return ProviderResponse(
            content=content,
            input_tokens=usage.prompt_tokens if usage else 0,
            output_tokens=usage.completion_tokens if usage else 0,
            model=self.model,
            latency_ms=elapsed_ms,
        )
