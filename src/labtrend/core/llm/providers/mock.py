"""Mock LLM provider for testing."""

from __future__ import annotations

from typing import Sequence

from labtrend.core.llm.provider import ChatTurn, DocumentAttachment, ProviderResponse


class MockProvider:
    """Mock provider for testing — returns canned responses.

    ``responses`` are returned in order, one per call, with
    ``response_content`` used once they run out. When ``error`` is set every
    call raises it instead.
    """

    def __init__(
        self,
        response_content: str = "Mock LLM response.",
        *,
        responses: Sequence[str] | None = None,
        error: Exception | None = None,
    ) -> None:
        self.response_content = response_content
        self.responses = list(responses or [])
        self.error = error
        self.last_system_message: str = ""
        self.last_user_message: str = ""
        self.last_history: list[ChatTurn] = []
        self.last_attachment: DocumentAttachment | None = None
        self.call_count: int = 0

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
        self.last_system_message = system_message
        self.last_user_message = user_message
        self.last_history = list(history or [])
        self.last_attachment = attachment
        self.call_count += 1
        if self.error is not None:
            raise self.error

        content = self.responses.pop(0) if self.responses else self.response_content
        return ProviderResponse(
            content=content,
            input_tokens=len(system_message.split()) + len(user_message.split()),
            output_tokens=len(content.split()),
            model="mock",
            latency_ms=0.0,
        )
