"""LLM provider protocol — abstract interface for collaborator LLM calls."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Protocol, Sequence, runtime_checkable


@dataclass
class ProviderResponse:
    """Response from an LLM provider."""

    content: str
    input_tokens: int
    output_tokens: int
    model: str
    latency_ms: float


@dataclass(frozen=True)
class ChatTurn:
    """One prior turn of an advice conversation."""

    role: Literal["user", "model"]
    text: str


@dataclass(frozen=True)
class DocumentAttachment:
    """A binary document (PDF or image) sent alongside the prompt."""

    mime_type: str
    data: str  # base64

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")


@runtime_checkable
class LLMProvider(Protocol):
    """Abstract interface for collaborator LLM calls."""

    async def generate(
        self,
        system_message: str,
        user_message: str,
        max_tokens: int = 2048,
        temperature: float = 0.3,
        *,
        history: Sequence[ChatTurn] | None = None,
        attachment: DocumentAttachment | None = None,
    ) -> ProviderResponse: ...


def create_provider(
    provider_name: str,
    api_key: str = "",
    model: str = "",
) -> LLMProvider:
    """Factory function to create an LLM provider by name.

    Args:
        provider_name: "anthropic", "openai", or "mock"
        api_key: API key for the provider.
        model: Model identifier override.

    Returns:
        An LLMProvider instance.
    """
    if provider_name == "anthropic":
        from labtrend.core.llm.providers.anthropic import AnthropicProvider

        return AnthropicProvider(api_key=api_key, model=model or "claude-sonnet-4-5-20250929")
    elif provider_name == "openai":
        from labtrend.core.llm.providers.openai import OpenAIProvider

        return OpenAIProvider(api_key=api_key, model=model or "gpt-4o")
    elif provider_name == "mock":
        from labtrend.core.llm.providers.mock import MockProvider

        return MockProvider()
    else:
        raise ValueError(f"Unknown LLM provider: {provider_name}")
