"""LLM provider implementations."""

from labtrend.core.llm.providers.anthropic import AnthropicProvider
from labtrend.core.llm.providers.mock import MockProvider
from labtrend.core.llm.providers.openai import OpenAIProvider

__all__ = ["AnthropicProvider", "MockProvider", "OpenAIProvider"]
