"""Collaborator LLM client — the bridge between services and provider calls."""

from __future__ import annotations

import asyncio
import logging
from typing import Sequence

from labtrend.core.llm.provider import (
    ChatTurn,
    DocumentAttachment,
    LLMProvider,
    ProviderResponse,
)

logger = logging.getLogger(__name__)


class ProviderError(Exception):
    """Raised when a provider call fails or times out."""


class LLMClient:
    """Invokes the configured provider with a timeout and usage logging.

    Any provider failure surfaces as :class:`ProviderError`; services decide
    whether that is fatal (extraction), degraded (normalization) or replaced
    by a fallback message (advice).
    """

    def __init__(
        self,
        provider: LLMProvider,
        *,
        max_tokens: int = 4096,
        timeout_s: float = 120.0,
    ) -> None:
        self.provider = provider
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s

    async def complete(
        self,
        system_message: str,
        user_message: str,
        *,
        purpose: str,
        history: Sequence[ChatTurn] | None = None,
        attachment: DocumentAttachment | None = None,
        temperature: float = 0.2,
    ) -> ProviderResponse:
        """Call the provider once.

        Args:
            purpose: Short label for logs ("extraction", "advice", ...).

        Raises:
            ProviderError: If the call raises or exceeds ``timeout_s``.
        """
        try:
            response = await asyncio.wait_for(
                self.provider.generate(
                    system_message=system_message,
                    user_message=user_message,
                    max_tokens=self.max_tokens,
                    temperature=temperature,
                    history=history,
                    attachment=attachment,
                ),
                timeout=self.timeout_s,
            )
        except asyncio.TimeoutError as exc:
            raise ProviderError(
                f"{purpose} call timed out after {self.timeout_s:.0f}s"
            ) from exc
        except Exception as exc:
            raise ProviderError(f"{purpose} call failed: {exc}") from exc

        logger.info(
            "LLM call: purpose=%s, model=%s, tokens=%d+%d, latency=%.0fms",
            purpose,
            response.model,
            response.input_tokens,
            response.output_tokens,
            response.latency_ms,
        )
        return response
