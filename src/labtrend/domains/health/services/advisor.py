"""Advice collaborator — conversational guidance grounded in the metrics."""

from __future__ import annotations

import logging
from typing import Sequence

from labtrend.core.llm.client import LLMClient, ProviderError
from labtrend.core.llm.provider import ChatTurn
from labtrend.core.llm.system_prompt import build_advisor_system_prompt
from labtrend.domains.health.domain_logic.metric_models import Metric

logger = logging.getLogger(__name__)

CONNECTION_ERROR_REPLY = "Error connecting to AI. Please check your connection."
EMPTY_REPLY = "I couldn't generate a response."


def _format_value(value: float) -> str:
    return f"{value:g}"


def build_profile_summary(metrics: Sequence[Metric]) -> str:
    """One line per metric: ``- name: value unit (status) on date``."""
    return "\n".join(
        f"- {m.name}: {_format_value(m.latest_value)} {m.latest_unit} "
        f"({m.status.value}) on {m.latest_date.isoformat()}"
        for m in metrics
    )


class AdvisorService:
    """Stateless per call: the conversation history is passed in each time."""

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def converse(
        self,
        message: str,
        metrics: Sequence[Metric],
        prior_turns: Sequence[ChatTurn] = (),
    ) -> str:
        """Answer ``message`` in the context of the user's metrics.

        Never raises for collaborator failures: they yield
        :data:`CONNECTION_ERROR_REPLY`.
        """
        system_message = build_advisor_system_prompt(build_profile_summary(metrics))
        try:
            response = await self._llm.complete(
                system_message,
                message,
                purpose="advice",
                history=list(prior_turns),
                temperature=0.5,
            )
        except ProviderError as exc:
            logger.error("Advice call failed: %s", exc)
            return CONNECTION_ERROR_REPLY

        return response.content.strip() or EMPTY_REPLY
