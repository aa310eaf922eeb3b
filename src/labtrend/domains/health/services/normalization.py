"""Normalization collaborator — aligns new records with existing metrics.

Semantically equivalent markers ("WBC" / "White Blood Cell Count") are
renamed to the existing metric name and converted into its unit, so the
merge engine's exact-name match finds them. Normalization never blocks an
import: on any failure the records pass through unchanged.
"""

from __future__ import annotations

import logging
from typing import Any, Sequence

from labtrend.core.llm.client import LLMClient, ProviderError
from labtrend.core.llm.response import ResponseFormatError, extract_metric_list, parse_json_payload
from labtrend.core.llm.system_prompt import (
    NORMALIZATION_SYSTEM_PROMPT,
    build_normalization_message,
)
from labtrend.domains.health.domain_logic.metric_models import Metric
from labtrend.domains.health.domain_logic.records import MalformedBatchError, validate_batch

logger = logging.getLogger(__name__)


def summarize_existing(metrics: Sequence[Metric]) -> list[dict[str, str]]:
    """The ``{id, name, unit}`` view of existing metrics sent for matching."""
    return [{"id": m.id, "name": m.name, "unit": m.latest_unit} for m in metrics]


class NormalizationService:
    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def normalize(
        self,
        records: list[dict[str, Any]],
        existing: Sequence[Metric],
    ) -> list[dict[str, Any]]:
        """Return ``records`` renamed/converted against ``existing``.

        With no existing metrics, or no records, nothing is sent. A failed
        call, a response that is not one object per input record, or one whose
        records fail validation returns ``records`` unchanged.
        """
        if not existing or not records:
            return records

        try:
            response = await self._llm.complete(
                NORMALIZATION_SYSTEM_PROMPT,
                build_normalization_message(records, summarize_existing(existing)),
                purpose="normalization",
                temperature=0.0,
            )
            normalized = extract_metric_list(parse_json_payload(response.content))
        except (ProviderError, ResponseFormatError) as exc:
            logger.warning("Normalization unavailable, importing records as extracted: %s", exc)
            return records

        if len(normalized) != len(records):
            logger.warning(
                "Normalization returned %d record(s) for %d input(s); ignoring it",
                len(normalized),
                len(records),
            )
            return records

        try:
            validate_batch(normalized)
        except MalformedBatchError as exc:
            logger.warning("Normalization returned malformed records; ignoring it: %s", exc)
            return records

        renamed = sum(1 for a, b in zip(records, normalized) if a.get("name") != b.get("name"))
        logger.info("Normalized %d record(s), %d renamed", len(normalized), renamed)
        return normalized
