"""Extraction collaborator — structured lab records from raw documents."""

from __future__ import annotations

import logging
from typing import Any

from labtrend.core.llm.client import LLMClient, ProviderError
from labtrend.core.llm.response import ResponseFormatError, extract_metric_list, parse_json_payload
from labtrend.core.llm.system_prompt import EXTRACTION_SYSTEM_PROMPT, build_extraction_message
from labtrend.domains.health.connectors.document_input import ExtractionInput

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when a document cannot be turned into lab records."""


class ExtractionService:
    """Asks the LLM to extract ``{name, value, unit, ...}`` records.

    The records are returned as loose mappings; validation happens at merge
    time so a malformed batch is rejected as a whole.
    """

    def __init__(self, llm: LLMClient) -> None:
        self._llm = llm

    async def extract(self, document: ExtractionInput) -> list[dict[str, Any]]:
        """Extract lab records from text or an attached document.

        Raises:
            ExtractionError: If the call fails or the response is not a
                ``metrics`` list of objects. Not retried.
        """
        try:
            response = await self._llm.complete(
                EXTRACTION_SYSTEM_PROMPT,
                build_extraction_message(document.text),
                purpose="extraction",
                attachment=document.attachment,
                temperature=0.0,
            )
        except ProviderError as exc:
            raise ExtractionError(str(exc)) from exc

        try:
            records = extract_metric_list(parse_json_payload(response.content))
        except ResponseFormatError as exc:
            raise ExtractionError(f"Failed to parse extraction response: {exc}") from exc

        logger.info("Extracted %d record(s) from %s", len(records), document.source_label)
        return records
