"""Tests for the extraction collaborator."""

from __future__ import annotations

import asyncio
import json

import pytest

from labtrend.core.llm.client import LLMClient
from labtrend.core.llm.providers.mock import MockProvider
from labtrend.domains.health.connectors.document_input import ExtractionInput
from labtrend.domains.health.connectors.mock_data import (
    DEMO_LAB_TEXT,
    demo_extraction_response,
    get_demo_records,
)
from labtrend.domains.health.services.extraction import ExtractionError, ExtractionService


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def _service(provider: MockProvider) -> ExtractionService:
    return ExtractionService(LLMClient(provider))


class TestExtract:
    def test_demo_panel(self):
        provider = MockProvider(demo_extraction_response())
        records = _run(_service(provider).extract(ExtractionInput.from_text(DEMO_LAB_TEXT)))

        assert records == get_demo_records()
        assert len(records) == 12
        assert "TSH 2.76 mIU/L" in provider.last_user_message
        assert "Categorize" in provider.last_system_message
        assert provider.last_attachment is None

    def test_attachment_is_forwarded(self):
        provider = MockProvider('{"metrics": []}')
        document = ExtractionInput.from_bytes(b"%PDF-1.4", "application/pdf", "panel.pdf")
        records = _run(_service(provider).extract(document))

        assert records == []
        assert provider.last_attachment == document.attachment
        assert "attached document" in provider.last_user_message

    def test_fenced_response(self):
        body = json.dumps({"metrics": [{"name": "TSH", "value": 2.1, "unit": "mIU/L", "status": "Normal"}]})
        provider = MockProvider(f"```json\n{body}\n```")
        records = _run(_service(provider).extract(ExtractionInput.from_text("TSH 2.1")))
        assert records[0]["name"] == "TSH"

    def test_provider_failure_raises(self):
        provider = MockProvider(error=ConnectionError("offline"))
        with pytest.raises(ExtractionError, match="offline"):
            _run(_service(provider).extract(ExtractionInput.from_text("TSH 2.1")))
        assert provider.call_count == 1

    @pytest.mark.parametrize("content", ["Sorry, I can't read that.", '{"results": []}', '{"metrics": ["TSH"]}'])
    def test_unusable_response_raises(self, content):
        provider = MockProvider(content)
        with pytest.raises(ExtractionError, match="Failed to parse"):
            _run(_service(provider).extract(ExtractionInput.from_text("TSH 2.1")))
