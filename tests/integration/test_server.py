"""Integration tests for the LabTrend MCP server."""

from __future__ import annotations

import asyncio
import json
import logging

import pytest
from fastmcp import Client

from labtrend.core.llm.providers.mock import MockProvider
from labtrend.core.server.app import create_app
from labtrend.domains.health.connectors.mock_data import DEMO_LAB_TEXT, demo_extraction_response


def _run(coro):
    """Run an async coroutine synchronously (no pytest-asyncio required)."""
    loop = asyncio.new_event_loop()
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


async def _call(client: Client, tool: str, args: dict | None = None) -> dict:
    result = await client.call_tool(tool, args or {})
    return json.loads(result.content[0].text)


ALL_EXPECTED_TOOLS = [
    "health_check",
    "import_lab_results",
    "get_demo_lab_text",
    "list_metrics",
    "get_metric_history",
    "delete_metric",
    "delete_data_point",
    "delete_all_metrics",
    "ask_health_advisor",
    "reset_advisor_conversation",
]


@pytest.fixture
def client():
    """MCP client for an in-memory server whose collaborators return the demo panel."""
    mcp = create_app(provider_override=MockProvider(demo_extraction_response()), persist=False)
    return Client(mcp)


def test_server_starts_and_lists_tools(client):
    """Server should start and expose all registered tools."""
    async def _check():
        async with client:
            tools = await client.list_tools()
            tool_names = [t.name for t in tools]
            for expected in ALL_EXPECTED_TOOLS:
                assert expected in tool_names, f"Missing tool: {expected}"
    _run(_check())


def test_prompts_registered(client):
    async def _check():
        async with client:
            prompts = await client.list_prompts()
            names = [p.name for p in prompts]
            assert "review_out_of_range_prompt" in names
            assert "import_lab_report_prompt" in names
    _run(_check())


def test_health_check_returns_ok(client):
    """health_check tool should return status ok."""
    async def _check():
        async with client:
            result = await client.call_tool("health_check", {})
            result_text = str(result)
            assert "ok" in result_text
            assert "metrics_tracked" in result_text
    _run(_check())


def test_demo_import_then_browse(client):
    """Importing the demo panel creates metrics that list and filter."""
    async def _check():
        async with client:
            imported = await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
            assert imported["status"] == "imported"
            assert imported["source"] == "Manual Text Input"
            assert len(imported["added"]) == 12
            assert imported["updated"] == []

            listing = await _call(client, "list_metrics")
            assert listing["count"] == 12
            assert listing["groups"][0]["category"] == "Blood"
            assert "Hormones" in listing["categories"]

            flagged = await _call(client, "list_metrics", {"out_of_range_only": True})
            assert {m["name"] for m in flagged["metrics"]} == {"Vitamin D, 25-OH, Total", "LDL Cholesterol"}

            hormones = await _call(client, "list_metrics", {"category": "Hormones", "search": "tsh"})
            assert [m["name"] for m in hormones["metrics"]] == ["TSH"]
            assert "groups" not in hormones
    _run(_check())


def test_reimport_is_idempotent(client):
    async def _check():
        async with client:
            await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
            again = await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
            assert again["added"] == []
            assert again["updated"] == []
            assert again["metric_count"] == 12
    _run(_check())


def test_history_and_point_deletion(client):
    async def _check():
        async with client:
            await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
            listing = await _call(client, "list_metrics", {"search": "Ferritin"})
            metric_id = listing["metrics"][0]["id"]

            history = await _call(client, "get_metric_history", {"metric_id": metric_id})
            assert history["metric"]["history"][0]["display_index"] == 0
            assert history["metric"]["history"][0]["source"] == "Manual Text Input"

            missing = await _call(client, "delete_data_point", {"metric_id": metric_id, "display_index": 3})
            assert missing["status"] == "not_found"

            deleted = await _call(client, "delete_data_point", {"metric_id": metric_id, "display_index": 0})
            assert deleted["status"] == "deleted"
            assert deleted["metric_removed"] is True

            gone = await _call(client, "get_metric_history", {"metric_id": metric_id})
            assert gone["status"] == "not_found"
    _run(_check())


def test_delete_metric_and_delete_all(client):
    async def _check():
        async with client:
            await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
            listing = await _call(client, "list_metrics")
            first_id = listing["metrics"][0]["id"]

            assert (await _call(client, "delete_metric", {"metric_id": first_id}))["status"] == "deleted"
            assert (await _call(client, "delete_metric", {"metric_id": first_id}))["status"] == "not_found"

            cancelled = await _call(client, "delete_all_metrics")
            assert cancelled["status"] == "cancelled"

            wiped = await _call(client, "delete_all_metrics", {"confirm": "DELETE_ALL"})
            assert wiped == {"status": "all_deleted", "metrics_deleted": 11}
            assert (await _call(client, "list_metrics"))["count"] == 0
    _run(_check())


def test_deletions_are_logged(client, caplog):
    async def _check():
        async with client:
            await _call(client, "delete_metric", {"metric_id": "missing"})
            await _call(client, "delete_all_metrics")

    with caplog.at_level(logging.INFO, logger="labtrend.domains.health.tools.metric_tools"):
        _run(_check())
    messages = [r.getMessage() for r in caplog.records if r.name.endswith("metric_tools")]
    assert "delete_metric missing: not found" in messages
    assert "delete_all_metrics cancelled: confirmation missing" in messages


def test_import_rejects_empty_input(client):
    async def _check():
        async with client:
            result = await _call(client, "import_lab_results", {"text": "   "})
            assert result["status"] == "error"
    _run(_check())


def test_import_reports_unparseable_extraction():
    mcp = create_app(provider_override=MockProvider("I can't read this."), persist=False)

    async def _check():
        async with Client(mcp) as client:
            result = await _call(client, "import_lab_results", {"text": "TSH 2.1"})
            assert result["status"] == "error"
            assert "Please ensure the file format is valid" in result["message"]
    _run(_check())


def test_import_from_file(client, tmp_path):
    path = tmp_path / "panel.txt"
    path.write_text(DEMO_LAB_TEXT)

    async def _check():
        async with client:
            result = await _call(client, "import_lab_results", {"file_path": str(path)})
            assert result["status"] == "imported"
            assert result["source"] == "panel.txt"
    _run(_check())


def test_advisor_conversation():
    provider = MockProvider(responses=[demo_extraction_response(), "Your vitamin D is low."])
    mcp = create_app(provider_override=provider, persist=False)

    async def _check():
        async with Client(mcp) as client:
            await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
            answer = await _call(client, "ask_health_advisor", {"message": "What stands out?"})
            assert answer == {"status": "ok", "reply": "Your vitamin D is low.", "turns": 2}
            assert "Vitamin D, 25-OH, Total: 20 ng/mL (Low)" in provider.last_system_message

            empty = await _call(client, "ask_health_advisor", {"message": " "})
            assert empty["status"] == "error"

            reset = await _call(client, "reset_advisor_conversation")
            assert reset["status"] == "reset"
    _run(_check())


def test_metrics_survive_restart(metric_store):
    """A second server on the same store sees the first server's imports."""
    first = create_app(provider_override=MockProvider(demo_extraction_response()), store_override=metric_store)

    async def _import():
        async with Client(first) as client:
            await _call(client, "import_lab_results", {"text": DEMO_LAB_TEXT})
    _run(_import())

    second = create_app(provider_override=MockProvider(), store_override=metric_store)

    async def _check():
        async with Client(second) as client:
            listing = await _call(client, "list_metrics")
            assert listing["count"] == 12
            health = await _call(client, "health_check")
            assert health["storage_enabled"] is True
    _run(_check())
