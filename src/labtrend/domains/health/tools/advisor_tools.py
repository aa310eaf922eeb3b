"""MCP tools for the health advisor conversation."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from labtrend.domains.health.tracker import OperationInProgressError

if TYPE_CHECKING:
    from labtrend.domains.health.tracker import HealthTracker


def register_advisor_tools(mcp: FastMCP, tracker: HealthTracker) -> None:
    """Register advisor conversation tools on the MCP server."""

    @mcp.tool
    async def ask_health_advisor(ctx: Context, message: str) -> str:
        """Ask a question about your tracked lab results.

        The advisor sees the latest value and status of every metric and the
        conversation so far.

        Args:
            message: Your question.
        """
        if not message.strip():
            return json.dumps({"status": "error", "message": "Message is empty"})
        try:
            reply = await tracker.ask(message)
        except OperationInProgressError as exc:
            return json.dumps({"status": "busy", "message": str(exc)})
        return json.dumps({
            "status": "ok",
            "reply": reply,
            "turns": len(tracker.chat_history),
        })

    @mcp.tool
    def reset_advisor_conversation() -> str:
        """Start a new advisor conversation."""
        tracker.reset_conversation()
        return json.dumps({"status": "reset"})
