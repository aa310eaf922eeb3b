"""MCP Prompts — pre-built interaction templates for lab tracking journeys."""

from __future__ import annotations

from fastmcp import FastMCP


def register_health_prompts(mcp: FastMCP) -> None:
    """Register health domain MCP prompts."""

    @mcp.prompt()
    def review_out_of_range_prompt() -> str:
        """Prompt template for reviewing metrics that are out of range."""
        return """Please review my lab results that are currently out of range:

1. List my metrics whose latest status is High or Low
2. Show how each of them has changed over my earlier results
3. Explain possible causes and lifestyle factors for each
4. Suggest what to discuss with my doctor

Please be honest but encouraging."""

    @mcp.prompt()
    def import_lab_report_prompt(file_path: str) -> str:
        """Prompt template for importing a new lab report."""
        return f"""Please import the lab report at {file_path}, then tell me:

1. Which markers were new and which were added to my existing history
2. Any marker whose latest value changed status
3. Anything in this report that deserves a closer look"""
