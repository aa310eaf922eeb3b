"""MCP tools for importing lab results.

An import runs extraction, normalization against the current metrics, and
the merge, then persists the result. A batch either merges completely or not
at all.
"""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING

from fastmcp import Context, FastMCP

from labtrend.domains.health.connectors.document_input import DocumentInputError, ExtractionInput
from labtrend.domains.health.connectors.mock_data import DEMO_LAB_TEXT
from labtrend.domains.health.domain_logic.records import MalformedBatchError
from labtrend.domains.health.services.extraction import ExtractionError
from labtrend.domains.health.tracker import OperationInProgressError

if TYPE_CHECKING:
    from labtrend.domains.health.tracker import HealthTracker

logger = logging.getLogger(__name__)


def register_import_tools(mcp: FastMCP, tracker: HealthTracker) -> None:
    """Register lab import tools on the MCP server."""

    @mcp.tool
    async def import_lab_results(
        ctx: Context,
        text: str = "",
        file_path: str = "",
        source_label: str = "",
    ) -> str:
        """Import lab results from pasted text or a document on disk.

        Values for markers you already track are added to their history;
        new markers become new metrics. Re-importing a result with the same
        date and value is ignored.

        Args:
            text: Lab results as free text or CSV. Ignored when file_path is set.
            file_path: Path to a PDF, image, CSV or text file.
            source_label: Label stored with each value. Defaults to the file
                name, or 'Manual Text Input' for pasted text.
        """
        try:
            if file_path:
                document = ExtractionInput.from_file(file_path, source_label)
            else:
                document = ExtractionInput.from_text(text, source_label)
        except DocumentInputError as exc:
            return json.dumps({"status": "error", "message": str(exc)})

        start_time = time.monotonic()
        try:
            result = await tracker.import_document(document)
        except OperationInProgressError as exc:
            return json.dumps({"status": "busy", "message": str(exc)})
        except (ExtractionError, MalformedBatchError) as exc:
            logger.warning("Import of %s failed: %s", document.source_label, exc)
            return json.dumps({
                "status": "error",
                "message": (
                    "Error parsing or normalizing data. "
                    "Please ensure the file format is valid."
                ),
                "detail": str(exc),
            })
        elapsed_ms = (time.monotonic() - start_time) * 1000

        return json.dumps({
            "status": "imported",
            "source": document.source_label,
            "added": sorted(result.added),
            "updated": sorted(result.updated),
            "metric_count": len(result.metrics),
            "duration_ms": round(elapsed_ms, 1),
        })

    @mcp.tool
    def get_demo_lab_text() -> str:
        """Return a sample lab panel that can be passed to import_lab_results."""
        return DEMO_LAB_TEXT
