"""MCP tools for browsing and editing the metric history.

History is presented newest first. Deletion tools take the displayed
position and translate it to the stored (oldest-first) position before
editing.
"""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from fastmcp import Context, FastMCP

from labtrend.domains.health.domain_logic import metric_view
from labtrend.domains.health.domain_logic.metric_models import Metric

if TYPE_CHECKING:
    from labtrend.domains.health.tracker import HealthTracker

logger = logging.getLogger(__name__)


def metric_summary(metric: Metric) -> dict[str, Any]:
    """Card-level view of a metric."""
    return {
        "id": metric.id,
        "name": metric.name,
        "category": metric.category.value,
        "latest_value": metric.latest_value,
        "latest_unit": metric.latest_unit,
        "latest_date": metric.latest_date.isoformat(),
        "status": metric.status.value,
        "trend": metric_view.trend_direction(metric),
        "data_points": len(metric.data_points),
    }


def metric_detail(metric: Metric) -> dict[str, Any]:
    """Summary plus the newest-first history rows."""
    detail = metric_summary(metric)
    detail["history"] = [
        {
            "display_index": row.display_index,
            "date": row.point.date.isoformat(),
            "value": row.point.value,
            "unit": row.point.unit,
            "reference_range": row.point.reference_range,
            "out_of_range": row.point.is_out_of_range,
            "source": row.point.source_document,
        }
        for row in metric_view.history_rows(metric)
    ]
    return detail


def register_metric_tools(mcp: FastMCP, tracker: HealthTracker) -> None:
    """Register metric browsing and deletion tools on the MCP server."""

    @mcp.tool
    async def list_metrics(
        ctx: Context,
        search: str = "",
        category: str = metric_view.ALL_CATEGORIES,
        out_of_range_only: bool = False,
    ) -> str:
        """List tracked metrics, optionally filtered.

        With category 'All' the result is also grouped by category
        (Blood, Urine, Hormones, Body, Vitamins, Activity, Genetics, Other).

        Args:
            search: Case-insensitive substring of the metric name.
            category: 'All' or one category name.
            out_of_range_only: Only metrics whose latest status is High or Low.
        """
        metrics = tracker.metrics
        view = metric_view.build_view(metrics, search, category, out_of_range_only)
        payload: dict[str, Any] = {
            "status": "ok",
            "count": len(view.metrics),
            "categories": metric_view.available_categories(metrics),
            "metrics": [metric_summary(m) for m in view.metrics],
        }
        if view.groups is not None:
            payload["groups"] = [
                {"category": label, "metric_ids": [m.id for m in members]}
                for label, members in view.groups
            ]
        return json.dumps(payload, indent=2)

    @mcp.tool
    async def get_metric_history(ctx: Context, metric_id: str) -> str:
        """Show one metric with its full history, newest first.

        Args:
            metric_id: The metric id from list_metrics.
        """
        metric = tracker.get_metric(metric_id)
        if metric is None:
            return json.dumps({
                "status": "not_found",
                "metric_id": metric_id,
                "message": "No metric found with that ID.",
            })
        return json.dumps({"status": "ok", "metric": metric_detail(metric)}, indent=2)

    @mcp.tool
    async def delete_metric(ctx: Context, metric_id: str) -> str:
        """Permanently delete a metric and all of its history.

        Args:
            metric_id: The metric id from list_metrics.
        """
        deleted = tracker.delete_metric(metric_id)
        logger.info("delete_metric %s: %s", metric_id, "deleted" if deleted else "not found")
        return json.dumps({
            "status": "deleted" if deleted else "not_found",
            "metric_id": metric_id,
        })

    @mcp.tool
    async def delete_data_point(ctx: Context, metric_id: str, display_index: int) -> str:
        """Delete one value from a metric's history.

        Deleting the only value deletes the metric.

        Args:
            metric_id: The metric id from list_metrics.
            display_index: Position in get_metric_history's newest-first
                history (0 is the most recent value).
        """
        deleted = tracker.delete_display_point(metric_id, display_index)
        logger.info(
            "delete_data_point %s[%d]: %s", metric_id, display_index, "deleted" if deleted else "not found"
        )
        if not deleted:
            return json.dumps({
                "status": "not_found",
                "metric_id": metric_id,
                "display_index": display_index,
            })

        metric = tracker.get_metric(metric_id)
        return json.dumps({
            "status": "deleted",
            "metric_id": metric_id,
            "metric_removed": metric is None,
            "metric": metric_summary(metric) if metric is not None else None,
        })

    @mcp.tool
    async def delete_all_metrics(ctx: Context, confirm: str = "") -> str:
        """Permanently delete ALL tracked metrics.

        Args:
            confirm: Must be exactly 'DELETE_ALL' to proceed. Safety gate.
        """
        if confirm != "DELETE_ALL":
            logger.info("delete_all_metrics cancelled: confirmation missing")
            return json.dumps({
                "status": "cancelled",
                "message": (
                    "To delete all metrics, call this tool with "
                    "confirm='DELETE_ALL'. This action cannot be undone."
                ),
            })
        count = tracker.delete_all()
        return json.dumps({"status": "all_deleted", "metrics_deleted": count})
