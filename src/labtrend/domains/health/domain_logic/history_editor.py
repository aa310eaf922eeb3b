"""Point-level and metric-level deletion over the metric list.

Both operations are pure and treat a missing target as a no-op: the desired
end state (absence) already holds. ``point_index`` always addresses the
ascending-by-date order of ``Metric.data_points``; newest-first display
indices are translated by :func:`metric_view.ascending_index` before they
reach this module.
"""

from __future__ import annotations

import logging
from typing import Sequence

from labtrend.domains.health.domain_logic.metric_models import Metric

logger = logging.getLogger(__name__)


def delete_metric(metrics: Sequence[Metric], metric_id: str) -> list[Metric]:
    """Remove the metric with ``metric_id`` and its whole history."""
    remaining = [m for m in metrics if m.id != metric_id]
    if len(remaining) == len(metrics):
        logger.debug("delete_metric: no metric with id %s", metric_id)
    else:
        logger.info("Deleted metric %s", metric_id)
    return remaining


def delete_data_point(
    metrics: Sequence[Metric],
    metric_id: str,
    point_index: int,
) -> list[Metric]:
    """Remove one data point from a metric.

    A metric whose only point is removed is dropped from the list. Otherwise
    its latest fields and status are recomputed from the new last point.
    Unknown ids and out-of-bounds indices (negative ones included) leave the
    list unchanged.
    """
    result: list[Metric] = []
    for metric in metrics:
        if metric.id != metric_id:
            result.append(metric)
            continue

        if not 0 <= point_index < len(metric.data_points):
            logger.debug(
                "delete_data_point: index %d out of bounds for %s (%d points)",
                point_index,
                metric.name,
                len(metric.data_points),
            )
            result.append(metric)
            continue

        points = metric.data_points[:point_index] + metric.data_points[point_index + 1:]
        if not points:
            logger.info("Removed last data point of %s; metric deleted", metric.name)
            continue

        result.append(metric.with_data_points(points))
        logger.info("Deleted data point %d of %s", point_index, metric.name)
    return result
