"""Filtered and category-grouped projections of the metric list.

Everything here is a pure read of the store. This module is also the only
place that knows the history is displayed newest-first: it produces the
display rows and translates a display position back to the ascending index
the history editor expects.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from labtrend.domains.health.domain_logic.metric_models import (
    DataPoint,
    Metric,
    MetricCategory,
    MetricStatus,
)

ALL_CATEGORIES = "All"

CATEGORY_ORDER: list[MetricCategory] = [
    MetricCategory.BLOOD,
    MetricCategory.URINE,
    MetricCategory.HORMONES,
    MetricCategory.BODY,
    MetricCategory.VITAMINS,
    MetricCategory.ACTIVITY,
    MetricCategory.GENETICS,
    MetricCategory.OTHER,
]


@dataclass
class MetricView:
    """Filtered metrics, plus category groups when no category is selected."""

    metrics: list[Metric]
    groups: list[tuple[str, list[Metric]]] | None = None


@dataclass(frozen=True)
class HistoryRow:
    """One data point as displayed, newest first."""

    display_index: int
    point: DataPoint


def _category_label(category: MetricCategory | str) -> str:
    return category.value if isinstance(category, MetricCategory) else str(category)


def matches_search(metric: Metric, search_query: str) -> bool:
    return search_query.lower() in metric.name.lower()


def matches_category(metric: Metric, category_filter: str) -> bool:
    return category_filter == ALL_CATEGORIES or _category_label(metric.category) == category_filter


def matches_range(metric: Metric, out_of_range_only: bool) -> bool:
    return not out_of_range_only or metric.status in (MetricStatus.HIGH, MetricStatus.LOW)


def filter_metrics(
    metrics: Sequence[Metric],
    search_query: str = "",
    category_filter: str = ALL_CATEGORIES,
    out_of_range_only: bool = False,
) -> list[Metric]:
    """Apply search, category and out-of-range filters, keeping store order."""
    return [
        m
        for m in metrics
        if matches_search(m, search_query)
        and matches_category(m, category_filter)
        and matches_range(m, out_of_range_only)
    ]


def group_by_category(metrics: Sequence[Metric]) -> list[tuple[str, list[Metric]]]:
    """Bucket metrics by category in display priority order.

    Empty buckets are omitted. Categories outside ``CATEGORY_ORDER`` follow
    in first-seen order. Within a bucket, store order is kept.
    """
    buckets: dict[str, list[Metric]] = {}
    for metric in metrics:
        buckets.setdefault(_category_label(metric.category), []).append(metric)

    ordered = [c.value for c in CATEGORY_ORDER]
    ordered += [label for label in buckets if label not in ordered]
    return [(label, buckets[label]) for label in ordered if label in buckets]


def build_view(
    metrics: Sequence[Metric],
    search_query: str = "",
    category_filter: str = ALL_CATEGORIES,
    out_of_range_only: bool = False,
) -> MetricView:
    filtered = filter_metrics(metrics, search_query, category_filter, out_of_range_only)
    groups = group_by_category(filtered) if category_filter == ALL_CATEGORIES else None
    return MetricView(metrics=filtered, groups=groups)


def available_categories(metrics: Sequence[Metric]) -> list[str]:
    """The "All" sentinel followed by each category present, first-seen order."""
    seen: list[str] = []
    for metric in metrics:
        label = _category_label(metric.category)
        if label not in seen:
            seen.append(label)
    return [ALL_CATEGORIES, *seen]


def trend_direction(metric: Metric) -> str:
    """Compare the last two points: "up", "down" or "flat"."""
    if len(metric.data_points) < 2:
        return "flat"
    previous, current = metric.data_points[-2].value, metric.data_points[-1].value
    if current > previous:
        return "up"
    if current < previous:
        return "down"
    return "flat"


def history_rows(metric: Metric) -> list[HistoryRow]:
    """Data points newest first, numbered by display position."""
    return [
        HistoryRow(display_index=i, point=point)
        for i, point in enumerate(reversed(metric.data_points))
    ]


def ascending_index(metric: Metric, display_index: int) -> int:
    """Translate a newest-first display index into the ascending point index.

    Out-of-range display indices map to -1, which the history editor
    treats as a no-op.
    """
    count = len(metric.data_points)
    if not 0 <= display_index < count:
        return -1
    return count - 1 - display_index
