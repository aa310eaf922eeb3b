"""Data point merge engine — reconciles extracted lab records into metrics.

Each record either creates a new metric, appends a data point to the metric
of the same name, or is discarded as a duplicate of an existing point with
the same date and value. The merge is a pure function: it takes the current
metric list and returns the next one, leaving persistence to the caller.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Callable, Iterable, Mapping, Sequence

from labtrend.domains.health.domain_logic.metric_models import DataPoint, Metric
from labtrend.domains.health.domain_logic.records import LabRecord, validate_batch

logger = logging.getLogger(__name__)


@dataclass
class MergeResult:
    """Outcome of merging one batch of records."""

    metrics: list[Metric]
    added: set[str] = field(default_factory=set)
    updated: set[str] = field(default_factory=set)

    @property
    def changed(self) -> bool:
        return bool(self.added or self.updated)


def build_data_point(record: LabRecord, source_label: str, today: date) -> DataPoint:
    """Turn a validated record into the candidate data point for a merge."""
    return DataPoint(
        date=record.date or today,
        value=record.value,
        unit=record.unit,
        reference_range=record.reference_range,
        is_out_of_range=record.status.is_out_of_range,
        source_document=source_label,
        status=record.status,
    )


def _is_duplicate(metric: Metric, candidate: DataPoint) -> bool:
    return any(
        p.date == candidate.date and p.value == candidate.value
        for p in metric.data_points
    )


def merge(
    metrics: Sequence[Metric],
    incoming: Iterable[Mapping[str, Any] | LabRecord],
    source_label: str,
    *,
    today: date | None = None,
    id_factory: Callable[[], str] | None = None,
) -> MergeResult:
    """Merge a batch of extracted records into the metric list.

    Records are processed in input order; a later record sees the effect of
    an earlier one with the same name. Names are matched exactly.

    Args:
        metrics: Current metrics, in store order. Not modified.
        incoming: Records as mappings (validated here) or LabRecords.
        source_label: Recorded as the source document of every new point.
        today: Date used for records without a collection date. Defaults
            to the current local date.
        id_factory: Generates ids for new metrics. Defaults to uuid4.

    Returns:
        The next metric list with the names that were added and updated.

    Raises:
        MalformedBatchError: If any record is malformed. Nothing is merged.
    """
    records = _validate(incoming)
    today = today or date.today()
    new_id = id_factory or Metric.new_id

    result = MergeResult(metrics=list(metrics))
    positions = {m.name: i for i, m in enumerate(result.metrics)}

    for record in records:
        candidate = build_data_point(record, source_label, today)
        position = positions.get(record.name)

        if position is None:
            metric = Metric.create(record.name, record.category, candidate, metric_id=new_id())
            positions[record.name] = len(result.metrics)
            result.metrics.append(metric)
            result.added.add(record.name)
            continue

        existing = result.metrics[position]
        if _is_duplicate(existing, candidate):
            logger.debug(
                "Skipping duplicate point for %s on %s", record.name, candidate.date
            )
            continue

        result.metrics[position] = existing.with_data_points(
            existing.data_points + (candidate,)
        )
        result.updated.add(record.name)

    logger.info(
        "Merged %d record(s) from %r: %d added, %d updated",
        len(records),
        source_label,
        len(result.added),
        len(result.updated),
    )
    return result


def _validate(incoming: Iterable[Mapping[str, Any] | LabRecord]) -> list[LabRecord]:
    items = list(incoming)
    if all(isinstance(item, LabRecord) for item in items):
        return items  # type: ignore[return-value]
    return validate_batch(
        item.to_dict() if isinstance(item, LabRecord) else item for item in items
    )
