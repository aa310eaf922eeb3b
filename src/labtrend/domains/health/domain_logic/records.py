"""Validation of extracted lab records before they are merged.

Records arrive as loosely typed mappings from the extraction and
normalization collaborators. A batch is validated as a whole: if any record
is malformed nothing is merged, and a single error lists every problem.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from typing import Any, Iterable, Mapping

from labtrend.domains.health.domain_logic.metric_models import MetricCategory, MetricStatus

REQUIRED_FIELDS = ("name", "value", "unit", "status")


class MalformedRecordError(ValueError):
    """Raised when a single record cannot be turned into a data point."""

    def __init__(self, index: int, reason: str) -> None:
        super().__init__(f"record {index}: {reason}")
        self.index = index
        self.reason = reason


class MalformedBatchError(ValueError):
    """Raised when one or more records of a batch are malformed."""

    def __init__(self, errors: list[MalformedRecordError]) -> None:
        detail = "; ".join(str(e) for e in errors)
        super().__init__(f"{len(errors)} malformed record(s): {detail}")
        self.errors = errors


@dataclass(frozen=True)
class LabRecord:
    """A validated, normalized lab record ready to merge.

    ``date`` is None when the source document carried no collection date;
    the merge engine substitutes the current date.
    """

    name: str
    value: float
    unit: str
    status: MetricStatus
    category: MetricCategory = MetricCategory.OTHER
    date: date | None = None
    reference_range: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], index: int = 0) -> LabRecord:
        """Validate one extracted record.

        Accepts both ``referenceRange`` and ``reference_range`` spellings.

        Raises:
            MalformedRecordError: If a required field is missing or invalid.
        """
        if not isinstance(data, Mapping):
            raise MalformedRecordError(index, f"expected an object, got {type(data).__name__}")

        missing = [f for f in REQUIRED_FIELDS if data.get(f) is None]
        if missing:
            raise MalformedRecordError(index, f"missing {', '.join(missing)}")

        name = data["name"]
        if not isinstance(name, str) or not name.strip():
            raise MalformedRecordError(index, "name must be a non-empty string")

        value = _coerce_value(data["value"])
        if value is None:
            raise MalformedRecordError(index, f"value {data['value']!r} is not numeric")
        if not math.isfinite(value):
            raise MalformedRecordError(index, f"value {data['value']!r} is not finite")

        unit = data["unit"]
        if not isinstance(unit, str):
            raise MalformedRecordError(index, f"unit {unit!r} is not a string")

        status = MetricStatus.parse(data["status"])
        if status is None:
            raise MalformedRecordError(index, f"unrecognized status {data['status']!r}")

        raw_date = data.get("date")
        record_date: date | None = None
        if raw_date not in (None, ""):
            if not isinstance(raw_date, str):
                raise MalformedRecordError(index, f"date {raw_date!r} is not a string")
            try:
                record_date = date.fromisoformat(raw_date.strip()[:10])
            except ValueError:
                raise MalformedRecordError(index, f"date {raw_date!r} is not ISO 8601") from None

        reference_range = data.get("referenceRange", data.get("reference_range"))
        if isinstance(reference_range, str):
            reference_range = reference_range.strip() or None
        else:
            reference_range = None

        return cls(
            name=name.strip(),
            value=value,
            unit=unit.strip(),
            status=status,
            category=MetricCategory.parse(data.get("category")),
            date=record_date,
            reference_range=reference_range,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize in the shape the collaborators exchange."""
        data: dict[str, Any] = {
            "name": self.name,
            "value": self.value,
            "unit": self.unit,
            "category": self.category.value,
            "status": self.status.value,
        }
        if self.date is not None:
            data["date"] = self.date.isoformat()
        if self.reference_range is not None:
            data["referenceRange"] = self.reference_range
        return data


def _coerce_value(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return float(raw)
    if isinstance(raw, str):
        try:
            return float(raw.strip().replace(",", ""))
        except ValueError:
            return None
    return None


def validate_batch(records: Iterable[Mapping[str, Any]]) -> list[LabRecord]:
    """Validate every record of a batch.

    Raises:
        MalformedBatchError: If any record is malformed; carries one error
            per bad record.
    """
    valid: list[LabRecord] = []
    errors: list[MalformedRecordError] = []
    for index, data in enumerate(records):
        try:
            valid.append(LabRecord.from_mapping(data, index))
        except MalformedRecordError as exc:
            errors.append(exc)
    if errors:
        raise MalformedBatchError(errors)
    return valid
