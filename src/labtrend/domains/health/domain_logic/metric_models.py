"""Metric and data point models for longitudinal lab tracking.

A Metric is a named, categorized measurement tracked over time. Its data
points are kept ascending by date, and the ``latest_*``/``status`` fields are
a cached projection of the last point. Every path that changes the points
goes through :meth:`Metric.with_data_points`, which re-sorts and recomputes
the cache in one place.
"""

from __future__ import annotations

import dataclasses
import uuid
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Iterable

from labtrend.domains.health.domain_logic.reference_range import compare_to_range


class MetricCategory(str, Enum):
    BLOOD = "Blood"
    URINE = "Urine"
    HORMONES = "Hormones"
    VITAMINS = "Vitamins"
    ACTIVITY = "Activity"
    GENETICS = "Genetics"
    BODY = "Body"
    OTHER = "Other"

    @classmethod
    def parse(cls, value: Any) -> MetricCategory:
        """Case-insensitive lookup; absent or unrecognized values map to OTHER."""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            wanted = value.strip().lower()
            for member in cls:
                if member.value.lower() == wanted:
                    return member
        return cls.OTHER


class MetricStatus(str, Enum):
    OPTIMAL = "Optimal"
    BORDERLINE = "Borderline"
    HIGH = "High"
    LOW = "Low"
    NORMAL = "Normal"

    @property
    def is_out_of_range(self) -> bool:
        return self not in (MetricStatus.NORMAL, MetricStatus.OPTIMAL)

    @classmethod
    def parse(cls, value: Any) -> MetricStatus | None:
        """Map a status label from a lab report onto the enumeration.

        Exact names match case-insensitively; otherwise common report
        wording ("above range", "deficient", "borderline high") is mapped by
        keyword. Returns None for anything unrecognized.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value.strip():
            return None
        text = value.strip().lower()
        for member in cls:
            if member.value.lower() == text:
                return member
        # Borderline first: "borderline high" is not High
        if "borderline" in text:
            return cls.BORDERLINE
        if any(word in text for word in ("high", "above", "elevated")):
            return cls.HIGH
        if any(word in text for word in ("low", "below", "deficien", "insufficien")):
            return cls.LOW
        if "optimal" in text:
            return cls.OPTIMAL
        if any(word in text for word in ("normal", "within", "in range")):
            return cls.NORMAL
        return None


@dataclass(frozen=True)
class DataPoint:
    """One dated observation of a metric.

    ``status`` is kept per point so the metric status can be recomputed
    without loss when later points are deleted. Points persisted before the
    field existed load with ``status=None``.
    """

    date: date
    value: float
    unit: str
    reference_range: str | None = None
    is_out_of_range: bool = False
    source_document: str | None = None
    status: MetricStatus | None = None

    def resolved_status(self) -> MetricStatus:
        """Status of this point, derived when it was not recorded.

        Falls back to the reference range, then to the out-of-range flag.
        """
        if self.status is not None:
            return self.status
        derived = compare_to_range(self.value, self.reference_range)
        if derived is not None:
            return MetricStatus(derived.title())
        return MetricStatus.HIGH if self.is_out_of_range else MetricStatus.NORMAL

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "date": self.date.isoformat(),
            "value": self.value,
            "unit": self.unit,
            "isOutOfRange": self.is_out_of_range,
        }
        if self.reference_range is not None:
            data["referenceRange"] = self.reference_range
        if self.source_document is not None:
            data["sourceDoc"] = self.source_document
        if self.status is not None:
            data["status"] = self.status.value
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DataPoint:
        """Rebuild a point from its persisted form.

        Raises:
            KeyError, TypeError, ValueError: If a required field is missing
                or has the wrong type.
        """
        value = data["value"]
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TypeError(f"data point value must be numeric, got {value!r}")
        unit = data["unit"]
        if not isinstance(unit, str):
            raise TypeError(f"data point unit must be a string, got {unit!r}")
        reference_range = data.get("referenceRange")
        source_document = data.get("sourceDoc")
        return cls(
            date=date.fromisoformat(data["date"]),
            value=float(value),
            unit=unit,
            reference_range=reference_range if isinstance(reference_range, str) else None,
            is_out_of_range=bool(data.get("isOutOfRange", False)),
            source_document=source_document if isinstance(source_document, str) else None,
            status=MetricStatus.parse(data.get("status")),
        )


@dataclass(frozen=True)
class Metric:
    """A named lab metric with its ordered history.

    Instances are immutable; mutating operations return new instances.
    """

    id: str
    name: str
    category: MetricCategory
    data_points: tuple[DataPoint, ...]
    latest_value: float
    latest_unit: str
    latest_date: date
    status: MetricStatus

    @staticmethod
    def new_id() -> str:
        return str(uuid.uuid4())

    @classmethod
    def create(
        cls,
        name: str,
        category: MetricCategory,
        first_point: DataPoint,
        *,
        metric_id: str | None = None,
    ) -> Metric:
        """Create a metric holding a single data point."""
        return cls(
            id=metric_id or cls.new_id(),
            name=name,
            category=category,
            data_points=(first_point,),
            latest_value=first_point.value,
            latest_unit=first_point.unit,
            latest_date=first_point.date,
            status=first_point.resolved_status(),
        )

    def with_data_points(self, points: Iterable[DataPoint]) -> Metric:
        """Return a copy holding ``points`` sorted by date, with the cache refreshed.

        The sort is stable, so points sharing a date keep their given order.

        Raises:
            ValueError: If ``points`` is empty.
        """
        ordered = tuple(sorted(points, key=lambda p: p.date))
        if not ordered:
            raise ValueError(f"Metric {self.name!r} must keep at least one data point")
        last = ordered[-1]
        return dataclasses.replace(
            self,
            data_points=ordered,
            latest_value=last.value,
            latest_unit=last.unit,
            latest_date=last.date,
            status=last.resolved_status(),
        )

    @property
    def is_out_of_range(self) -> bool:
        return self.status in (MetricStatus.HIGH, MetricStatus.LOW)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "category": self.category.value,
            "dataPoints": [p.to_dict() for p in self.data_points],
            "latestValue": self.latest_value,
            "latestUnit": self.latest_unit,
            "latestDate": self.latest_date.isoformat(),
            "status": self.status.value,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Metric:
        """Rebuild a metric from its persisted form.

        Cached ``latest*`` fields are recomputed from the points rather than
        trusted. A stored metric-level status is carried onto a last point
        that predates per-point status.

        Raises:
            KeyError, TypeError, ValueError: If a required field is missing,
                has the wrong type, or the metric has no data points.
        """
        metric_id = data["id"]
        name = data["name"]
        if not isinstance(metric_id, str) or not metric_id:
            raise TypeError(f"metric id must be a non-empty string, got {metric_id!r}")
        if not isinstance(name, str) or not name:
            raise TypeError(f"metric name must be a non-empty string, got {name!r}")
        raw_points = data["dataPoints"]
        if not isinstance(raw_points, list) or not raw_points:
            raise ValueError(f"metric {name!r} has no data points")

        points = sorted((DataPoint.from_dict(p) for p in raw_points), key=lambda p: p.date)
        stored_status = MetricStatus.parse(data.get("status"))
        if points[-1].status is None and stored_status is not None:
            points[-1] = dataclasses.replace(points[-1], status=stored_status)

        return cls.create(
            name,
            MetricCategory.parse(data.get("category")),
            points[0],
            metric_id=metric_id,
        ).with_data_points(points)
