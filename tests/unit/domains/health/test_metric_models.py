"""Tests for Metric / DataPoint models and their persisted form."""

from __future__ import annotations

from datetime import date

import pytest

from labtrend.domains.health.domain_logic.metric_models import (
    DataPoint,
    Metric,
    MetricCategory,
    MetricStatus,
)


def _point(
    day: str,
    value: float,
    status: MetricStatus | None = MetricStatus.NORMAL,
    unit: str = "ng/mL",
    **kw,
) -> DataPoint:
    return DataPoint(date=date.fromisoformat(day), value=value, unit=unit, status=status, **kw)


class TestMetricStatus:
    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("Normal", MetricStatus.NORMAL),
            ("HIGH", MetricStatus.HIGH),
            ("low", MetricStatus.LOW),
            ("Borderline High", MetricStatus.BORDERLINE),
            ("Above range", MetricStatus.HIGH),
            ("Deficient", MetricStatus.LOW),
            ("Insufficient", MetricStatus.LOW),
            ("within range", MetricStatus.NORMAL),
            ("Optimal", MetricStatus.OPTIMAL),
        ],
    )
    def test_parse_maps_report_wording(self, text, expected):
        assert MetricStatus.parse(text) is expected

    @pytest.mark.parametrize("value", [None, "", "   ", "pending", 3])
    def test_parse_unrecognized_returns_none(self, value):
        assert MetricStatus.parse(value) is None

    def test_out_of_range_statuses(self):
        assert not MetricStatus.NORMAL.is_out_of_range
        assert not MetricStatus.OPTIMAL.is_out_of_range
        assert MetricStatus.HIGH.is_out_of_range
        assert MetricStatus.LOW.is_out_of_range
        assert MetricStatus.BORDERLINE.is_out_of_range


class TestMetricCategory:
    def test_parse_case_insensitive(self):
        assert MetricCategory.parse("vitamins") is MetricCategory.VITAMINS
        assert MetricCategory.parse(" Blood ") is MetricCategory.BLOOD

    @pytest.mark.parametrize("value", [None, "", "Lipids", 7])
    def test_unknown_maps_to_other(self, value):
        assert MetricCategory.parse(value) is MetricCategory.OTHER


class TestDataPointStatus:
    def test_recorded_status_wins(self):
        point = _point("2024-01-01", 500, MetricStatus.OPTIMAL, reference_range="10-20")
        assert point.resolved_status() is MetricStatus.OPTIMAL

    def test_derived_from_reference_range(self):
        assert _point("2024-01-01", 25, None, reference_range="30-100").resolved_status() is MetricStatus.LOW
        assert _point("2024-01-01", 120, None, reference_range="30-100").resolved_status() is MetricStatus.HIGH
        assert _point("2024-01-01", 50, None, reference_range="30-100").resolved_status() is MetricStatus.NORMAL

    def test_falls_back_to_out_of_range_flag(self):
        assert _point("2024-01-01", 1, None, is_out_of_range=True).resolved_status() is MetricStatus.HIGH
        assert _point("2024-01-01", 1, None).resolved_status() is MetricStatus.NORMAL


class TestWithDataPoints:
    def test_sorts_and_refreshes_latest(self):
        metric = Metric.create("Ferritin", MetricCategory.BLOOD, _point("2024-03-01", 50), metric_id="m1")
        updated = metric.with_data_points(
            [_point("2024-03-01", 50), _point("2023-01-01", 40), _point("2024-05-01", 10, MetricStatus.LOW, unit="ug/L")]
        )

        assert [p.value for p in updated.data_points] == [40, 50, 10]
        assert updated.latest_value == 10
        assert updated.latest_unit == "ug/L"
        assert updated.latest_date == date(2024, 5, 1)
        assert updated.status is MetricStatus.LOW
        assert updated.is_out_of_range
        # Original untouched
        assert len(metric.data_points) == 1

    def test_empty_points_rejected(self):
        metric = Metric.create("Ferritin", MetricCategory.BLOOD, _point("2024-03-01", 50))
        with pytest.raises(ValueError, match="at least one"):
            metric.with_data_points([])

    def test_borderline_is_not_out_of_range_at_metric_level(self):
        metric = Metric.create("LDL", MetricCategory.BLOOD, _point("2024-03-01", 125, MetricStatus.BORDERLINE))
        assert not metric.is_out_of_range

    def test_new_ids_are_unique(self):
        assert Metric.new_id() != Metric.new_id()


class TestSerialization:
    def test_to_dict_uses_persisted_keys(self):
        point = _point("2024-01-10", 2.76, reference_range="0.40-4.50", source_document="lab.pdf")
        data = Metric.create("TSH", MetricCategory.HORMONES, point, metric_id="m1").to_dict()

        assert data["id"] == "m1"
        assert data["category"] == "Hormones"
        assert data["latestDate"] == "2024-01-10"
        assert data["status"] == "Normal"
        assert data["dataPoints"][0] == {
            "date": "2024-01-10",
            "value": 2.76,
            "unit": "ng/mL",
            "isOutOfRange": False,
            "referenceRange": "0.40-4.50",
            "sourceDoc": "lab.pdf",
            "status": "Normal",
        }

    def test_from_dict_restores_metric(self):
        metric = Metric.create("TSH", MetricCategory.HORMONES, _point("2024-01-10", 2.76), metric_id="m1")
        metric = metric.with_data_points(metric.data_points + (_point("2024-06-01", 5.1, MetricStatus.HIGH),))
        assert Metric.from_dict(metric.to_dict()) == metric

    def test_from_dict_recomputes_cached_fields(self):
        data = {
            "id": "m1",
            "name": "TSH",
            "category": "Hormones",
            "dataPoints": [
                {"date": "2024-06-01", "value": 3.0, "unit": "mIU/L", "status": "Normal"},
                {"date": "2024-01-01", "value": 2.0, "unit": "mIU/L", "status": "Normal"},
            ],
            "latestValue": 999,
            "latestDate": "1999-01-01",
            "status": "Low",
        }
        metric = Metric.from_dict(data)
        assert metric.latest_value == 3.0
        assert metric.latest_date == date(2024, 6, 1)
        assert metric.status is MetricStatus.NORMAL

    def test_from_dict_carries_metric_status_to_statusless_last_point(self):
        data = {
            "id": "m1",
            "name": "Vitamin D",
            "category": "Vitamins",
            "dataPoints": [{"date": "2024-01-10", "value": 20, "unit": "ng/mL", "isOutOfRange": True}],
            "status": "Low",
        }
        metric = Metric.from_dict(data)
        assert metric.status is MetricStatus.LOW
        assert metric.data_points[-1].status is MetricStatus.LOW

    @pytest.mark.parametrize(
        "data",
        [
            {"name": "X", "dataPoints": []},
            {"id": "", "name": "X", "dataPoints": [{"date": "2024-01-01", "value": 1, "unit": "u"}]},
            {"id": "m1", "name": "X", "dataPoints": []},
            {"id": "m1", "name": "X", "dataPoints": [{"date": "2024-01-01", "value": "1", "unit": "u"}]},
            {"id": "m1", "name": "X", "dataPoints": [{"date": "2024-01-01", "value": True, "unit": "u"}]},
            {"id": "m1", "name": "X", "dataPoints": [{"date": "nope", "value": 1, "unit": "u"}]},
        ],
    )
    def test_from_dict_rejects_invalid(self, data):
        with pytest.raises((KeyError, TypeError, ValueError)):
            Metric.from_dict(data)
