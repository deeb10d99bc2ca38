"""Tests for the series aligner."""

import pytest

from treasury_series.core.exceptions import ValidationError
from treasury_series.core.models import DayPoint
from treasury_series.series.aligner import align, extend_single_point, sum_keys

from conftest import DAY


def points(key: str, *pairs: tuple[int, int]) -> list[DayPoint]:
    return [DayPoint(day=day, values={key: value}) for day, value in pairs]


class TestAlign:
    """Tests for align."""

    def test_independent_forward_fill(self):
        a = points("a", (0, 1), (2 * DAY, 3))
        b = points("b", (DAY, 10))

        merged = align({"a": a, "b": b}, 0, 2 * DAY)

        assert [p.day for p in merged] == [0, DAY, 2 * DAY]
        assert merged[0].values == {"a": 1}
        assert merged[1].values == {"a": 1, "b": 10}
        assert merged[2].values == {"a": 3, "b": 10}

    def test_absent_before_first_value(self):
        """Keys are never zero-filled before their series starts."""
        merged = align({"a": points("a", (0, 1)), "b": points("b", (DAY, 2))}, 0, DAY)
        assert "b" not in merged[0].values

    def test_seeded_from_before_range(self):
        a = points("a", (0, 7))
        b = points("b", (3 * DAY, 1))

        merged = align({"a": a, "b": b}, 2 * DAY, 4 * DAY)

        assert merged == [DayPoint(day=3 * DAY, values={"a": 7, "b": 1})]

    def test_points_after_range_dropped(self):
        merged = align({"a": points("a", (0, 1), (5 * DAY, 2))}, 0, DAY)
        assert [p.day for p in merged] == [0]

    def test_days_strictly_increasing(self):
        a = points("a", (2 * DAY, 1), (0, 2), (DAY, 3))
        days = [p.day for p in align({"a": a}, 0, 3 * DAY)]
        assert days == sorted(set(days))

    def test_idempotent(self):
        a = points("a", (0, 1), (2 * DAY, 3))
        once = align({"a": a}, 0, 3 * DAY)
        assert align({"a": once}, 0, 3 * DAY) == once

    def test_empty_sources(self):
        assert align({}, 0, DAY) == []
        assert align({"a": []}, 0, DAY) == []

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError):
            align({"a": []}, DAY, 0)


class TestHelpers:
    """Tests for extend_single_point and sum_keys."""

    def test_single_point_extended(self):
        extended = extend_single_point(points("a", (DAY, 5)), 0, 3 * DAY)
        assert [p.day for p in extended] == [0, 3 * DAY]
        assert all(p.values == {"a": 5} for p in extended)

    def test_multiple_points_untouched(self):
        series = points("a", (0, 1), (DAY, 2))
        assert extend_single_point(series, 0, 3 * DAY) == series

    def test_sum_keys(self):
        series = [
            DayPoint(day=0, values={"x": 1}),
            DayPoint(day=DAY, values={"x": 1, "y": 2}),
            DayPoint(day=2 * DAY, values={}),
        ]
        summed = sum_keys(series, ["x", "y"], "total")

        assert summed[0].values["total"] == 1
        assert summed[1].values["total"] == 3
        assert "total" not in summed[2].values
