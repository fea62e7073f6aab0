from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import numpy as np
import pytest

from covjson.core.axis import Axis
from covjson.core.domain import Domain
from covjson.core.indexing import (
    ExactValue,
    IndexSlice,
    NearestValue,
    ValueRange,
    normalize_index_constraints,
    parse_index_constraint,
    parse_value_constraint,
    resolve_value_constraint,
    resolve_value_constraints,
)
from covjson.errors import (
    InvalidConstraintError,
    InvalidConstraintTypeError,
    ValueNotFoundError,
)


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (3, IndexSlice(3, 4, 1)),
        (np.int64(3), IndexSlice(3, 4, 1)),
        ({"start": 2, "stop": 9, "step": 2}, IndexSlice(2, 9, 2)),
        ({"start": 2}, IndexSlice(2, 10, 1)),
        ({"stop": 5}, IndexSlice(0, 5, 1)),
        ({}, IndexSlice(0, 10, 1)),
        ({"start": 0, "stop": 100}, IndexSlice(0, 10, 1)),
        (slice(1, None, 3), IndexSlice(1, 10, 3)),
        (IndexSlice(4, 6, 1), IndexSlice(4, 6, 1)),
    ],
)
def test_parse_index_constraint(data: Any, expected: IndexSlice) -> None:
    assert parse_index_constraint("x", data, 10) == expected


def test_parse_index_constraint_none() -> None:
    assert parse_index_constraint("x", None, 10) is None


@pytest.mark.parametrize(
    "data",
    [
        -1,
        10,
        {"start": 5, "stop": 5},
        {"start": 6, "stop": 5},
        {"start": -1, "stop": 5},
        {"step": 0},
        {"step": -1},
        slice(None, None, -1),
    ],
)
def test_parse_index_constraint_invalid(data: Any) -> None:
    with pytest.raises(InvalidConstraintError):
        parse_index_constraint("x", data, 10)


@pytest.mark.parametrize("data", [1.5, "3", True, {"start": "0"}])
def test_parse_index_constraint_not_an_integer(data: Any) -> None:
    with pytest.raises(InvalidConstraintError, match="must be an integer"):
        parse_index_constraint("x", data, 10)


@pytest.mark.parametrize(
    ("start", "stop", "step", "count"),
    [(2, 9, 2, 4), (0, 10, 1, 10), (0, 8, 3, 3), (5, 6, 4, 1), (0, 10, 5, 2)],
)
def test_index_slice_count(start: int, stop: int, step: int, count: int) -> None:
    sl = IndexSlice(start, stop, step)
    assert sl.count == count
    assert sl.count == len(range(start, stop, step))


def test_normalize_index_constraints(grid_domain_data: dict[str, Any]) -> None:
    domain = Domain.from_dict(grid_domain_data)
    out = normalize_index_constraints({"x": 1, "t": None, "foo": 3, "y": {"start": 1}}, domain)
    assert out == {
        "x": IndexSlice(1, 2, 1),
        "y": IndexSlice(1, 3, 1),
        "t": IndexSlice(0, 2, 1),
        "z": IndexSlice(0, 1, 1),
    }


@pytest.mark.parametrize(
    ("data", "expected"),
    [
        (5, ExactValue(5)),
        (2.5, ExactValue(2.5)),
        ("a", ExactValue("a")),
        ({"target": 3}, NearestValue(3)),
        ({"start": 1, "stop": 2}, ValueRange(1, 2)),
        (NearestValue(1), NearestValue(1)),
    ],
)
def test_parse_value_constraint(data: Any, expected: Any) -> None:
    assert parse_value_constraint("x", data) == expected


@pytest.mark.parametrize("data", [{"start": 1}, {"foo": 1}, [1, 2], True])
def test_parse_value_constraint_invalid(data: Any) -> None:
    with pytest.raises(InvalidConstraintTypeError):
        parse_value_constraint("x", data)


@pytest.fixture
def numeric_axis() -> Axis:
    return Axis.from_dict("z", [0, 10, 20, 30])


@pytest.fixture
def time_axis() -> Axis:
    return Axis.from_dict(
        "t", ["2015-01-01T00:00:00Z", "2015-01-02T00:00:00Z", "2015-01-03T00:00:00Z"]
    )


def test_resolve_exact(numeric_axis: Axis) -> None:
    assert resolve_value_constraint(numeric_axis, ExactValue(20)) == 2


def test_resolve_exact_not_found(numeric_axis: Axis) -> None:
    with pytest.raises(ValueNotFoundError, match="99"):
        resolve_value_constraint(numeric_axis, ExactValue(99))


def test_resolve_nearest(numeric_axis: Axis) -> None:
    assert resolve_value_constraint(numeric_axis, NearestValue(12)) == 1
    assert resolve_value_constraint(numeric_axis, NearestValue(1000)) == 3


def test_resolve_range(numeric_axis: Axis) -> None:
    # 12 is bracketed by 1 and 2, 25 by 2 and 3
    assert resolve_value_constraint(numeric_axis, ValueRange(12, 25)) == IndexSlice(1, 4, 1)
    assert resolve_value_constraint(numeric_axis, ValueRange(10, 20)) == IndexSlice(1, 3, 1)
    assert resolve_value_constraint(numeric_axis, ValueRange(-5, 5)) == IndexSlice(0, 2, 1)


def test_resolve_numeric_constraint_on_string_axis() -> None:
    axis = Axis.from_dict("c", ["a", "b"])
    with pytest.raises(InvalidConstraintTypeError):
        resolve_value_constraint(axis, NearestValue(1))
    with pytest.raises(InvalidConstraintTypeError):
        resolve_value_constraint(axis, ValueRange(0, 1))
    assert resolve_value_constraint(axis, ExactValue("b")) == 1


def test_resolve_string_target_on_numeric_axis(numeric_axis: Axis) -> None:
    with pytest.raises(InvalidConstraintTypeError):
        resolve_value_constraint(numeric_axis, NearestValue("12"))


def test_resolve_time_exact(time_axis: Axis) -> None:
    assert resolve_value_constraint(time_axis, ExactValue("2015-01-02T00:00:00Z")) == 1
    # equal instants in other notations match too
    assert resolve_value_constraint(time_axis, ExactValue("2015-01-02T01:00:00+01:00")) == 1
    assert (
        resolve_value_constraint(time_axis, ExactValue(datetime(2015, 1, 3, tzinfo=UTC))) == 2
    )
    with pytest.raises(ValueNotFoundError):
        resolve_value_constraint(time_axis, ExactValue("2016-01-01T00:00:00Z"))


def test_resolve_time_nearest_and_range(time_axis: Axis) -> None:
    assert resolve_value_constraint(time_axis, NearestValue("2015-01-02T13:00:00Z")) == 2
    assert resolve_value_constraint(
        time_axis, ValueRange("2015-01-01T12:00:00Z", "2015-01-02T00:00:00Z")
    ) == IndexSlice(0, 2, 1)


def test_resolve_time_invalid(time_axis: Axis) -> None:
    with pytest.raises(InvalidConstraintTypeError):
        resolve_value_constraint(time_axis, NearestValue("yesterday"))


def test_resolve_value_constraints(grid_domain_data: dict[str, Any]) -> None:
    domain = Domain.from_dict(grid_domain_data)
    out = resolve_value_constraints(
        {"x": 20, "y": {"target": 50.6}, "t": None, "foo": 1}, domain
    )
    assert out == {"x": 2, "y": 1}


def test_resolve_on_axis_with_repeated_values() -> None:
    axis = Axis.from_dict("z", [0, 0, 10, 20, 30])
    assert resolve_value_constraint(axis, NearestValue(12)) == 2
    assert resolve_value_constraint(axis, ValueRange(12, 22)) == IndexSlice(2, 5, 1)


@pytest.mark.parametrize(
    "constraint",
    [ExactValue("2015-01-01T00:00:00Z"), NearestValue("2015-01-01"), ValueRange("2015", "2016")],
)
def test_resolve_on_axis_with_invalid_times(constraint: Any) -> None:
    axis = Axis.from_dict("t", ["20150101", "2015-01-02T00:00:00Z", "later"])
    assert axis.is_time
    with pytest.raises(InvalidConstraintTypeError, match="not ISO 8601"):
        resolve_value_constraint(axis, constraint)
