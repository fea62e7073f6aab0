"""
Normalization of the constraints accepted by ``subset_by_index`` and ``subset_by_value``.

Index constraints are normalized to one ``IndexSlice`` per domain axis. Value constraints are
decided once into one of three tagged variants (``ExactValue``, ``NearestValue``,
``ValueRange``) and then resolved against the axis values to an ``IndexSlice``.
"""

from __future__ import annotations

import numbers
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, TypeAlias

import numpy as np

from covjson.core.common import as_time, ceildiv, is_number
from covjson.core.search import index_of_exact, index_of_nearest, indices_of_nearest
from covjson.errors import (
    InvalidConstraintError,
    InvalidConstraintTypeError,
    ValueNotFoundError,
)

if TYPE_CHECKING:
    import numpy.typing as npt

    from covjson.core.axis import Axis
    from covjson.core.common import IndexSliceDict
    from covjson.core.domain import Domain

__all__ = [
    "ExactValue",
    "IndexConstraint",
    "IndexSlice",
    "NearestValue",
    "ValueConstraint",
    "ValueRange",
    "normalize_index_constraints",
    "parse_index_constraint",
    "parse_value_constraint",
    "resolve_value_constraint",
    "resolve_value_constraints",
]


@dataclass(frozen=True)
class IndexSlice:
    """
    A normalized selection of indices ``start, start + step, ...`` below ``stop`` along one axis.
    """

    start: int
    stop: int
    step: int = 1

    @property
    def count(self) -> int:
        """Number of selected indices."""
        return ceildiv(self.stop - self.start, self.step)

    def as_slice(self) -> slice:
        return slice(self.start, self.stop, self.step)

    @classmethod
    def full(cls, length: int) -> IndexSlice:
        return cls(0, length, 1)


IndexConstraint: TypeAlias = "int | slice | IndexSlice | IndexSliceDict | None"


def _parse_int(axis_name: str, key: str, value: object) -> int:
    if isinstance(value, bool) or not isinstance(value, numbers.Integral):
        raise InvalidConstraintError(axis_name, f"{key}={value!r} must be an integer")
    return int(value)


def parse_index_constraint(axis_name: str, data: object, length: int) -> IndexSlice | None:
    """
    Normalize one index constraint for an axis of ``length`` values.

    An integer ``i`` selects ``{start: i, stop: i + 1}``. Mappings and slices may omit any of
    ``start`` (0), ``stop`` (the axis length) and ``step`` (1). ``stop`` is clamped to the axis
    length. ``None`` means no constraint.
    """
    if data is None:
        return None
    if isinstance(data, IndexSlice):
        start, stop, step = data.start, data.stop, data.step
    elif isinstance(data, slice):
        start = 0 if data.start is None else _parse_int(axis_name, "start", data.start)
        stop = length if data.stop is None else _parse_int(axis_name, "stop", data.stop)
        step = 1 if data.step is None else _parse_int(axis_name, "step", data.step)
    elif isinstance(data, Mapping):
        start = _parse_int(axis_name, "start", data.get("start", 0))
        stop = _parse_int(axis_name, "stop", data.get("stop", length))
        step = _parse_int(axis_name, "step", data.get("step", 1))
    else:
        start = _parse_int(axis_name, "index", data)
        stop = start + 1
        step = 1

    if step <= 0:
        raise InvalidConstraintError(axis_name, f"step={step} must be > 0")
    stop = min(stop, length)
    if start >= stop or start < 0:
        raise InvalidConstraintError(
            axis_name, f"stop={stop} must be > start={start} and both >= 0"
        )
    return IndexSlice(start, stop, step)


def normalize_index_constraints(
    constraints: Mapping[str, IndexConstraint], domain: Domain
) -> dict[str, IndexSlice]:
    """
    Return one ``IndexSlice`` for every axis of ``domain``. Constraints on unknown axes and
    ``None`` constraints are ignored, unconstrained axes select their full extent.
    """
    out: dict[str, IndexSlice] = {}
    for name, data in constraints.items():
        if name not in domain.axes:
            continue
        parsed = parse_index_constraint(name, data, len(domain.axes[name]))
        if parsed is not None:
            out[name] = parsed
    for name, axis in domain.axes.items():
        if name not in out:
            out[name] = IndexSlice.full(len(axis))
    return out


@dataclass(frozen=True)
class ExactValue:
    """Select the axis index whose value equals ``value``."""

    value: Any


@dataclass(frozen=True)
class NearestValue:
    """Select the axis index whose value is closest to ``target``."""

    target: Any


@dataclass(frozen=True)
class ValueRange:
    """Select the axis indices spanning the values from ``start`` to ``stop``."""

    start: Any
    stop: Any


ValueConstraint: TypeAlias = ExactValue | NearestValue | ValueRange


def _is_scalar(data: object) -> bool:
    return is_number(data) or isinstance(data, str | datetime)


def parse_value_constraint(axis_name: str, data: object) -> ValueConstraint | None:
    """
    Decide which kind of value constraint ``data`` is.

    - a number, string or datetime is an exact match
    - a mapping with ``target`` is a nearest-value search
    - a mapping with ``start`` and ``stop`` is a value range
    """
    if data is None:
        return None
    if isinstance(data, ExactValue | NearestValue | ValueRange):
        return data
    if _is_scalar(data):
        return ExactValue(data)
    if isinstance(data, Mapping):
        if "target" in data:
            return NearestValue(data["target"])
        if "start" in data and "stop" in data:
            return ValueRange(data["start"], data["stop"])
    raise InvalidConstraintTypeError(f"Invalid subset constraint for axis {axis_name!r}: {data!r}")


def _time(axis_name: str, value: object) -> float:
    try:
        return as_time(value)
    except (TypeError, ValueError) as e:
        raise InvalidConstraintTypeError(
            f"Invalid time constraint for axis {axis_name!r}: {value!r}"
        ) from e


def _axis_times(axis: Axis) -> npt.NDArray[np.float64]:
    try:
        return axis.as_times()
    except (TypeError, ValueError) as e:
        raise InvalidConstraintTypeError(
            f"Axis {axis.name!r} holds values that are not ISO 8601 datetimes"
        ) from e


def _numeric_values(axis: Axis, *targets: object) -> npt.NDArray[np.float64]:
    if not axis.is_numeric or not all(is_number(t) for t in targets):
        raise InvalidConstraintTypeError(
            f"Invalid axis or constraint value type for axis {axis.name!r}: {targets!r}"
        )
    return axis.values


def resolve_value_constraint(axis: Axis, constraint: ValueConstraint) -> int | IndexSlice:
    """
    Translate a value constraint into an index (exact and nearest) or an index slice (range).

    Time axes compare as POSIX timestamps. The range bracket is the span of the lower and
    upper neighbours of both endpoints, so it may include one extra index on either side when
    an endpoint falls between two axis values.
    """
    is_time = axis.is_time
    if isinstance(constraint, ExactValue):
        if is_time:
            i = index_of_exact(_axis_times(axis), _time(axis.name, constraint.value))
        else:
            i = index_of_exact(axis.values, constraint.value)
        if i == -1:
            raise ValueNotFoundError(axis.name, constraint.value)
        return i

    if isinstance(constraint, NearestValue):
        if is_time:
            return index_of_nearest(_axis_times(axis), _time(axis.name, constraint.target))
        return index_of_nearest(_numeric_values(axis, constraint.target), constraint.target)

    if isinstance(constraint, ValueRange):
        if is_time:
            values = _axis_times(axis)
            start = _time(axis.name, constraint.start)
            stop = _time(axis.name, constraint.stop)
        else:
            values = _numeric_values(axis, constraint.start, constraint.stop)
            start, stop = constraint.start, constraint.stop
        lo1, hi1 = indices_of_nearest(values, start)
        lo2, hi2 = indices_of_nearest(values, stop)
        imin = min(lo1, hi1, lo2, hi2)
        # exclusive stop
        imax = max(lo1, hi1, lo2, hi2) + 1
        return IndexSlice(imin, imax, 1)

    raise InvalidConstraintTypeError(f"Invalid subset constraint for axis {axis.name!r}")


def resolve_value_constraints(
    constraints: Mapping[str, object], domain: Domain
) -> dict[str, int | IndexSlice]:
    """Resolve value constraints on known axes into index constraints."""
    out: dict[str, int | IndexSlice] = {}
    for name, data in constraints.items():
        if name not in domain.axes:
            continue
        parsed = parse_value_constraint(name, data)
        if parsed is None:
            continue
        out[name] = resolve_value_constraint(domain.axes[name], parsed)
    return out
