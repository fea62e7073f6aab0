from __future__ import annotations

import functools
import math
import numbers
import operator
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime
from typing import Any, Final, NotRequired, TypedDict

from typing_extensions import ReadOnly

from covjson.core.config import config

JSON = str | int | float | Mapping[str, "JSON"] | Sequence["JSON"] | None
Locator = str
ShapeLike = tuple[int, ...]
DataType = str

DATA_TYPES: Final = ("integer", "float", "string")
DEFAULT_COVERAGE_TYPE: Final = "Coverage"
DEFAULT_DOMAIN_TYPE: Final = "Domain"


class IndexSliceDict(TypedDict):
    """
    The mapping form of an index constraint. Missing keys default to the full extent of the
    axis with a step of one.
    """

    start: NotRequired[ReadOnly[int]]
    stop: NotRequired[ReadOnly[int]]
    step: NotRequired[ReadOnly[int]]


def product(tup: tuple[int, ...]) -> int:
    return functools.reduce(operator.mul, tup, 1)


def ceildiv(a: float, b: float) -> int:
    if a == 0:
        return 0
    return math.ceil(a / b)


def expand_type(name: str) -> str:
    """
    Expand a short type name (e.g. ``"Grid"``) against the configured namespace. Names that are
    already URIs are returned unchanged.
    """
    if name[:4] == "http":
        return name
    return config.get("namespace") + name


def is_locator(data: object) -> bool:
    return isinstance(data, str)


def is_number(x: Any) -> bool:
    return isinstance(x, numbers.Real) and not isinstance(x, bool)


def parse_datetime(value: str) -> datetime:
    # fromisoformat accepts a trailing "Z" from python 3.11 on
    result = datetime.fromisoformat(value)
    if result.tzinfo is None:
        result = result.replace(tzinfo=UTC)
    return result


def is_iso_datetime(value: object) -> bool:
    if not isinstance(value, str):
        return False
    try:
        parse_datetime(value)
    except ValueError:
        return False
    return True


def as_time(value: object) -> float:
    """
    Convert an ISO 8601 string, a ``datetime`` or a number into a POSIX timestamp in seconds.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=UTC)
        return value.timestamp()
    if isinstance(value, str):
        return parse_datetime(value).timestamp()
    if is_number(value):
        return float(value)  # type: ignore[arg-type]
    raise TypeError(f"Cannot interpret {value!r} as a point in time")
