from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import numpy as np

from covjson.core.common import as_time, is_iso_datetime, is_number
from covjson.errors import InvalidAxisSpecError

if TYPE_CHECKING:
    from typing import Self

    import numpy.typing as npt

    from covjson.core.common import JSON
    from covjson.core.indexing import IndexSlice

__all__ = ["Axis", "expand_regular_axis", "parse_axis_values"]


def _readonly(arr: npt.NDArray[Any]) -> npt.NDArray[Any]:
    arr.flags.writeable = False
    return arr


def expand_regular_axis(name: str, start: float, stop: float, num: int) -> npt.NDArray[np.float64]:
    """
    Materialize a regular axis given by ``start``, ``stop`` and ``num`` into ``num`` evenly spaced
    values ``start + i * step``.
    """
    if num == 1:
        if start != stop:
            raise InvalidAxisSpecError(name, start, stop)
        step = 0.0
    else:
        step = (stop - start) / (num - 1)
    return start + np.arange(num, dtype=np.float64) * step


def parse_axis_values(name: str, data: object) -> npt.NDArray[Any]:
    """
    Normalize the JSON representation of one axis into a read-only numpy array.

    All-numeric sequences become float64 arrays, anything else (strings, ISO datetimes) is kept
    as an object array with the original Python values.
    """
    if isinstance(data, Mapping):
        if "start" in data and "stop" in data and "num" in data:
            values: Any = expand_regular_axis(name, data["start"], data["stop"], int(data["num"]))
            return _readonly(values)
        if "values" not in data:
            raise InvalidAxisSpecError(
                f"Axis {name!r} needs either 'values' or 'start', 'stop' and 'num'"
            )
        values = data["values"]
    else:
        values = data

    if isinstance(values, np.ndarray):
        if values.dtype.kind in "iuf":
            return _readonly(values.astype(np.float64, copy=False).reshape(-1))
        return _readonly(values.astype(object, copy=False).reshape(-1))

    if isinstance(values, str) or not isinstance(values, Sequence):
        values = [values]
    if len(values) == 0:
        raise InvalidAxisSpecError(f"Axis {name!r} must have at least one value")
    if all(is_number(v) for v in values):
        return _readonly(np.array(values, dtype=np.float64))
    out = np.empty(len(values), dtype=object)
    out[:] = list(values)
    return _readonly(out)


@dataclass(frozen=True, eq=False)
class Axis:
    """
    One named coordinate axis of a domain.

    Attributes
    ----------
    name : str
        The axis name, e.g. ``"x"`` or ``"t"``.
    values : np.ndarray
        The ordered coordinate values. Numeric axes are stored as float64, other axes as an
        object array.
    """

    name: str
    values: npt.NDArray[Any]

    @classmethod
    def from_dict(cls, name: str, data: JSON) -> Self:
        return cls(name=name, values=parse_axis_values(name, data))

    def __len__(self) -> int:
        return int(self.values.shape[0])

    @property
    def is_numeric(self) -> bool:
        return self.values.dtype.kind == "f"

    @property
    def is_time(self) -> bool:
        """True if the axis holds ISO 8601 datetime strings."""
        return self.values.dtype == object and is_iso_datetime(self.values[0])

    def as_times(self) -> npt.NDArray[np.float64]:
        return np.array([as_time(v) for v in self.values], dtype=np.float64)

    def reslice(self, selection: IndexSlice) -> Axis:
        """
        Return the axis restricted to ``selection``. A full-extent unit-step selection returns
        ``self``; any other selection owns a freshly materialized copy of the selected values.
        """
        if selection.start == 0 and selection.stop >= len(self) and selection.step == 1:
            return self
        values = self.values[selection.as_slice()].copy()
        return type(self)(name=self.name, values=_readonly(values))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Axis):
            return NotImplemented
        return (
            self.name == other.name
            and self.values.shape == other.values.shape
            and bool(np.all(self.values == other.values))
        )
