"""
Search helpers over the ordered values of an axis.

All functions accept ascending or descending sequences, values may repeat. The direction is
decided from the first and last value, a constant sequence is treated as ascending.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import numpy as np

from covjson.core.common import is_number

if TYPE_CHECKING:
    import numpy.typing as npt

__all__ = ["index_of_exact", "index_of_nearest", "indices_of_nearest"]


def _is_ascending(values: npt.NDArray[Any]) -> bool:
    return bool(values[-1] >= values[0])


def indices_of_nearest(values: npt.ArrayLike, x: float) -> tuple[int, int]:
    """
    Return the indices ``(lo, hi)`` of the values bracketing ``x``.

    If ``x`` matches a value exactly, both indices point to it. If ``x`` is outside the range of
    values, both indices point to the closest end.

    Examples
    --------
    >>> indices_of_nearest([0, 10, 20, 30], 12)
    (1, 2)
    >>> indices_of_nearest([0, 10, 20, 30], 20)
    (2, 2)
    >>> indices_of_nearest([0, 10, 20, 30], -5)
    (0, 0)
    """
    arr = np.asarray(values, dtype=np.float64)
    n = arr.shape[0]
    if n == 0:
        raise ValueError("Array must have at least one element")
    # lo is the last index whose value is on the "before" side of x
    if _is_ascending(arr):
        lo = int(np.searchsorted(arr, x, side="right")) - 1
    else:
        lo = int(np.searchsorted(-arr, -x, side="right")) - 1
    hi = lo + 1
    if lo >= 0 and arr[lo] == x:
        hi = lo
    if lo == -1:
        lo = hi
    if hi == n:
        hi = lo
    return lo, hi


def index_of_nearest(values: npt.ArrayLike, x: float) -> int:
    """
    Return the index of the value closest to ``x``. Ties resolve to the lower index.
    """
    arr = np.asarray(values, dtype=np.float64)
    lo, hi = indices_of_nearest(arr, x)
    if abs(x - arr[lo]) <= abs(x - arr[hi]):
        return lo
    return hi


def index_of_exact(values: npt.NDArray[Any], x: object) -> int:
    """
    Return the first index whose value equals ``x``, or -1 if there is none.
    """
    if values.dtype.kind == "f":
        if not is_number(x):
            return -1
        matches = np.flatnonzero(values == x)
    else:
        equal = np.fromiter((v == x for v in values), dtype=bool, count=len(values))
        matches = np.flatnonzero(equal)
    if matches.shape[0] == 0:
        return -1
    return int(matches[0])
