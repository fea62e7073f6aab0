"""
A read-only strided view over a flat buffer of decoded values.

The layout follows the classic ``(offset, shape, strides)`` description of an n-dimensional
array: the flat position of the element at ``(i0, i1, ...)`` is
``offset + i0 * strides[0] + i1 * strides[1] + ...``. Narrowing a view only changes these three
numbers, the buffer itself is shared by every view derived from it.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import numpy as np
from numpy.lib.stride_tricks import as_strided

from covjson.core.common import ceildiv, product

if TYPE_CHECKING:
    from collections.abc import Sequence
    from typing import Self

    import numpy.typing as npt

    from covjson.core.common import ShapeLike

__all__ = ["StridedView", "c_order_strides"]


def c_order_strides(shape: ShapeLike) -> tuple[int, ...]:
    """
    Row-major element strides for ``shape``.

    >>> c_order_strides((2, 3, 4))
    (12, 4, 1)
    """
    strides = []
    acc = 1
    for extent in reversed(shape):
        strides.append(acc)
        acc *= extent
    return tuple(reversed(strides))


@dataclass(frozen=True, eq=False)
class StridedView:
    """
    Parameters
    ----------
    data : np.ndarray
        One-dimensional buffer with the decoded values.
    mask : np.ndarray | None
        One-dimensional boolean buffer aligned with ``data``, ``True`` marks a missing value.
        ``None`` if no value is missing.
    shape : tuple[int, ...]
        Extent of the view along each dimension.
    strides : tuple[int, ...]
        Distance in elements between neighbours along each dimension.
    offset : int
        Flat position of the first element of the view.
    """

    data: npt.NDArray[Any]
    mask: npt.NDArray[np.bool_] | None
    shape: tuple[int, ...]
    strides: tuple[int, ...]
    offset: int = 0

    @classmethod
    def from_buffer(
        cls,
        data: npt.NDArray[Any],
        shape: ShapeLike,
        mask: npt.NDArray[np.bool_] | None = None,
    ) -> Self:
        shape = tuple(int(s) for s in shape)
        if data.ndim != 1:
            raise ValueError(f"Expected a flat buffer, got an array with {data.ndim} dimensions")
        if product(shape) != data.shape[0]:
            raise ValueError(
                f"Buffer of length {data.shape[0]} does not match shape {shape} "
                f"({product(shape)} elements)"
            )
        if mask is not None and mask.shape != data.shape:
            raise ValueError("mask and data must have the same length")
        return cls(data=data, mask=mask, shape=shape, strides=c_order_strides(shape))

    @property
    def ndim(self) -> int:
        return len(self.shape)

    @property
    def size(self) -> int:
        return product(self.shape)

    def index(self, *indices: int) -> int:
        """Flat buffer position of the element at ``indices``."""
        if len(indices) != self.ndim:
            raise IndexError(f"expected {self.ndim} indices, got {len(indices)}")
        pos = self.offset
        for i, stride in zip(indices, self.strides, strict=True):
            pos += i * stride
        return pos

    def get(self, *indices: int) -> Any:
        """
        Return the value at ``indices`` as a Python scalar, or ``None`` for a missing value.
        Indices are not bounds-checked here.
        """
        pos = self.index(*indices)
        if self.mask is not None and self.mask[pos]:
            return None
        value = self.data[pos]
        return value.item() if isinstance(value, np.generic) else value

    def hi(self, *his: int | None) -> StridedView:
        """Restrict each dimension to its first ``his[d]`` elements. ``None`` leaves it alone."""
        shape = list(self.shape)
        for d, h in enumerate(his):
            if h is not None and 0 <= h < shape[d]:
                shape[d] = h
        return replace(self, shape=tuple(shape))

    def lo(self, *los: int | None) -> StridedView:
        """Drop the first ``los[d]`` elements of each dimension."""
        shape = list(self.shape)
        offset = self.offset
        for d, low in enumerate(los):
            if low is not None and low > 0:
                offset += self.strides[d] * low
                shape[d] -= low
        return replace(self, shape=tuple(shape), offset=offset)

    def step(self, *steps: int | None) -> StridedView:
        """Keep every ``steps[d]``-th element of each dimension."""
        shape = list(self.shape)
        strides = list(self.strides)
        for d, s in enumerate(steps):
            if s is None or s == 1:
                continue
            if s < 1:
                raise ValueError(f"step must be >= 1, got {s}")
            shape[d] = ceildiv(shape[d], s)
            strides[d] *= s
        return replace(self, shape=tuple(shape), strides=tuple(strides))

    def subset(
        self, starts: Sequence[int], stops: Sequence[int], steps: Sequence[int]
    ) -> StridedView:
        """Equivalent to ``view.hi(*stops).lo(*starts).step(*steps)``."""
        return self.hi(*stops).lo(*starts).step(*steps)

    def flat_positions(self) -> npt.NDArray[np.intp]:
        """Flat buffer positions of all elements of the view, shaped like the view."""
        pos = np.full(self.shape, self.offset, dtype=np.intp)
        for d, stride in enumerate(self.strides):
            pos += np.arange(self.shape[d], dtype=np.intp).reshape(
                (-1,) + (1,) * (self.ndim - d - 1)
            ) * stride
        return pos

    def _strided(self, buf: npt.NDArray[Any]) -> npt.NDArray[Any]:
        if buf.dtype.hasobject:
            # numpy cannot stride over object buffers, gather the elements instead
            return buf[self.flat_positions()]
        itemsize = buf.itemsize
        return as_strided(
            buf[self.offset :],
            shape=self.shape,
            strides=tuple(s * itemsize for s in self.strides),
            writeable=False,
        )

    def to_numpy(self) -> np.ma.MaskedArray[Any, Any]:
        """
        A read-only masked array sharing memory with the underlying buffer.
        """
        if self.size == 0:
            return np.ma.masked_array(np.empty(self.shape, dtype=self.data.dtype))
        data = self._strided(self.data)
        mask = np.ma.nomask if self.mask is None else self._strided(self.mask)
        return np.ma.masked_array(data, mask=mask, copy=False)

    def tolist(self) -> list[Any]:
        """Flat list of values in view order, ``None`` for missing values."""
        return [self.get(*idx) for idx in np.ndindex(*self.shape)]
