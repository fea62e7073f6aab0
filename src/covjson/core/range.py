from __future__ import annotations

import logging
import numbers
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any

import numpy as np

from covjson.core.common import DATA_TYPES, is_number, product
from covjson.core.view import StridedView
from covjson.errors import BaseCovJSONError, BoundsCheckError, InvalidRangeEncodingError

if TYPE_CHECKING:
    import numpy.typing as npt

    from covjson.core.common import JSON, DataType
    from covjson.core.domain import Domain
    from covjson.core.indexing import IndexSlice

__all__ = ["Range", "decode_range", "decode_values", "infer_data_type", "transform_range"]

logger = logging.getLogger(__name__)


def infer_data_type(values: Sequence[Any] | npt.NDArray[Any]) -> DataType:
    """Guess the data type of a range that does not declare one."""
    if isinstance(values, np.ndarray):
        if values.dtype.kind in "iub":
            return "integer"
        if values.dtype.kind == "f":
            return "float"
        values = values.tolist()
    present = [v for v in values if v is not None]
    if any(isinstance(v, str) for v in present):
        return "string"
    if present and all(isinstance(v, numbers.Integral) for v in present):
        return "integer"
    return "float"


def parse_data_type(data: object, values: Sequence[Any] | npt.NDArray[Any]) -> DataType:
    if data is None:
        return infer_data_type(values)
    if data in DATA_TYPES:
        return data  # type: ignore[return-value]
    raise InvalidRangeEncodingError(f"Invalid dataType {data!r}, expected one of {DATA_TYPES}")


def _split_nulls(
    values: Sequence[Any] | npt.NDArray[Any], data_type: DataType
) -> tuple[npt.NDArray[Any], npt.NDArray[np.bool_]]:
    """Return the raw values as a flat array plus a mask of the ``null`` entries."""
    if isinstance(values, np.ndarray) and values.dtype != object:
        flat = np.ascontiguousarray(values).reshape(-1)
        if data_type != "string" and flat.dtype.kind not in "biuf":
            raise InvalidRangeEncodingError(
                f"Range of dataType {data_type!r} has values of dtype {flat.dtype}"
            )
        if data_type == "integer" and flat.dtype.kind == "f":
            if not np.all(np.mod(flat, 1) == 0):
                raise InvalidRangeEncodingError(
                    "Range of dataType 'integer' has non-integral values"
                )
            flat = flat.astype(np.int64)
        return flat, np.zeros(flat.shape, dtype=bool)
    seq = list(values.reshape(-1)) if isinstance(values, np.ndarray) else list(values)
    nulls = np.fromiter((v is None for v in seq), dtype=bool, count=len(seq))
    if data_type == "string":
        out = np.empty(len(seq), dtype=object)
        out[:] = seq
        return out, nulls
    present = [v for v in seq if v is not None]
    bad = next((v for v in present if not is_number(v)), None)
    if bad is not None:
        raise InvalidRangeEncodingError(
            f"Range of dataType {data_type!r} has a non-numeric value {bad!r}"
        )
    if data_type == "integer" and not all(float(v).is_integer() for v in present):
        raise InvalidRangeEncodingError("Range of dataType 'integer' has non-integral values")
    dtype = np.int64 if data_type == "integer" else np.float64
    filled = [0 if v is None else v for v in seq]
    return np.array(filled, dtype=dtype).reshape(-1), nulls


def decode_values(
    values: Sequence[Any] | npt.NDArray[Any],
    data_type: DataType,
    *,
    offset: float | None = None,
    factor: float | None = None,
    valid_min: float | None = None,
    valid_max: float | None = None,
    missing_is_encoded: bool = False,
) -> tuple[npt.NDArray[Any], npt.NDArray[np.bool_] | None]:
    """
    Decode raw range values into a flat value buffer and an optional missing-value mask.

    With ``missing_is_encoded``, raw values outside ``[valid_min, valid_max]`` are missing.
    Otherwise raw ``None`` values are missing. Non-missing values are rescaled to
    ``value * factor + offset`` when ``offset`` and ``factor`` are given.
    """
    raw, nulls = _split_nulls(values, data_type)
    rescale = offset is not None and factor is not None

    if data_type == "string":
        if rescale or missing_is_encoded:
            raise InvalidRangeEncodingError("String ranges cannot be scaled or range-encoded")
        mask = nulls
        data = raw
    else:
        if missing_is_encoded:
            mask = nulls | (raw < valid_min) | (raw > valid_max)
        else:
            mask = nulls
        if rescale:
            data = raw.astype(np.float64) * factor + offset
            # masked entries hold 0
            data[mask] = 0.0
        else:
            data = raw

    data = data.view()
    data.flags.writeable = False
    if not mask.any():
        return data, None
    mask.flags.writeable = False
    return data, mask


def _min_max(
    data: npt.NDArray[Any], mask: npt.NDArray[np.bool_] | None
) -> tuple[Any, Any] | None:
    if data.dtype.kind not in "iuf":
        return None
    present = data if mask is None else data[~mask]
    if present.shape[0] == 0:
        return None
    return present.min().item(), present.max().item()


@dataclass(frozen=True, eq=False)
class Range:
    """
    The decoded values of one parameter, laid out according to the domain.

    Attributes
    ----------
    data_type : str
        One of ``"integer"``, ``"float"`` or ``"string"``.
    shape : dict[str, int]
        Number of values along each domain axis, in axis declaration order.
    axis_order : tuple[str, ...]
        The axis order of the underlying view.
    view : StridedView
        Strided view over the decoded value buffer.
    valid_min, valid_max : float | None
        Declared or computed bounds of the decoded values.
    """

    data_type: DataType
    shape: dict[str, int]
    axis_order: tuple[str, ...]
    view: StridedView
    valid_min: Any = None
    valid_max: Any = None

    @property
    def values(self) -> np.ma.MaskedArray[Any, Any]:
        """A read-only masked array of the values with dimensions in ``axis_order``."""
        return self.view.to_numpy()

    def get(self, index: Mapping[str, int] | None = None, /, **kwargs: int) -> Any:
        """
        Return the value at the given axis indices, ``None`` if the value is missing.

        Axes that are not given default to index 0, names that are not part of the axis order
        are ignored.

        Raises
        ------
        BoundsCheckError
            If an index is negative or not smaller than the extent of its axis.

        Examples
        --------
        >>> rng.get({"z": 1})
        43.9599
        >>> rng.get(z=1)
        43.9599
        """
        index = {**(index or {}), **kwargs}
        indices = []
        for name, extent in zip(self.axis_order, self.view.shape, strict=True):
            i = index.get(name, 0)
            if i < 0 or i >= extent:
                raise BoundsCheckError(name, i, extent)
            indices.append(int(i))
        return self.view.get(*indices)

    def subset(self, selection: Mapping[str, IndexSlice], domain: Domain) -> Range:
        """
        A range over the same buffer restricted to ``selection``. ``domain`` is the subsetted
        domain the new shape is taken from.
        """
        starts = [selection[name].start for name in self.axis_order]
        stops = [selection[name].stop for name in self.axis_order]
        steps = [selection[name].step for name in self.axis_order]
        return replace(self, view=self.view.subset(starts, stops, steps), shape=domain.shape)


def decode_range(data: Mapping[str, JSON], domain: Domain) -> Range:
    """
    Decode a range document against a resolved domain.

    Raises
    ------
    InvalidRangeEncodingError
        If only one of ``offset`` and ``factor`` is present, if ``missing`` is ``"nonvalid"``
        without both ``validMin`` and ``validMax``, or if the number of values does not match
        the domain.
    """
    if "values" not in data:
        raise InvalidRangeEncodingError("Range has no 'values'")
    values = data["values"]
    if isinstance(values, str) or not isinstance(values, Sequence | np.ndarray):
        raise InvalidRangeEncodingError(f"Expected a list of range values, got {type(values)}")

    has_offset, has_factor = "offset" in data, "factor" in data
    if has_offset != has_factor:
        raise InvalidRangeEncodingError("Range 'offset' and 'factor' must be given together")
    missing_is_encoded = data.get("missing") == "nonvalid"
    has_min, has_max = "validMin" in data, "validMax" in data
    if missing_is_encoded and not (has_min and has_max):
        raise InvalidRangeEncodingError(
            "Range with missing='nonvalid' requires both 'validMin' and 'validMax'"
        )
    offset = data.get("offset")
    factor = data.get("factor")
    valid_min = data.get("validMin")
    valid_max = data.get("validMax")
    for key, value in (
        ("offset", offset),
        ("factor", factor),
        ("validMin", valid_min),
        ("validMax", valid_max),
    ):
        if value is not None and not is_number(value):
            raise InvalidRangeEncodingError(f"Range {key!r} must be a number, got {value!r}")

    data_type = parse_data_type(data.get("dataType"), values)
    rescale = has_offset and has_factor
    if rescale and data_type == "integer":
        data_type = "float"

    buf, mask = decode_values(
        values,
        data_type,
        offset=offset,  # type: ignore[arg-type]
        factor=factor,  # type: ignore[arg-type]
        valid_min=valid_min,  # type: ignore[arg-type]
        valid_max=valid_max,  # type: ignore[arg-type]
        missing_is_encoded=missing_is_encoded,
    )

    expected = product(domain.range_shape)
    if buf.shape[0] != expected:
        raise InvalidRangeEncodingError(
            f"Range has {buf.shape[0]} values but the domain shape "
            f"{dict(zip(domain.range_axis_order, domain.range_shape, strict=True))} "
            f"requires {expected}"
        )

    if rescale:
        if valid_min is not None:
            valid_min = valid_min * factor + offset  # type: ignore[operator]
        if valid_max is not None:
            valid_max = valid_max * factor + offset  # type: ignore[operator]
    if valid_min is None or valid_max is None:
        # undeclared bounds are taken from the decoded values
        bounds = _min_max(buf, mask)
        if bounds is not None:
            if valid_min is None:
                valid_min = bounds[0]
            if valid_max is None:
                valid_max = bounds[1]

    view = StridedView.from_buffer(buf, domain.range_shape, mask=mask)
    logger.debug(
        "Decoded %s range of shape %s (%s missing values)",
        data_type,
        domain.range_shape,
        0 if mask is None else int(mask.sum()),
    )
    return Range(
        data_type=data_type,
        shape=domain.shape,
        axis_order=domain.range_axis_order,
        view=view,
        valid_min=valid_min,
        valid_max=valid_max,
    )


def transform_range(data: Range | Mapping[str, JSON], domain: Domain) -> Range:
    """
    Decode ``data`` unless it already is a decoded ``Range``, so the function can be applied
    more than once.
    """
    if isinstance(data, Range):
        return data
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected a range object, got {type(data)}")
    return decode_range(data, domain)
