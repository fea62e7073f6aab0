from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from covjson.core.axis import Axis
from covjson.core.common import DEFAULT_DOMAIN_TYPE, expand_type
from covjson.errors import BaseCovJSONError, MissingAxisOrderError

if TYPE_CHECKING:
    from typing import Self

    from covjson.core.common import JSON
    from covjson.core.indexing import IndexSlice

__all__ = ["Domain", "parse_domain_type", "parse_range_axis_order", "transform_domain"]

logger = logging.getLogger(__name__)

# keys of a compact (profile style) domain that do not name an axis
DOMAIN_RESERVED_KEYS = frozenset(
    {"type", "profile", "domainType", "rangeAxisOrder", "referencing", "@context", "id"}
)


def parse_domain_type(data: Mapping[str, JSON]) -> str:
    """
    The domain type is taken from ``profile``, ``domainType`` or ``type`` in that order and
    expanded against the configured namespace.
    """
    for key in ("profile", "domainType", "type"):
        value = data.get(key)
        if isinstance(value, str) and value:
            return expand_type(value)
    return expand_type(DEFAULT_DOMAIN_TYPE)


def parse_axes(data: Mapping[str, JSON]) -> dict[str, Axis]:
    raw = data.get("axes")
    if raw is None:
        raw = {k: v for k, v in data.items() if k not in DOMAIN_RESERVED_KEYS}
    if not isinstance(raw, Mapping):
        raise BaseCovJSONError(f"Expected a mapping of axes, got {type(raw)}")
    return {name: Axis.from_dict(name, value) for name, value in raw.items()}


def parse_range_axis_order(data: object, axes: Mapping[str, Axis]) -> tuple[str, ...]:
    """
    Use the declared range axis order, or the axis declaration order when at most one axis has
    more than one value.
    """
    if data is None:
        multi_valued = [name for name, axis in axes.items() if len(axis) > 1]
        if len(multi_valued) > 1:
            raise MissingAxisOrderError(
                f"Domain requires 'rangeAxisOrder' since axes {multi_valued!r} have more "
                "than one value"
            )
        return tuple(axes)
    if isinstance(data, str) or not isinstance(data, list | tuple):
        raise BaseCovJSONError(f"Expected 'rangeAxisOrder' to be a list, got {data!r}")
    if not all(isinstance(x, str) for x in data):
        raise BaseCovJSONError(f"Expected axis names in 'rangeAxisOrder', got {data!r}")
    order = tuple(data)  # type: ignore[arg-type]
    unknown = [name for name in order if name not in axes]
    if unknown:
        raise BaseCovJSONError(f"'rangeAxisOrder' refers to unknown axes {unknown!r}")
    missing = [name for name, axis in axes.items() if len(axis) > 1 and name not in order]
    if missing:
        raise BaseCovJSONError(f"'rangeAxisOrder' is missing the multi-valued axes {missing!r}")
    return order


@dataclass(frozen=True)
class Domain:
    """
    The axes of a coverage together with the layout of its range values.

    Attributes
    ----------
    type : str
        Domain type URI, e.g. ``http://coveragejson.org/def#Grid``.
    axes : dict[str, Axis]
        Axes in declaration order.
    range_axis_order : tuple[str, ...]
        The order in which axis indices compose a flat range offset.
    range_shape : tuple[int, ...]
        Number of values of each axis in ``range_axis_order``.
    referencing : tuple
        The ``referencing`` entries of the source document, verbatim.
    """

    type: str
    axes: dict[str, Axis]
    range_axis_order: tuple[str, ...]
    range_shape: tuple[int, ...]
    referencing: tuple[JSON, ...] = field(default=())

    @classmethod
    def from_dict(cls, data: Mapping[str, JSON]) -> Self:
        axes = parse_axes(data)
        order = parse_range_axis_order(data.get("rangeAxisOrder"), axes)
        referencing = data.get("referencing") or ()
        return cls(
            type=parse_domain_type(data),
            axes=axes,
            range_axis_order=order,
            range_shape=tuple(len(axes[name]) for name in order),
            referencing=tuple(referencing),  # type: ignore[arg-type]
        )

    @property
    def shape(self) -> dict[str, int]:
        """Number of values per axis, in axis declaration order."""
        return {name: len(axis) for name, axis in self.axes.items()}

    def subset(self, selection: Mapping[str, IndexSlice]) -> Domain:
        """
        Return a new domain whose axes are restricted to ``selection``, which must hold one
        ``IndexSlice`` per axis. The range axis order is unchanged.
        """
        axes = {name: axis.reslice(selection[name]) for name, axis in self.axes.items()}
        return type(self)(
            type=self.type,
            axes=axes,
            range_axis_order=self.range_axis_order,
            range_shape=tuple(len(axes[name]) for name in self.range_axis_order),
            referencing=self.referencing,
        )


def transform_domain(data: Domain | Mapping[str, JSON]) -> Domain:
    """
    Build a ``Domain`` from a decoded domain document. A ``Domain`` is returned unchanged, so
    the function can be applied more than once.
    """
    if isinstance(data, Domain):
        return data
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected a domain object, got {type(data)}")
    domain = Domain.from_dict(data)
    logger.debug(
        "Transformed domain %s with axes %s and range axis order %s",
        domain.type,
        domain.shape,
        domain.range_axis_order,
    )
    return domain
