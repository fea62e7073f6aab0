from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from covjson.errors import BaseCovJSONError

if TYPE_CHECKING:
    from typing import Self

    from covjson.core.common import JSON

__all__ = ["Parameter", "parse_category_encoding", "parse_language_map", "parse_parameters"]

# BCP 47 tag for text of unknown language
UNDETERMINED_LANGUAGE = "und"

LanguageMap = dict[str, str]


def parse_language_map(data: object) -> LanguageMap | None:
    if data is None:
        return None
    if isinstance(data, str):
        return {UNDETERMINED_LANGUAGE: data}
    if isinstance(data, Mapping):
        return {str(k): v for k, v in data.items()}
    raise BaseCovJSONError(f"Expected a language map, got {data!r}")


def _with_language_maps(data: object, keys: tuple[str, ...]) -> dict[str, Any] | None:
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected an object, got {data!r}")
    out = dict(data)
    for key in keys:
        if key in out:
            out[key] = parse_language_map(out[key])
    return out


def parse_category_encoding(data: object) -> dict[str, tuple[Any, ...]] | None:
    """Normalize a category encoding so that every category maps to a tuple of values."""
    if data is None:
        return None
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected 'categoryEncoding' to be an object, got {data!r}")
    out = {}
    for category, values in data.items():
        if isinstance(values, Sequence) and not isinstance(values, str):
            out[category] = tuple(values)
        else:
            out[category] = (values,)
    return out


@dataclass(frozen=True)
class Parameter:
    """
    The description of one measured or modelled quantity of a coverage.
    """

    key: str
    description: LanguageMap | None = None
    observed_property: dict[str, Any] = field(default_factory=dict)
    unit: dict[str, Any] | None = None
    category_encoding: dict[str, tuple[Any, ...]] | None = None
    id: str | None = None

    @classmethod
    def from_dict(cls, key: str, data: Mapping[str, JSON]) -> Self:
        observed = _with_language_maps(data.get("observedProperty"), ("label", "description"))
        if observed is None:
            observed = {}
        categories = observed.get("categories")
        if categories is not None:
            observed["categories"] = [
                _with_language_maps(cat, ("label", "description")) for cat in categories
            ]
        return cls(
            key=key,
            description=parse_language_map(data.get("description")),
            observed_property=observed,
            unit=_with_language_maps(data.get("unit"), ("label",)),
            category_encoding=parse_category_encoding(data.get("categoryEncoding")),
            id=data.get("id"),  # type: ignore[arg-type]
        )

    @property
    def label(self) -> LanguageMap | None:
        return self.observed_property.get("label")


def parse_parameters(data: object) -> dict[str, Parameter]:
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected 'parameters' to be an object, got {type(data)}")
    return {key: Parameter.from_dict(key, value) for key, value in data.items()}
