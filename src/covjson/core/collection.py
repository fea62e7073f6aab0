from __future__ import annotations

from collections.abc import Mapping
from typing import TYPE_CHECKING

from covjson.core.common import expand_type
from covjson.core.coverage import AsyncCoverage, Coverage, parse_ld
from covjson.core.parameter import parse_parameters
from covjson.errors import BaseCovJSONError

if TYPE_CHECKING:
    from collections.abc import Iterator

    from covjson.abc.fetch import Fetcher
    from covjson.core.common import JSON
    from covjson.core.parameter import Parameter

__all__ = ["AsyncCoverageCollection", "CoverageCollection"]


def _member_document(
    data: object, parameters: JSON, domain_profile: JSON
) -> Mapping[str, JSON]:
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected a coverage object in 'coverages', got {type(data)}")
    # members inherit what the collection declares for all of them
    member = dict(data)
    if "parameters" not in member and parameters is not None:
        member["parameters"] = parameters
    if "domainProfile" not in member and domain_profile is not None:
        member["domainProfile"] = domain_profile
    return member


class AsyncCoverageCollection:
    """
    A collection of coverages that may share parameter descriptions.

    Parameters
    ----------
    data : dict
        A decoded CoverageJSON ``CoverageCollection`` document.
    fetcher : Fetcher, optional
        Passed on to every member coverage.
    cache_ranges : bool, optional
        Passed on to every member coverage.
    """

    def __init__(
        self,
        data: Mapping[str, JSON],
        *,
        fetcher: Fetcher | None = None,
        cache_ranges: bool | None = None,
    ) -> None:
        coverages = data.get("coverages", [])
        if not isinstance(coverages, list):
            raise BaseCovJSONError(f"Expected 'coverages' to be a list, got {type(coverages)}")
        self.id = data.get("id")
        profile = data.get("profile") or "CoverageCollection"
        self.type = expand_type(profile)  # type: ignore[arg-type]
        self.parameters: dict[str, Parameter] = parse_parameters(data.get("parameters"))
        self.ld = parse_ld({k: v for k, v in data.items() if k != "coverages"})
        shared_parameters = data.get("parameters")
        domain_profile = data.get("domainProfile")
        self.coverages = [
            AsyncCoverage(
                _member_document(cov, shared_parameters, domain_profile),
                fetcher=fetcher,
                cache_ranges=cache_ranges,
            )
            for cov in coverages
        ]

    def __repr__(self) -> str:
        return f"<AsyncCoverageCollection id={self.id!r} coverages={len(self.coverages)}>"

    def __len__(self) -> int:
        return len(self.coverages)

    def __iter__(self) -> Iterator[AsyncCoverage]:
        return iter(self.coverages)


class CoverageCollection:
    """Blocking interface to an ``AsyncCoverageCollection``."""

    def __init__(self, async_collection: AsyncCoverageCollection) -> None:
        self._async_collection = async_collection
        self.coverages = [Coverage(cov) for cov in async_collection.coverages]

    def __repr__(self) -> str:
        return f"<CoverageCollection id={self.id!r} coverages={len(self.coverages)}>"

    @property
    def id(self) -> JSON:
        return self._async_collection.id

    @property
    def type(self) -> str:
        return self._async_collection.type

    @property
    def parameters(self) -> dict[str, Parameter]:
        return self._async_collection.parameters

    def __len__(self) -> int:
        return len(self.coverages)

    def __iter__(self) -> Iterator[Coverage]:
        return iter(self.coverages)
