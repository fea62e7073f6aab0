from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

from covjson.core.common import DEFAULT_COVERAGE_TYPE, expand_type, is_locator
from covjson.core.config import parse_cache_ranges
from covjson.core.domain import Domain, parse_domain_type, transform_domain
from covjson.core.indexing import normalize_index_constraints, resolve_value_constraints
from covjson.core.parameter import Parameter, parse_parameters
from covjson.core.range import Range, transform_range
from covjson.core.sync import SyncMixin
from covjson.errors import BaseCovJSONError

if TYPE_CHECKING:
    from collections.abc import Iterable

    from covjson.abc.fetch import Fetcher
    from covjson.core.common import JSON
    from covjson.core.indexing import IndexConstraint, IndexSlice

__all__ = ["AsyncCoverage", "Coverage", "parse_coverage_type"]

logger = logging.getLogger(__name__)


def parse_coverage_type(data: Mapping[str, JSON]) -> str:
    profile = data.get("profile") or data.get("type") or DEFAULT_COVERAGE_TYPE
    return expand_type(profile)  # type: ignore[arg-type]


def parse_coverage_domain_type(data: Mapping[str, JSON]) -> str:
    domain = data.get("domain")
    if is_locator(domain):
        return expand_type(data.get("domainProfile") or "Domain")  # type: ignore[arg-type]
    if isinstance(domain, Domain):
        return domain.type
    if isinstance(domain, Mapping):
        return parse_domain_type(domain)
    raise BaseCovJSONError(f"Expected 'domain' to be an object or a locator, got {type(domain)}")


def parse_ld(data: Mapping[str, JSON]) -> dict[str, JSON]:
    """The JSON-LD part of a coverage document: everything except the domain and the ranges."""
    if "@context" not in data:
        return {}
    return copy.deepcopy({k: v for k, v in data.items() if k not in ("domain", "ranges")})


def _default_fetcher() -> Fetcher:
    from covjson.storage import FsspecFetcher

    return FsspecFetcher()


class AsyncCoverage:
    """
    A coverage whose domain and ranges are loaded on demand.

    Parameters
    ----------
    data : dict
        A decoded CoverageJSON ``Coverage`` document. ``domain`` and each entry of ``ranges``
        may be an embedded object or a locator that is resolved through ``fetcher``.
    fetcher : Fetcher, optional
        Resolves locators. Defaults to an ``FsspecFetcher``.
    cache_ranges : bool, optional
        Keep ranges that were loaded from a locator, so that they are fetched and decoded only
        once. Defaults to the ``coverage.cache_ranges`` config value. The domain is always
        cached.

    Attributes
    ----------
    id : str | None
    type : str
        Coverage type URI.
    domain_type : str
        Domain type URI.
    parameters : dict[str, Parameter]
    bbox : list | None
    ld : dict
        The JSON-LD part of the document if it has a ``@context``, else empty.
    """

    id: str | None
    type: str
    domain_type: str
    parameters: dict[str, Parameter]
    bbox: JSON
    ld: dict[str, JSON]
    options: dict[str, Any]

    _domain_source: Domain | Mapping[str, JSON] | str
    _range_sources: dict[str, Range | Mapping[str, JSON] | str]
    _domain_task: asyncio.Future[Domain] | None

    def __init__(
        self,
        data: Mapping[str, JSON],
        *,
        fetcher: Fetcher | None = None,
        cache_ranges: bool | None = None,
    ) -> None:
        if "domain" not in data:
            raise BaseCovJSONError("Coverage has no 'domain'")
        self.id = data.get("id")  # type: ignore[assignment]
        self.type = parse_coverage_type(data)
        self.domain_type = parse_coverage_domain_type(data)
        self.parameters = parse_parameters(data.get("parameters"))
        self.bbox = data.get("bbox")
        self.ld = parse_ld(data)
        self.options = {"cache_ranges": parse_cache_ranges(cache_ranges)}
        self._fetcher = fetcher
        self._domain_source = data["domain"]  # type: ignore[assignment]
        ranges = data.get("ranges") or {}
        if not isinstance(ranges, Mapping):
            raise BaseCovJSONError(f"Expected 'ranges' to be an object, got {type(ranges)}")
        # older documents tag the range mapping itself with "type": "RangeSet"
        self._range_sources = {
            k: v for k, v in ranges.items() if not (k == "type" and v == "RangeSet")
        }  # type: ignore[misc]
        self._domain_task = None

    def __repr__(self) -> str:
        return (
            f"<AsyncCoverage id={self.id!r} type={self.type!r} "
            f"parameters={list(self.parameters)}>"
        )

    @property
    def fetcher(self) -> Fetcher:
        if self._fetcher is None:
            self._fetcher = _default_fetcher()
        return self._fetcher

    async def _resolve_domain(self) -> Domain:
        source = self._domain_source
        if is_locator(source):
            logger.debug("Loading domain from %s", source)
            document = await self.fetcher.fetch(source)  # type: ignore[arg-type]
            domain = transform_domain(document)
        else:
            domain = transform_domain(source)  # type: ignore[arg-type]
        self._domain_source = domain
        return domain

    async def load_domain(self) -> Domain:
        """
        Return the domain of the coverage.

        The domain is resolved once. Concurrent callers, including ``load_range``, share the
        same pending load, so a remote domain is fetched at most once.
        """
        if self._domain_task is None:
            self._domain_task = asyncio.ensure_future(self._resolve_domain())
        return await asyncio.shield(self._domain_task)

    async def load_range(self, key: str) -> Range:
        """
        Return the decoded range of the parameter ``key``. The domain is loaded first since
        it determines the shape of the range.
        """
        domain = await self.load_domain()
        try:
            source = self._range_sources[key]
        except KeyError:
            raise KeyError(f"Coverage has no range for parameter {key!r}") from None
        if is_locator(source):
            logger.debug("Loading range %r from %s", key, source)
            document = await self.fetcher.fetch(source)  # type: ignore[arg-type]
            rng = transform_range(document, domain)
            if self.options["cache_ranges"]:
                logger.debug("Caching range %r", key)
                self._range_sources[key] = rng
            return rng
        rng = transform_range(source, domain)  # type: ignore[arg-type]
        # embedded ranges are decoded once
        self._range_sources[key] = rng
        return rng

    async def load_ranges(self, keys: Iterable[str] | None = None) -> dict[str, Range]:
        """
        Load the ranges of several parameters concurrently. Defaults to all parameters.
        """
        if keys is None:
            keys = self.parameters.keys()
        keys = list(keys)
        ranges = await asyncio.gather(*(self.load_range(k) for k in keys))
        return dict(zip(keys, ranges, strict=True))

    async def subset_by_index(
        self, constraints: Mapping[str, IndexConstraint]
    ) -> AsyncSubsetCoverage:
        """
        Return a coverage restricted to the given axis indices.

        Each constraint is an integer index or a mapping with ``start``, ``stop`` (exclusive)
        and ``step``. Constraints on unknown axes and ``None`` constraints are ignored.
        Ranges of the returned coverage are views over the ranges of this coverage, no
        values are copied.

        Examples
        --------
        >>> sub = await cov.subset_by_index({"t": 4, "z": {"start": 10, "stop": 20}})
        """
        domain = await self.load_domain()
        selection = normalize_index_constraints(constraints, domain)
        return AsyncSubsetCoverage(self, domain.subset(selection), selection)

    async def subset_by_value(self, constraints: Mapping[str, object]) -> AsyncSubsetCoverage:
        """
        Return a coverage restricted to the given axis values.

        A number, string or datetime selects exactly that value, ``{"target": v}`` the value
        closest to ``v`` and ``{"start": a, "stop": b}`` the values spanning ``a`` to ``b``.

        Examples
        --------
        >>> sub = await cov.subset_by_value(
        ...     {"t": "2015-01-01T01:00:00Z", "z": {"start": -10, "stop": -5}}
        ... )
        """
        domain = await self.load_domain()
        return await self.subset_by_index(resolve_value_constraints(constraints, domain))


class AsyncSubsetCoverage(AsyncCoverage):
    """
    A coverage derived from another one by index subsetting.

    The domain is known up front. Ranges are loaded through the parent coverage and narrowed
    to the selection without copying.
    """

    def __init__(
        self, parent: AsyncCoverage, domain: Domain, selection: Mapping[str, IndexSlice]
    ) -> None:
        self.id = parent.id
        self.type = parent.type
        self.domain_type = parent.domain_type
        self.parameters = parent.parameters
        self.bbox = parent.bbox
        self.ld = parent.ld
        self.options = dict(parent.options)
        self._fetcher = parent._fetcher
        self._parent = parent
        self._selection = dict(selection)
        self._domain_source = domain
        self._range_sources = {}
        self._domain_task = None

    def __repr__(self) -> str:
        return f"<AsyncSubsetCoverage of {self._parent!r}>"

    @property
    def selection(self) -> dict[str, IndexSlice]:
        """The selection relative to the parent coverage."""
        return dict(self._selection)

    async def load_domain(self) -> Domain:
        return self._domain_source  # type: ignore[return-value]

    async def load_range(self, key: str) -> Range:
        rng = await self._parent.load_range(key)
        return rng.subset(self._selection, self._domain_source)  # type: ignore[arg-type]


class Coverage(SyncMixin):
    """
    Blocking interface to an ``AsyncCoverage``. Every method runs the corresponding coroutine
    on the covjson event loop and waits for the result.
    """

    _async_coverage: AsyncCoverage

    def __init__(self, async_coverage: AsyncCoverage) -> None:
        self._async_coverage = async_coverage

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, JSON],
        *,
        fetcher: Fetcher | None = None,
        cache_ranges: bool | None = None,
    ) -> Coverage:
        return cls(AsyncCoverage(data, fetcher=fetcher, cache_ranges=cache_ranges))

    def __repr__(self) -> str:
        return f"<Coverage id={self.id!r} type={self.type!r} parameters={list(self.parameters)}>"

    @property
    def id(self) -> str | None:
        return self._async_coverage.id

    @property
    def type(self) -> str:
        return self._async_coverage.type

    @property
    def domain_type(self) -> str:
        return self._async_coverage.domain_type

    @property
    def parameters(self) -> dict[str, Parameter]:
        return self._async_coverage.parameters

    @property
    def bbox(self) -> JSON:
        return self._async_coverage.bbox

    @property
    def ld(self) -> dict[str, JSON]:
        return self._async_coverage.ld

    def load_domain(self) -> Domain:
        return self._sync(self._async_coverage.load_domain())

    def load_range(self, key: str) -> Range:
        return self._sync(self._async_coverage.load_range(key))

    def load_ranges(self, keys: Iterable[str] | None = None) -> dict[str, Range]:
        return self._sync(self._async_coverage.load_ranges(keys))

    def subset_by_index(self, constraints: Mapping[str, IndexConstraint]) -> Coverage:
        return type(self)(self._sync(self._async_coverage.subset_by_index(constraints)))

    def subset_by_value(self, constraints: Mapping[str, object]) -> Coverage:
        return type(self)(self._sync(self._async_coverage.subset_by_value(constraints)))
