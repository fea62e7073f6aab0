from __future__ import annotations

from typing import TYPE_CHECKING

from covjson.api import asynchronous as async_api
from covjson.core.collection import AsyncCoverageCollection, CoverageCollection
from covjson.core.config import config
from covjson.core.coverage import Coverage
from covjson.core.sync import sync

if TYPE_CHECKING:
    from collections.abc import Mapping

    from covjson.abc.fetch import Fetcher
    from covjson.core.common import JSON

__all__ = ["read"]


def read(
    data: Mapping[str, JSON] | str,
    *,
    fetcher: Fetcher | None = None,
    cache_ranges: bool | None = None,
) -> Coverage | CoverageCollection:
    """
    Read a CoverageJSON document.

    See :func:`covjson.api.asynchronous.read` for a description of the parameters.

    Examples
    --------
    >>> cov = covjson.read("https://example.com/profile.covjson")
    >>> cov.load_range("PSAL").get(z=0)
    43.9599
    """
    result = sync(
        async_api.read(data, fetcher=fetcher, cache_ranges=cache_ranges),
        timeout=config.get("async.timeout"),
    )
    if isinstance(result, AsyncCoverageCollection):
        return CoverageCollection(result)
    return Coverage(result)
