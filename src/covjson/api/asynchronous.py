from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from covjson.core.collection import AsyncCoverageCollection
from covjson.core.common import is_locator
from covjson.core.coverage import AsyncCoverage, _default_fetcher
from covjson.errors import BaseCovJSONError, UnsupportedDocumentError

if TYPE_CHECKING:
    from covjson.abc.fetch import Fetcher
    from covjson.core.common import JSON

__all__ = ["read"]

logger = logging.getLogger(__name__)


async def read(
    data: Mapping[str, JSON] | str,
    *,
    fetcher: Fetcher | None = None,
    cache_ranges: bool | None = None,
) -> AsyncCoverage | AsyncCoverageCollection:
    """
    Read a CoverageJSON document.

    Parameters
    ----------
    data : dict or str
        A decoded document, or a locator (URL or path) of one.
    fetcher : Fetcher, optional
        Resolves ``data`` if it is a locator, and every domain or range locator of the
        document. Defaults to an ``FsspecFetcher``.
    cache_ranges : bool, optional
        Keep ranges that were loaded from a locator. Defaults to the
        ``coverage.cache_ranges`` config value.

    Returns
    -------
    AsyncCoverage or AsyncCoverageCollection
    """
    if is_locator(data):
        if fetcher is None:
            fetcher = _default_fetcher()
        logger.debug("Reading document from %s", data)
        data = await fetcher.fetch(data)  # type: ignore[arg-type]
    if not isinstance(data, Mapping):
        raise BaseCovJSONError(f"Expected a CoverageJSON object, got {type(data)}")

    doc_type = data.get("type")
    if doc_type == "Coverage":
        return AsyncCoverage(data, fetcher=fetcher, cache_ranges=cache_ranges)
    if doc_type == "CoverageCollection":
        return AsyncCoverageCollection(data, fetcher=fetcher, cache_ranges=cache_ranges)
    raise UnsupportedDocumentError(f"Unsupported document type {doc_type!r}")
