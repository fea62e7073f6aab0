from __future__ import annotations

import json
from logging import getLogger
from typing import TYPE_CHECKING, Any

from packaging.version import parse as parse_version

from covjson.abc.fetch import Fetcher
from covjson.core.config import config
from covjson.errors import FetchError

if TYPE_CHECKING:
    from fsspec import AbstractFileSystem
    from fsspec.asyn import AsyncFileSystem

    from covjson.core.common import Locator

logger = getLogger(__name__)


def _make_async(fs: AbstractFileSystem) -> AsyncFileSystem:
    """Convert a sync FSSpec filesystem to an async FFSpec filesystem

    If the filesystem class supports async operations, a new async instance is created
    from the existing instance.

    If the filesystem class does not support async operations, the existing instance
    is wrapped with AsyncFileSystemWrapper.
    """
    import fsspec

    fsspec_version = parse_version(fsspec.__version__)
    if fs.async_impl and fs.asynchronous:
        return fs
    if fs.async_impl:
        fs_dict = json.loads(fs.to_json())
        fs_dict["asynchronous"] = True
        return fsspec.AbstractFileSystem.from_json(json.dumps(fs_dict))

    if fsspec_version < parse_version("2024.12.0"):
        raise ImportError(
            f"The filesystem '{fs}' is synchronous, and the required "
            "AsyncFileSystemWrapper is not available. Upgrade fsspec to version "
            "2024.12.0 or later to enable this functionality."
        )
    from fsspec.implementations.asyn_wrapper import AsyncFileSystemWrapper

    return AsyncFileSystemWrapper(fs, asynchronous=True)


class FsspecFetcher(Fetcher):
    """
    Fetcher for local and remote JSON documents based on FSSpec.

    Parameters
    ----------
    storage_options : dict, optional
        Options passed to the fsspec filesystem, e.g. credentials or HTTP headers. Defaults to
        the ``fetch.storage_options`` config value.

    Examples
    --------
    >>> fetcher = FsspecFetcher()
    >>> doc = await fetcher.fetch("https://example.com/coverage.covjson")
    """

    storage_options: dict[str, Any]

    def __init__(self, storage_options: dict[str, Any] | None = None) -> None:
        if storage_options is None:
            storage_options = dict(config.get("fetch.storage_options"))
        self.storage_options = storage_options

    def __repr__(self) -> str:
        return f"FsspecFetcher(storage_options={self.storage_options!r})"

    async def _read_bytes(self, locator: Locator) -> bytes:
        from fsspec.core import url_to_fs

        fs, path = url_to_fs(locator, **self.storage_options)
        afs = _make_async(fs)
        return await afs._cat_file(path)

    async def fetch(self, locator: Locator) -> dict[str, Any]:
        # docstring inherited
        logger.debug("Fetching %s", locator)
        try:
            raw = await self._read_bytes(locator)
        except Exception as e:
            raise FetchError(locator, e) from e
        try:
            document = json.loads(raw)
        except ValueError as e:
            raise FetchError(locator, f"invalid JSON ({e})") from e
        if not isinstance(document, dict):
            raise FetchError(locator, f"expected a JSON object, got {type(document).__name__}")
        return document
