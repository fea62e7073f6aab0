from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from covjson.abc.fetch import Fetcher
from covjson.errors import FetchError

if TYPE_CHECKING:
    from collections.abc import MutableMapping
    from typing import Any

    from covjson.core.common import Locator


logger = getLogger(__name__)


class MemoryFetcher(Fetcher):
    """
    Fetcher that resolves locators from an in-memory mapping of already decoded documents.

    Parameters
    ----------
    documents : dict
        Mapping of locator to decoded document.
    """

    _documents: MutableMapping[str, dict[str, Any]]

    def __init__(self, documents: MutableMapping[str, dict[str, Any]] | None = None) -> None:
        if documents is None:
            documents = {}
        self._documents = documents

    def __repr__(self) -> str:
        return f"MemoryFetcher({len(self._documents)} documents)"

    def __setitem__(self, locator: Locator, document: dict[str, Any]) -> None:
        self._documents[locator] = document

    async def fetch(self, locator: Locator) -> dict[str, Any]:
        # docstring inherited
        try:
            return self._documents[locator]
        except KeyError:
            raise FetchError(locator, "no such document") from None
