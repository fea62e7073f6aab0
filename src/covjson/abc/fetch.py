from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any

    from covjson.core.common import Locator

__all__ = ["Fetcher"]


class Fetcher(ABC):
    """
    Abstract base class for resolving locators of remote documents.

    A coverage hands every domain or range that is given as a locator (a string) to its fetcher
    and treats the result as the decoded document.
    """

    @abstractmethod
    async def fetch(self, locator: Locator) -> dict[str, Any]:
        """Retrieve and decode the document at ``locator``.

        Parameters
        ----------
        locator : str
            URL or path of the document.

        Returns
        -------
        dict
            The decoded JSON document.

        Raises
        ------
        FetchError
            If the document cannot be retrieved or is not a JSON object.
        """
        ...

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"
