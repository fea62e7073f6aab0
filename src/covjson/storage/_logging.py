from __future__ import annotations

import logging
import sys
import time
from collections import defaultdict
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from covjson.abc.fetch import Fetcher

if TYPE_CHECKING:
    from collections.abc import Generator

    from covjson.core.common import Locator

T_Fetcher = TypeVar("T_Fetcher", bound=Fetcher)


class LoggingFetcher(Fetcher, Generic[T_Fetcher]):
    """
    Fetcher wrapper that logs all calls to the wrapped fetcher.

    Parameters
    ----------
    fetcher : Fetcher
        Fetcher to wrap
    log_level : str
        Log level
    log_handler : logging.Handler
        Log handler

    Attributes
    ----------
    counter : dict
        Counter of number of times each method has been called
    """

    counter: defaultdict[str, int]

    def __init__(
        self,
        fetcher: T_Fetcher,
        log_level: str = "DEBUG",
        log_handler: logging.Handler | None = None,
    ) -> None:
        self._fetcher = fetcher
        self.counter = defaultdict(int)
        self._configure_logger(log_level, log_handler)

    def _configure_logger(
        self, log_level: str = "DEBUG", log_handler: logging.Handler | None = None
    ) -> None:
        self.log_level = log_level
        self.logger = logging.getLogger(f"LoggingFetcher({self._fetcher})")
        self.logger.setLevel(log_level)

        if not self.logger.hasHandlers():
            if not log_handler:
                log_handler = self._default_handler()
            self.logger.addHandler(log_handler)

    def _default_handler(self) -> logging.Handler:
        """Define a default log handler"""
        handler = logging.StreamHandler(stream=sys.stdout)
        handler.setLevel(self.log_level)
        handler.setFormatter(
            logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        )
        return handler

    @contextmanager
    def log(self, method: str, hint: Any = "") -> Generator[None, None, None]:
        """Context manager to log method calls

        Each call to the wrapped fetcher is logged to the configured logger and added to
        the counter dict.
        """
        op = f"{type(self._fetcher).__name__}.{method}"
        if hint:
            op = f"{op}({hint})"
        self.logger.info(" Calling %s", op)
        start_time = time.time()
        try:
            self.counter[method] += 1
            yield
        finally:
            end_time = time.time()
            self.logger.info("Finished %s [%.2f s]", op, end_time - start_time)

    def __repr__(self) -> str:
        return f"LoggingFetcher({self._fetcher!r})"

    async def fetch(self, locator: Locator) -> dict[str, Any]:
        # docstring inherited
        with self.log("fetch", locator):
            return await self._fetcher.fetch(locator)
