"""
Bridge between the coroutine API (``AsyncCoverage``, ``covjson.api.asynchronous``) and the
blocking API (``Coverage``, ``covjson.read``).

Blocking calls submit their coroutine to one event loop that runs forever on a daemon thread
named ``covjson_io``. Keeping a single loop alive means that the memoized domain task of a
coverage, and any fsspec session opened by its fetcher, stay bound to the same loop across
calls. Filesystems without native async support are run by fsspec in the default executor of
that loop, sized by the ``threading.max_workers`` config value.
"""

from __future__ import annotations

import asyncio
import atexit
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import TYPE_CHECKING, TypeVar

from covjson.core.config import config

if TYPE_CHECKING:
    from collections.abc import Coroutine
    from typing import Any

logger = logging.getLogger(__name__)

T = TypeVar("T")

# one-element lists so that the fork handler can reset them in place
iothread: list[threading.Thread | None] = [None]
loop: list[asyncio.AbstractEventLoop | None] = [None]
_lock: threading.Lock | None = None
_executor: ThreadPoolExecutor | None = None


class SyncError(Exception):
    """Raised when a blocking covjson call is made from a coroutine running on the covjson loop."""


def _get_lock() -> threading.Lock:
    """The lock guarding creation and teardown of the covjson loop, created per process."""
    global _lock
    if not _lock:
        _lock = threading.Lock()
    return _lock


def _get_executor() -> ThreadPoolExecutor:
    """
    Create the thread pool that backs ``run_in_executor`` calls on the covjson loop, e.g. the
    reads of a synchronous fsspec filesystem wrapped by ``FsspecFetcher``.
    """
    global _executor
    if not _executor:
        max_workers = config.get("threading.max_workers", None)
        logger.debug("Creating fetch executor with max_workers=%s", max_workers)
        _executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="covjson_pool")
        _get_loop().set_default_executor(_executor)
    return _executor


def cleanup_resources() -> None:
    """Shut down the executor, stop the covjson loop and join its thread. Safe to call twice."""
    global _executor
    if _executor:
        _executor.shutdown(wait=True, cancel_futures=True)
    _executor = None

    if loop[0] is None:
        return
    with _get_lock():
        loop[0].call_soon_threadsafe(loop[0].stop)
        if iothread[0] is not None:
            iothread[0].join(timeout=0.2)
            if iothread[0].is_alive():
                logger.warning("covjson_io thread did not stop, closing its loop anyway")
        loop[0].close()
        loop[0] = None
        iothread[0] = None


atexit.register(cleanup_resources)


def reset_resources_after_fork() -> None:
    """
    Forget the loop, thread and executor of the parent process. The child creates its own on
    the next blocking call.
    """
    global _executor
    loop[0] = None  # pragma: no cover
    iothread[0] = None  # pragma: no cover
    _executor = None  # pragma: no cover


if hasattr(os, "register_at_fork"):
    os.register_at_fork(after_in_child=reset_resources_after_fork)


async def _runner(coro: Coroutine[Any, Any, T]) -> T | BaseException:
    # errors are handed back as values and re-raised in the calling thread
    try:
        return await coro
    except Exception as ex:
        return ex


def sync(
    coro: Coroutine[Any, Any, T],
    loop: asyncio.AbstractEventLoop | None = None,
    timeout: float | None = None,
) -> T:
    """
    Run ``coro`` on ``loop`` (the covjson loop by default) and block until it finishes.

    Errors raised by the coroutine, such as ``FetchError`` or ``MissingAxisOrderError``, are
    re-raised in the calling thread.

    Raises
    ------
    SyncError
        If called from a coroutine that is running on ``loop`` itself.
    TimeoutError
        If the coroutine does not finish within ``timeout`` seconds.

    Examples
    --------
    >>> domain = sync(async_coverage.load_domain())
    """
    if loop is None:
        loop = _get_loop()
    if _executor is None and config.get("threading.max_workers", None) is not None:
        _get_executor()
    if not isinstance(loop, asyncio.AbstractEventLoop):
        raise TypeError(f"loop cannot be of type {type(loop)}")
    if loop.is_closed():
        raise RuntimeError("Loop is not running")
    try:
        running = asyncio.get_running_loop()
    except RuntimeError:
        running = None
    if running is loop:
        raise SyncError("Calling sync() from within a running loop")

    future = asyncio.run_coroutine_threadsafe(_runner(coro), loop)
    done, pending = wait([future], timeout=timeout)
    if pending:
        raise TimeoutError(f"Coroutine {coro} failed to finish within {timeout} s")
    result = next(iter(done)).result()
    if isinstance(result, BaseException):
        raise result
    return result


def _get_loop() -> asyncio.AbstractEventLoop:
    """Return the covjson loop, starting it on the ``covjson_io`` daemon thread if needed."""
    if loop[0] is None:
        with _get_lock():
            # another thread may have started the loop while we waited for the lock
            if loop[0] is None:
                logger.debug("Starting covjson event loop")
                new_loop = asyncio.new_event_loop()
                thread = threading.Thread(target=new_loop.run_forever, name="covjson_io")
                thread.daemon = True
                loop[0] = new_loop
                iothread[0] = thread
                thread.start()
    assert loop[0] is not None
    return loop[0]


class SyncMixin:
    """
    Base for the blocking wrappers. ``_sync`` runs a coroutine of the wrapped async object on
    the covjson loop, with the ``async.timeout`` config value as timeout.
    """

    def _sync(self, coroutine: Coroutine[Any, Any, T]) -> T:
        return sync(coroutine, timeout=config.get("async.timeout"))
