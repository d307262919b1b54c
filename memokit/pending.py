"""Caching of pending (awaitable) results.

A coroutine function's result is cached before it settles, so concurrent
callers share one computation. The awaitable is wrapped in a task that
settles the cache entry once the computation finishes:

- success: the hit and change hooks fire against the cache as it is at that
  moment, and the value passes through unchanged;
- failure: the entry holding this task is removed, so the failure is never
  served from the cache, and the original exception is re-raised to every
  awaiting caller. A newer entry for equal arguments is left alone.

Example:
    >>> @memoize(max_size=5)
    ... async def fetch(url):
    ...     return await client.get(url)
    >>> first = fetch("https://example.org")
    >>> second = fetch("https://example.org")
    >>> first is second
    True
"""

from __future__ import annotations

import asyncio
import inspect
from typing import TYPE_CHECKING, Any

from memokit.exceptions import PendingResultError
from memokit.logging import get_logger
from memokit.matching import NOT_FOUND
from memokit.store import find_value_index, remove_entry


if TYPE_CHECKING:
    import threading
    from collections.abc import Awaitable

    from memokit.hooks import HookDispatcher
    from memokit.store import CacheStore


logger = get_logger("memokit.pending")


class PendingResultAdapter:
    """Wraps freshly computed awaitables of one memoized function."""

    def __init__(
        self,
        cache: CacheStore,
        dispatcher: HookDispatcher,
        lock: threading.RLock,
        function_name: str,
    ) -> None:
        """Initialize adapter.

        Args:
            cache: The store the results are cached in.
            dispatcher: Hook dispatcher of the memoized function.
            lock: The memoized function's lock guarding the store.
            function_name: Name used in errors and logs.
        """
        self._cache = cache
        self._dispatcher = dispatcher
        self._lock = lock
        self._function_name = function_name

    def wrap(self, pending: Any) -> asyncio.Task[Any]:
        """Schedule settlement of a freshly computed pending result.

        Must be called before the result is inserted; the returned task is
        what gets cached. The task does not start before the current call
        returns control to the event loop, so the insertion always happens
        first.

        Args:
            pending: The awaitable returned by the memoized function.

        Returns:
            Task resolving to the settled value.

        Raises:
            PendingResultError: If ``pending`` is not awaitable or there is no
                running event loop.
        """
        if not inspect.isawaitable(pending):
            raise PendingResultError(
                "Function configured for pending results returned a non-awaitable value",
                function_name=self._function_name,
                details={"received_type": type(pending).__name__},
            )

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError as e:
            if inspect.iscoroutine(pending):
                pending.close()
            raise PendingResultError(
                "Pending results can only be cached inside a running event loop",
                function_name=self._function_name,
                cause=e,
            ) from e

        return loop.create_task(self._settle(pending))

    async def _settle(self, pending: Awaitable[Any]) -> Any:
        # The running task is the value this call inserted
        task = asyncio.current_task()
        try:
            value = await pending
            with self._lock:
                self._dispatcher.hit()
                self._dispatcher.changed()
        except (Exception, asyncio.CancelledError) as e:
            with self._lock:
                index = find_value_index(self._cache, task)
                if index != NOT_FOUND:
                    remove_entry(self._cache, index)
            logger.debug(
                "Pending result failed, entry rolled back",
                function=self._function_name,
                removed=index != NOT_FOUND,
                error_type=type(e).__name__,
            )
            raise

        logger.debug("Pending result settled", function=self._function_name)
        return value
