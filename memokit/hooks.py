"""Cache lifecycle hooks.

A hook is any callable ``hook(cache, options, memoized)`` where ``cache`` is
the live CacheStore, ``options`` the resolved MemoizeConfig and ``memoized``
the MemoizedFunction itself. Three hooks can be configured:

- ``on_cache_add``: a new entry was inserted
- ``on_cache_hit``: a call matched a stored entry
- ``on_cache_change``: entry order or membership changed

Hooks run synchronously inside the call that triggered them. Exceptions
raised by a hook are not caught and reach the caller of the memoized
function.

Example:
    >>> counter = CacheEventCounter()
    >>> @memoize(max_size=10, **counter.as_options())
    ... def load(user_id):
    ...     return db.get(user_id)
    >>> counter.hit_rate
    0.0
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any

from memokit.logging import get_logger


if TYPE_CHECKING:
    from collections.abc import Callable

    from memokit.config import MemoizeConfig
    from memokit.store import CacheStore

    CacheHook = Callable[[CacheStore, MemoizeConfig, Any], None]


# =============================================================================
# Dispatcher
# =============================================================================


class HookDispatcher:
    """Fires the configured hooks of one memoized function."""

    __slots__ = ("_cache", "_options", "_memoized")

    def __init__(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Initialize dispatcher.

        Args:
            cache: The live store passed to every hook.
            options: The resolved configuration holding the hooks.
            memoized: The memoized function passed to every hook.
        """
        self._cache = cache
        self._options = options
        self._memoized = memoized

    def _fire(self, hook: CacheHook | None) -> None:
        if hook is not None:
            hook(self._cache, self._options, self._memoized)

    def added(self) -> None:
        """Fire on_cache_add."""
        self._fire(self._options.on_cache_add)

    def hit(self) -> None:
        """Fire on_cache_hit."""
        self._fire(self._options.on_cache_hit)

    def changed(self) -> None:
        """Fire on_cache_change."""
        self._fire(self._options.on_cache_change)


# =============================================================================
# Ready-made Hooks
# =============================================================================


def _function_name(options: MemoizeConfig, memoized: Any) -> str:
    return options.name or getattr(memoized, "__name__", repr(memoized))


class LoggingCacheHooks:
    """Hooks that log cache events at DEBUG level."""

    def __init__(self, logger_name: str | None = None) -> None:
        """Initialize logging hooks.

        Args:
            logger_name: Logger name (default: memokit.hooks).
        """
        self._logger = get_logger(logger_name or "memokit.hooks")

    def on_cache_add(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Log an added entry."""
        self._logger.debug(
            "Cache add",
            function=_function_name(options, memoized),
            size=cache.size,
            max_size=options.max_size,
        )

    def on_cache_hit(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Log a cache hit."""
        self._logger.debug(
            "Cache hit",
            function=_function_name(options, memoized),
            size=cache.size,
        )

    def on_cache_change(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Log a reordered or resized cache."""
        self._logger.debug(
            "Cache change",
            function=_function_name(options, memoized),
            size=cache.size,
        )

    def as_options(self) -> dict[str, CacheHook]:
        """Get the hooks as keyword options for memoize()."""
        return {
            "on_cache_add": self.on_cache_add,
            "on_cache_hit": self.on_cache_hit,
            "on_cache_change": self.on_cache_change,
        }


class CacheEventCounter:
    """Hooks that count cache events.

    Counting is thread-safe. A pending result that settles successfully
    counts as one more hit and one more change, matching the hooks it fires.
    """

    def __init__(self) -> None:
        """Initialize counters."""
        self._adds = 0
        self._hits = 0
        self._changes = 0
        self._lock = threading.Lock()

    def on_cache_add(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Record an added entry."""
        with self._lock:
            self._adds += 1

    def on_cache_hit(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Record a cache hit."""
        with self._lock:
            self._hits += 1

    def on_cache_change(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Record a cache change."""
        with self._lock:
            self._changes += 1

    @property
    def adds(self) -> int:
        """Get total add count."""
        return self._adds

    @property
    def hits(self) -> int:
        """Get total hit count."""
        return self._hits

    @property
    def changes(self) -> int:
        """Get total change count."""
        return self._changes

    @property
    def hit_rate(self) -> float:
        """Get hits as a fraction of hits plus adds."""
        total = self._hits + self._adds
        if total == 0:
            return 0.0
        return self._hits / total

    def reset(self) -> None:
        """Reset all counters."""
        with self._lock:
            self._adds = 0
            self._hits = 0
            self._changes = 0

    def as_options(self) -> dict[str, CacheHook]:
        """Get the hooks as keyword options for memoize()."""
        return {
            "on_cache_add": self.on_cache_add,
            "on_cache_hit": self.on_cache_hit,
            "on_cache_change": self.on_cache_change,
        }


def chain_hooks(*hooks: CacheHook | None) -> CacheHook:
    """Combine several hooks into one that calls them in order.

    ``None`` entries are skipped. An exception from one hook stops the chain
    and propagates.

    Example:
        >>> on_hit = chain_hooks(counter.on_cache_hit, audit_hit)
    """
    active = [hook for hook in hooks if hook is not None]

    def chained(cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        for hook in active:
            hook(cache, options, memoized)

    return chained
