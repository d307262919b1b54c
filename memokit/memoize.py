"""Memoization decorator.

Example:
    >>> from memokit import memoize
    >>> @memoize(max_size=3)
    ... def area(width, height):
    ...     return width * height
    >>> area(2, 3)
    6
    >>> area.cache_snapshot.keys
    ((2, 3),)

    >>> # Coroutine functions cache the pending result and evict it on failure
    >>> @memoize
    ... async def fetch(url):
    ...     return await client.get(url)
"""

from __future__ import annotations

import functools
import threading
import types
from typing import TYPE_CHECKING, Any, Generic, TypeVar, overload

from memokit.config import MemoizeConfig, resolve_config
from memokit.exceptions import NotCallableError
from memokit.hooks import HookDispatcher
from memokit.keys import create_get_transformed_key, make_key
from memokit.logging import get_logger
from memokit.matching import NOT_FOUND, create_get_key_index
from memokit.pending import PendingResultAdapter
from memokit.store import CacheSnapshot, CacheStore, order_by_lru, remove_entry


if TYPE_CHECKING:
    from collections.abc import Callable


T = TypeVar("T")

logger = get_logger("memokit.memoize")


# =============================================================================
# Memoized Function
# =============================================================================


class MemoizedFunction(Generic[T]):
    """A function wrapped with an LRU cache keyed by its arguments.

    Each instance owns its own store, configuration and lock. Lookup,
    promotion, computation and insertion run under the lock; it is
    re-entrant, so recursive functions and hooks calling back into the
    memoized function work.

    Attributes:
        fn: The wrapped function.
        options: The resolved configuration.
        is_memoized: Always True; marks already-memoized callables.
    """

    is_memoized = True

    def __init__(self, fn: Callable[..., T], options: MemoizeConfig) -> None:
        """Initialize memoized function.

        Args:
            fn: The function to wrap.
            options: Resolved configuration (with a concrete result mode).

        Raises:
            NotCallableError: If fn is not callable.
        """
        if not callable(fn):
            raise NotCallableError(fn)

        functools.update_wrapper(self, fn)
        self.fn = fn
        self.options = options

        self._cache = CacheStore()
        self._lock = threading.RLock()
        self._get_key_index = create_get_key_index(
            is_equal=options.is_equal,
            is_matching_key=options.is_matching_key,
        )
        self._get_transformed_key = (
            create_get_transformed_key(options.transform_key) if options.transform_key else None
        )
        self._dispatcher = HookDispatcher(self._cache, options, self)
        self._pending = (
            PendingResultAdapter(self._cache, self._dispatcher, self._lock, self._name)
            if options.is_pending
            else None
        )

    @property
    def _name(self) -> str:
        return self.options.name or getattr(self.fn, "__qualname__", repr(self.fn))

    def __repr__(self) -> str:
        return f"<memoized {self._name} max_size={self.options.max_size}>"

    def __get__(self, instance: Any, owner: type | None = None) -> Any:
        if instance is None:
            return self
        return types.MethodType(self, instance)

    def _get_key(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> tuple[Any, ...]:
        raw_key = make_key(args, kwargs)
        if self._get_transformed_key is not None:
            return self._get_transformed_key(raw_key)
        return raw_key

    def __call__(self, *args: Any, **kwargs: Any) -> T:
        key = self._get_key(args, kwargs)
        cache = self._cache

        with self._lock:
            key_index = self._get_key_index(cache.keys, key) if cache.keys else NOT_FOUND

            if key_index != NOT_FOUND:
                logger.debug("Cache hit", function=self._name, index=key_index)
                value = cache.values[key_index]

                # Promote before the hooks run; they may clear the cache
                if key_index:
                    order_by_lru(cache, cache.keys[key_index], value, key_index, self.options.max_size)

                self._dispatcher.hit()
                if key_index:
                    self._dispatcher.changed()
                return value

            logger.debug("Cache miss", function=self._name, size=cache.size)
            value = self.fn(*args, **kwargs)
            if self._pending is not None:
                value = self._pending.wrap(value)

            evicted = order_by_lru(cache, key, value, cache.size, self.options.max_size)
            if evicted:
                logger.debug("Evicted entries", function=self._name, count=evicted)

            self._dispatcher.added()
            self._dispatcher.changed()
            return value

    @property
    def cache(self) -> CacheStore:
        """Get the live cache store."""
        return self._cache

    @property
    def cache_snapshot(self) -> CacheSnapshot:
        """Get a point-in-time copy of the cache."""
        with self._lock:
            return self._cache.snapshot()

    def clear(self) -> None:
        """Remove every cached entry."""
        with self._lock:
            self._cache.clear()

    def invalidate(self, *args: Any, **kwargs: Any) -> bool:
        """Remove the entry a call with these arguments would hit.

        Returns:
            True if an entry was removed, False if none matched.
        """
        key = self._get_key(args, kwargs)
        with self._lock:
            index = self._get_key_index(self._cache.keys, key)
            if index == NOT_FOUND:
                return False
            remove_entry(self._cache, index)
            return True


# =============================================================================
# Public API
# =============================================================================


class _NoFunction:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<no function>"


_NO_FUNCTION: Any = _NoFunction()


def is_memoized(obj: Any) -> bool:
    """Check whether obj is already a memoized function."""
    return getattr(obj, "is_memoized", False) is True


@overload
def memoize(fn: Callable[..., T], /, *, config: MemoizeConfig | None = None, **options: Any) -> MemoizedFunction[T]: ...


@overload
def memoize(
    *, config: MemoizeConfig | None = None, **options: Any
) -> Callable[[Callable[..., T]], MemoizedFunction[T]]: ...


def memoize(
    fn: Callable[..., T] = _NO_FUNCTION,
    /,
    *,
    config: MemoizeConfig | None = None,
    **options: Any,
) -> MemoizedFunction[T] | Callable[[Callable[..., T]], MemoizedFunction[T]]:
    """Memoize a function, or build a memoizing decorator.

    Works as ``memoize(fn)``, ``@memoize`` and ``@memoize(...)``. A function
    that is already memoized is returned unchanged. Only omitting ``fn``
    builds a decorator; an explicit non-callable such as ``None`` is
    rejected.

    Args:
        fn: The function to memoize.
        config: Base configuration.
        **options: Option overrides (``max_size``, ``is_equal``,
            ``is_matching_key``, ``transform_key``, ``result_mode``,
            ``on_cache_add``, ``on_cache_hit``, ``on_cache_change``,
            ``name``); unknown options are kept in ``options.extras``.

    Returns:
        The memoized function, or a decorator when fn is omitted.

    Raises:
        NotCallableError: If fn is not callable.
        InvalidConfigValueError: If an option is invalid.

    Example:
        >>> @memoize(max_size=2, is_equal=lambda a, b: a == b)
        ... def normalize(text):
        ...     return text.strip().lower()
    """
    if fn is _NO_FUNCTION:

        def decorator(func: Callable[..., T]) -> MemoizedFunction[T]:
            return memoize(func, config=config, **options)

        return decorator

    if is_memoized(fn):
        logger.debug("Function is already memoized", function=getattr(fn, "__name__", repr(fn)))
        return fn  # type: ignore[return-value]

    if not callable(fn):
        raise NotCallableError(fn)

    return MemoizedFunction(fn, resolve_config(fn, config, options))
