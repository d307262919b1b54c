"""memokit: memoization with LRU eviction, custom key matching and hooks.

Quick Start:
    >>> from memokit import memoize
    >>> @memoize(max_size=10)
    ... def parse(path, strict=False):
    ...     return load(path, strict=strict)

Custom Matching:
    >>> @memoize(is_matching_key=lambda a, b: a[0]["id"] == b[0]["id"])
    ... def render(user):
    ...     return template.render(user)

Pending Results:
    >>> @memoize(max_size=5)
    ... async def fetch(url):
    ...     return await client.get(url)

Hooks:
    >>> from memokit import CacheEventCounter
    >>> counter = CacheEventCounter()
    >>> lookup = memoize(db.lookup, max_size=100, **counter.as_options())

Configuration:
    >>> from memokit import MemoizeConfig
    >>> config = MemoizeConfig.from_env()  # MEMOKIT_MAX_SIZE, MEMOKIT_RESULT_MODE
    >>> lookup = memoize(db.lookup, config=config)

Logging:
    >>> from memokit import configure_logging
    >>> configure_logging(level="DEBUG")
"""

from memokit.config import (
    DEFAULT_ENV_PREFIX,
    DEFAULT_MAX_SIZE,
    EnvReader,
    MemoizeConfig,
    ResultMode,
    load_config_file,
    resolve_config,
)
from memokit.exceptions import (
    ConfigurationError,
    InvalidConfigValueError,
    MemoizationError,
    MemokitError,
    NotCallableError,
    PendingResultError,
)
from memokit.hooks import (
    CacheEventCounter,
    HookDispatcher,
    LoggingCacheHooks,
    chain_hooks,
)
from memokit.keys import KWARGS_MARK, create_get_transformed_key, make_key, normalize_key
from memokit.logging import LogLevel, configure_logging, get_logger
from memokit.matching import (
    NOT_FOUND,
    create_are_keys_equal,
    create_get_key_index,
    is_same_value_zero,
)
from memokit.memoize import MemoizedFunction, is_memoized, memoize
from memokit.pending import PendingResultAdapter
from memokit.store import CacheSnapshot, CacheStore, find_value_index, order_by_lru, remove_entry


__version__ = "0.1.0"

__all__ = [
    # Memoization
    "memoize",
    "is_memoized",
    "MemoizedFunction",
    # Configuration
    "MemoizeConfig",
    "ResultMode",
    "EnvReader",
    "load_config_file",
    "resolve_config",
    "DEFAULT_ENV_PREFIX",
    "DEFAULT_MAX_SIZE",
    # Store
    "CacheStore",
    "CacheSnapshot",
    "order_by_lru",
    "remove_entry",
    "find_value_index",
    # Matching
    "NOT_FOUND",
    "is_same_value_zero",
    "create_are_keys_equal",
    "create_get_key_index",
    # Keys
    "KWARGS_MARK",
    "make_key",
    "normalize_key",
    "create_get_transformed_key",
    # Hooks
    "HookDispatcher",
    "LoggingCacheHooks",
    "CacheEventCounter",
    "chain_hooks",
    # Pending results
    "PendingResultAdapter",
    # Logging
    "LogLevel",
    "configure_logging",
    "get_logger",
    # Exceptions
    "MemokitError",
    "ConfigurationError",
    "InvalidConfigValueError",
    "MemoizationError",
    "NotCallableError",
    "PendingResultError",
]
