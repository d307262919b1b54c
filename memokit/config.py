"""Configuration for memoized functions.

A MemoizeConfig is resolved once when a function is memoized and never
changes afterwards. It can be built from keyword options, from environment
variables, or from a JSON/YAML file; callables (equality, key transform,
hooks) can only be supplied in code.

Configuration Precedence (highest to lowest):
    1. Keyword options passed to memoize()
    2. The ``config`` passed to memoize() (possibly from env or file)
    3. Default values

Example:
    >>> config = MemoizeConfig(max_size=10, name="users")
    >>> bigger = config.with_max_size(100)
    >>> env_config = MemoizeConfig.from_env()  # MEMOKIT_MAX_SIZE=...
"""

from __future__ import annotations

import inspect
import json
import os
from dataclasses import dataclass, field, fields, replace
from enum import Enum, auto
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Self

import yaml

from memokit.exceptions import ConfigurationError, InvalidConfigValueError
from memokit.matching import is_same_value_zero


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    CacheHook = Callable[[Any, "MemoizeConfig", Any], None]


# =============================================================================
# Constants
# =============================================================================

DEFAULT_ENV_PREFIX = "MEMOKIT"
DEFAULT_MAX_SIZE = 1
CONFIG_SECTION = "memokit"


# =============================================================================
# Enums
# =============================================================================


class ResultMode(Enum):
    """How the memoized function delivers its result.

    Attributes:
        SYNC: The return value is the result and is cached as is.
        PENDING: The return value is an awaitable; it is cached while pending
            and evicted again if it fails.
    """

    SYNC = auto()
    PENDING = auto()

    @classmethod
    def from_string(cls, value: str) -> ResultMode:
        """Parse a result mode name (case-insensitive).

        Raises:
            InvalidConfigValueError: If the name is unknown.
        """
        try:
            return cls[value.strip().upper()]
        except KeyError as e:
            raise InvalidConfigValueError(
                f"Unknown result mode: {value!r}",
                config_key="result_mode",
                value=value,
                expected="one of: " + ", ".join(mode.name.lower() for mode in cls),
                cause=e,
            ) from e


# =============================================================================
# Environment Variable Utilities
# =============================================================================


class EnvReader:
    """Read prefixed environment variables with typed accessors.

    Example:
        >>> reader = EnvReader(prefix="MEMOKIT")
        >>> max_size = reader.get_int("MAX_SIZE", default=1)
    """

    def __init__(self, prefix: str = DEFAULT_ENV_PREFIX) -> None:
        """Initialize the environment reader.

        Args:
            prefix: Prefix for environment variable names.
        """
        self.prefix = prefix

    def _make_key(self, name: str) -> str:
        if self.prefix:
            return f"{self.prefix}_{name}"
        return name

    def get(self, name: str, default: str | None = None) -> str | None:
        """Get a string environment variable.

        Args:
            name: Variable name (without prefix).
            default: Default value if not set.

        Returns:
            Environment variable value or default.
        """
        return os.environ.get(self._make_key(name), default)

    def get_int(self, name: str, default: int | None = None) -> int | None:
        """Get an integer environment variable.

        Args:
            name: Variable name (without prefix).
            default: Default value if not set.

        Returns:
            Parsed integer value or default.

        Raises:
            InvalidConfigValueError: If value cannot be parsed as int.
        """
        value = self.get(name)
        if value is None:
            return default
        try:
            return int(value)
        except ValueError as e:
            raise InvalidConfigValueError(
                f"Invalid integer value for {self._make_key(name)}",
                config_key=self._make_key(name),
                value=value,
                expected="integer",
                cause=e,
            ) from e


# =============================================================================
# File Configuration Utilities
# =============================================================================


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        with path.open() as f:
            data = yaml.safe_load(f)
            return data if isinstance(data, dict) else {}
    except yaml.YAMLError as e:
        raise ConfigurationError(
            f"Failed to parse YAML configuration: {path}",
            details={"path": str(path)},
            cause=e,
        ) from e


def _load_json(path: Path) -> dict[str, Any]:
    try:
        with path.open() as f:
            data = json.load(f)
            return data if isinstance(data, dict) else {}
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Failed to parse JSON configuration: {path}",
            details={"path": str(path)},
            cause=e,
        ) from e


def load_config_file(path: str | Path) -> dict[str, Any]:
    """Load configuration from a JSON or YAML file.

    Args:
        path: Path to configuration file.

    Returns:
        Parsed configuration dictionary (empty if the file holds no mapping).

    Raises:
        ConfigurationError: If the file is missing, unparsable, or has an
            unsupported extension.
    """
    path = Path(path)
    if not path.exists():
        raise ConfigurationError(
            f"Configuration file not found: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()
    if suffix in (".yaml", ".yml"):
        return _load_yaml(path)
    elif suffix == ".json":
        return _load_json(path)
    else:
        raise ConfigurationError(
            f"Unsupported configuration file format: {suffix}",
            details={"path": str(path), "suffix": suffix},
        )


# =============================================================================
# Memoize Configuration
# =============================================================================


def _require_callable(name: str, value: Any, *, optional: bool = True) -> None:
    if value is None and optional:
        return
    if not callable(value):
        raise InvalidConfigValueError(
            f"{name} must be callable",
            config_key=name,
            value=value,
            expected="callable" if not optional else "callable or None",
        )


@dataclass(frozen=True, slots=True)
class MemoizeConfig:
    """Resolved options of a memoized function.

    Attributes:
        max_size: Maximum number of cached entries (at least 1).
        is_equal: Element equality used to compare keys element-wise.
        is_matching_key: Optional predicate comparing two whole keys; replaces
            the element-wise comparison when set.
        transform_key: Optional function turning the raw key into the key
            actually stored.
        result_mode: SYNC or PENDING; None means "infer from the function"
            and is replaced by a concrete mode when memoizing.
        on_cache_add: Hook fired after a new entry is inserted.
        on_cache_hit: Hook fired when a call matches a stored entry.
        on_cache_change: Hook fired when entry order or membership changed.
        name: Optional name used in logs.
        extras: Custom options passed through untouched (read-only).

    Example:
        >>> config = MemoizeConfig(max_size=3, on_cache_hit=print_hit)
        >>> dict(config.merge(max_size=5, owner="reports").extras)
        {'owner': 'reports'}
    """

    max_size: int = DEFAULT_MAX_SIZE
    is_equal: Callable[[Any, Any], bool] = is_same_value_zero
    is_matching_key: Callable[[tuple[Any, ...], tuple[Any, ...]], bool] | None = None
    transform_key: Callable[[tuple[Any, ...]], Any] | None = None
    result_mode: ResultMode | None = None
    on_cache_add: CacheHook | None = None
    on_cache_hit: CacheHook | None = None
    on_cache_change: CacheHook | None = None
    name: str | None = None
    extras: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        """Validate configuration values."""
        object.__setattr__(self, "extras", MappingProxyType(dict(self.extras)))
        if isinstance(self.max_size, bool) or not isinstance(self.max_size, int):
            raise InvalidConfigValueError(
                "max_size must be an integer",
                config_key="max_size",
                value=self.max_size,
                expected="integer >= 1",
            )
        if self.max_size < 1:
            raise InvalidConfigValueError(
                "max_size must be at least 1",
                config_key="max_size",
                value=self.max_size,
                expected="integer >= 1",
            )
        if self.result_mode is not None and not isinstance(self.result_mode, ResultMode):
            raise InvalidConfigValueError(
                "result_mode must be a ResultMode",
                config_key="result_mode",
                value=self.result_mode,
                expected="ResultMode or None",
            )
        _require_callable("is_equal", self.is_equal, optional=False)
        _require_callable("is_matching_key", self.is_matching_key)
        _require_callable("transform_key", self.transform_key)
        _require_callable("on_cache_add", self.on_cache_add)
        _require_callable("on_cache_hit", self.on_cache_hit)
        _require_callable("on_cache_change", self.on_cache_change)

    @property
    def is_pending(self) -> bool:
        """Whether results are cached as pending awaitables."""
        return self.result_mode is ResultMode.PENDING

    def merge(self, **options: Any) -> MemoizeConfig:
        """Create a config with options applied on top of this one.

        Unknown option names are kept in ``extras``. A string
        ``result_mode`` is parsed into a ResultMode.

        Args:
            **options: Option overrides.

        Returns:
            New MemoizeConfig.
        """
        known = {f.name for f in fields(self)} - {"extras"}
        updates = {name: value for name, value in options.items() if name in known}
        custom = {name: value for name, value in options.items() if name not in known}

        if isinstance(updates.get("result_mode"), str):
            updates["result_mode"] = ResultMode.from_string(updates["result_mode"])
        if custom:
            updates["extras"] = {**self.extras, **custom}

        return replace(self, **updates)

    def with_max_size(self, max_size: int) -> MemoizeConfig:
        """Create config with new max_size."""
        return self.merge(max_size=max_size)

    def with_name(self, name: str) -> MemoizeConfig:
        """Create config with a name."""
        return self.merge(name=name)

    def with_result_mode(self, result_mode: ResultMode) -> MemoizeConfig:
        """Create config with a concrete result mode."""
        return self.merge(result_mode=result_mode)

    def with_hooks(
        self,
        *,
        on_cache_add: CacheHook | None = None,
        on_cache_hit: CacheHook | None = None,
        on_cache_change: CacheHook | None = None,
    ) -> MemoizeConfig:
        """Create config with the given hooks replacing the current ones."""
        return self.merge(
            on_cache_add=on_cache_add,
            on_cache_hit=on_cache_hit,
            on_cache_change=on_cache_change,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert the serializable options to a dictionary."""
        return {
            "max_size": self.max_size,
            "result_mode": self.result_mode.name.lower() if self.result_mode else None,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """Create MemoizeConfig from a dictionary.

        Args:
            data: Dictionary with ``max_size``, ``result_mode`` and ``name``.

        Returns:
            New MemoizeConfig instance.
        """
        result_mode = data.get("result_mode")
        return cls(
            max_size=data.get("max_size", DEFAULT_MAX_SIZE),
            result_mode=ResultMode.from_string(result_mode) if result_mode else None,
            name=data.get("name"),
        )

    @classmethod
    def from_env(cls, prefix: str = DEFAULT_ENV_PREFIX) -> Self:
        """Create configuration from environment variables.

        Environment Variables:
            {PREFIX}_MAX_SIZE: Maximum number of entries (int)
            {PREFIX}_RESULT_MODE: ``sync`` or ``pending``
            {PREFIX}_NAME: Name used in logs

        Args:
            prefix: Environment variable prefix.

        Returns:
            New MemoizeConfig instance.
        """
        env = EnvReader(prefix)
        return cls.from_dict({
            "max_size": env.get_int("MAX_SIZE", default=DEFAULT_MAX_SIZE),
            "result_mode": env.get("RESULT_MODE"),
            "name": env.get("NAME"),
        })

    @classmethod
    def from_file(cls, path: str | Path) -> Self:
        """Create configuration from a JSON or YAML file.

        Options may sit at the top level or under a ``memokit`` section.

        Args:
            path: Path to the configuration file.

        Returns:
            New MemoizeConfig instance.
        """
        data = load_config_file(path)
        section = data.get(CONFIG_SECTION)
        return cls.from_dict(section if isinstance(section, dict) else data)


def resolve_config(
    fn: Callable[..., Any],
    config: MemoizeConfig | None = None,
    options: Mapping[str, Any] | None = None,
) -> MemoizeConfig:
    """Produce the final configuration of a function being memoized.

    Keyword options override ``config``. When no result mode was chosen,
    coroutine functions get PENDING and everything else SYNC.

    Args:
        fn: The function being memoized.
        config: Base configuration.
        options: Keyword option overrides.

    Returns:
        MemoizeConfig with a concrete result mode.
    """
    resolved = config or MemoizeConfig()
    if options:
        resolved = resolved.merge(**options)

    if resolved.result_mode is None:
        mode = ResultMode.PENDING if inspect.iscoroutinefunction(fn) else ResultMode.SYNC
        resolved = resolved.with_result_mode(mode)

    return resolved
