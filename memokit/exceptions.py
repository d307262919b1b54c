"""Exception hierarchy for memokit.

All errors raised by the package inherit from MemokitError so callers can
catch anything memokit-related at a single point. Errors raised by the
memoized function itself or by user hooks are never wrapped; they reach the
caller unchanged.

Exception Hierarchy:
    MemokitError (base)
    ├── ConfigurationError
    │   └── InvalidConfigValueError
    └── MemoizationError
        ├── NotCallableError (also a TypeError)
        └── PendingResultError

Example:
    >>> try:
    ...     memoize(42)
    ... except NotCallableError as e:
    ...     logger.error(f"Cannot memoize: {e}")
"""

from __future__ import annotations

from typing import Any, Self


class MemokitError(Exception):
    """Base exception for all memokit errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional error context.
        cause: Optional original exception that caused this error.

    Example:
        >>> try:
        ...     raise MemokitError("Something went wrong", details={"key": "value"})
        ... except MemokitError as e:
        ...     print(f"Error: {e.message}, Details: {e.details}")
    """

    def __init__(
        self,
        message: str,
        *,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.cause = cause

    def __str__(self) -> str:
        """Return string representation with details if present."""
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def __repr__(self) -> str:
        """Return detailed representation for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"cause={self.cause!r})"
        )

    def with_context(self, **kwargs: Any) -> Self:
        """Create a copy of this exception with additional context details.

        The original exception is left untouched.

        Args:
            **kwargs: Additional context to add to details.

        Returns:
            New exception instance with merged details.

        Example:
            >>> e = MemokitError("Error", details={"function": "load"})
            >>> e.with_context(max_size=3).details
            {'function': 'load', 'max_size': 3}
        """
        # Bypass __init__: subclasses take different constructor arguments
        clone = self.__class__.__new__(self.__class__)
        clone.args = self.args
        clone.__dict__.update(self.__dict__)
        clone.details = {**self.details, **kwargs}
        return clone


# =============================================================================
# Configuration Errors
# =============================================================================


class ConfigurationError(MemokitError):
    """Exception for configuration-related errors.

    Attributes:
        config_key: Optional key that caused the configuration error.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize configuration error.

        Args:
            message: Human-readable error description.
            config_key: Optional key that caused the configuration error.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        if config_key:
            details["config_key"] = config_key
        super().__init__(message, details=details, cause=cause)
        self.config_key = config_key


class InvalidConfigValueError(ConfigurationError):
    """Exception for configuration values that fail validation.

    Attributes:
        config_key: The configuration key with invalid value.
        value: The invalid value that was provided.
        expected: Description of what was expected.
    """

    def __init__(
        self,
        message: str,
        *,
        config_key: str,
        value: Any = None,
        expected: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize invalid config value error.

        Args:
            message: Human-readable error description.
            config_key: The configuration key with invalid value.
            value: The invalid value that was provided.
            expected: Description of what was expected.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        details["value"] = value
        if expected:
            details["expected"] = expected
        super().__init__(message, config_key=config_key, details=details, cause=cause)
        self.value = value
        self.expected = expected


# =============================================================================
# Memoization Errors
# =============================================================================


class MemoizationError(MemokitError):
    """Base exception for errors raised by the memoization layer itself.

    Attributes:
        function_name: Name of the function being memoized, if known.
    """

    def __init__(
        self,
        message: str,
        *,
        function_name: str | None = None,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ) -> None:
        """Initialize memoization error.

        Args:
            message: Human-readable error description.
            function_name: Name of the function being memoized.
            details: Optional dictionary with additional error context.
            cause: Optional original exception that caused this error.
        """
        details = details or {}
        if function_name is not None:
            details["function"] = function_name
        super().__init__(message, details=details, cause=cause)
        self.function_name = function_name


class NotCallableError(MemoizationError, TypeError):
    """Raised when memoize() receives something that cannot be called.

    Attributes:
        received_type: Type name of the rejected object.
    """

    def __init__(self, obj: Any) -> None:
        """Initialize not-callable error.

        Args:
            obj: The rejected object.
        """
        received_type = type(obj).__name__
        super().__init__(
            "You must pass a function to `memoize`.",
            details={"received_type": received_type},
        )
        self.received_type = received_type


class PendingResultError(MemoizationError):
    """Raised when a pending result cannot be adapted for caching.

    This happens when a function configured for pending results returns
    something that is not awaitable, or is called outside a running event
    loop. Nothing is inserted into the cache in either case.
    """

    pass
