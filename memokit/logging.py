"""Structured logging for memokit.

Loggers obtained from get_logger() are silent until configure_logging() is
called or a handler is attached, so importing memokit never writes output on
its own. The cache engine logs at DEBUG level with keyword fields, e.g.::

    2024-01-15T10:30:45.123456+00:00 [DEBUG] memokit.memoize: Cache hit | function=load index=2

Example:
    >>> from memokit.logging import configure_logging, get_logger
    >>> configure_logging(level="DEBUG", format="json")
    >>> logger = get_logger("memokit.memoize")
    >>> logger.debug("Cache miss", function="load", size=3)
"""

from __future__ import annotations

import json
import logging
import sys
from abc import abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable


if TYPE_CHECKING:
    from collections.abc import Callable


# =============================================================================
# Levels
# =============================================================================


class LogLevel(Enum):
    """Log severity levels, numerically aligned with the stdlib levels."""

    DEBUG = 10
    INFO = 20
    WARNING = 30
    ERROR = 40
    CRITICAL = 50

    def to_stdlib(self) -> int:
        """Convert to stdlib logging level."""
        return self.value

    @classmethod
    def from_string(cls, level: str) -> LogLevel:
        """Create from string representation, falling back to INFO."""
        try:
            return cls[level.upper()]
        except KeyError:
            return cls.INFO


# =============================================================================
# Log Record
# =============================================================================


@dataclass(slots=True)
class LogRecord:
    """Structured log record.

    Attributes:
        level: Log severity level.
        message: Log message.
        logger_name: Name of the logger.
        timestamp: When the record was created.
        extra: Keyword fields passed with the message.
        exc_info: Exception attached to the record, if any.
    """

    level: LogLevel
    message: str
    logger_name: str
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))
    extra: dict[str, Any] = field(default_factory=dict)
    exc_info: BaseException | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        result = {
            "level": self.level.name,
            "message": self.message,
            "logger": self.logger_name,
            "timestamp": self.timestamp.isoformat(),
            **self.extra,
        }
        if self.exc_info:
            result["exception"] = str(self.exc_info)
            result["exception_type"] = type(self.exc_info).__name__
        return result


# =============================================================================
# Protocols
# =============================================================================


@runtime_checkable
class LogHandler(Protocol):
    """Protocol for log handlers."""

    @abstractmethod
    def handle(self, record: LogRecord) -> None:
        """Handle a log record."""
        ...

    @abstractmethod
    def flush(self) -> None:
        """Flush any buffered output."""
        ...

    @abstractmethod
    def close(self) -> None:
        """Close the handler and release resources."""
        ...


@runtime_checkable
class LogFormatter(Protocol):
    """Protocol for log formatters."""

    @abstractmethod
    def format(self, record: LogRecord) -> str:
        """Format a log record as a string."""
        ...


# =============================================================================
# Formatters
# =============================================================================


class TextFormatter:
    """Human-readable single-line formatter.

    Example output:
        2024-01-15T10:30:45.123456+00:00 [INFO] memokit.memoize: Message | size=1
    """

    def __init__(self, include_extra: bool = True, timestamp_format: str | None = None) -> None:
        """Initialize the formatter.

        Args:
            include_extra: Whether to append keyword fields.
            timestamp_format: strftime format (None for ISO 8601).
        """
        self.include_extra = include_extra
        self.timestamp_format = timestamp_format

    def format(self, record: LogRecord) -> str:
        """Format log record as text."""
        if self.timestamp_format:
            timestamp = record.timestamp.strftime(self.timestamp_format)
        else:
            timestamp = record.timestamp.isoformat()

        parts = [timestamp, f"[{record.level.name}]", f"{record.logger_name}:", record.message]

        if self.include_extra and record.extra:
            parts.append("| " + " ".join(f"{k}={v}" for k, v in record.extra.items()))

        if record.exc_info:
            parts.append(f"| exception={record.exc_info!r}")

        return " ".join(parts)


class JSONFormatter:
    """JSON formatter for log shippers."""

    def __init__(self, indent: int | None = None) -> None:
        """Initialize the formatter.

        Args:
            indent: JSON indentation (None for compact).
        """
        self._indent = indent

    def format(self, record: LogRecord) -> str:
        """Format log record as JSON."""
        return json.dumps(record.to_dict(), indent=self._indent, default=str)


# =============================================================================
# Handlers
# =============================================================================


class StreamHandler:
    """Handler that writes formatted records to a stream (stderr by default)."""

    def __init__(
        self,
        stream: Any = None,
        formatter: LogFormatter | None = None,
        level: LogLevel = LogLevel.DEBUG,
    ) -> None:
        """Initialize the handler.

        Args:
            stream: Output stream (default: sys.stderr).
            formatter: Log formatter to use.
            level: Minimum log level to handle.
        """
        self._stream = stream or sys.stderr
        self._formatter = formatter or TextFormatter()
        self._level = level
        self._closed = False

    def handle(self, record: LogRecord) -> None:
        """Write the record unless closed or below the handler level."""
        if self._closed or record.level.value < self._level.value:
            return

        try:
            self._stream.write(self._formatter.format(record) + "\n")
        except Exception:
            # Fail silently to avoid logging loops
            pass

    def flush(self) -> None:
        """Flush the stream."""
        if not self._closed and hasattr(self._stream, "flush"):
            try:
                self._stream.flush()
            except Exception:
                pass

    def close(self) -> None:
        """Close the handler."""
        self.flush()
        self._closed = True


class BufferingHandler:
    """Handler that keeps records in memory until flushed.

    Handy in tests: records are available through ``records`` until a flush
    hands them to ``flush_callback``.
    """

    def __init__(
        self,
        capacity: int = 100,
        flush_callback: Callable[[list[LogRecord]], None] | None = None,
    ) -> None:
        """Initialize the handler.

        Args:
            capacity: Buffer size that triggers an automatic flush.
            flush_callback: Callback receiving the flushed records.
        """
        self._capacity = capacity
        self._flush_callback = flush_callback
        self._buffer: list[LogRecord] = []
        self._closed = False

    @property
    def records(self) -> list[LogRecord]:
        """Get buffered records."""
        return list(self._buffer)

    def handle(self, record: LogRecord) -> None:
        """Buffer the record."""
        if self._closed:
            return

        self._buffer.append(record)
        if len(self._buffer) >= self._capacity:
            self.flush()

    def flush(self) -> None:
        """Hand buffered records to the callback and empty the buffer."""
        if self._buffer and self._flush_callback:
            try:
                self._flush_callback(list(self._buffer))
            except Exception:
                pass
        self._buffer.clear()

    def close(self) -> None:
        """Close the handler."""
        self.flush()
        self._closed = True


class NullHandler:
    """Handler that discards all records."""

    def handle(self, record: LogRecord) -> None:
        pass

    def flush(self) -> None:
        pass

    def close(self) -> None:
        pass


class StdlibLoggerAdapter:
    """Handler that forwards records to a stdlib ``logging.Logger``.

    Use it to route memokit logs into an application's existing logging
    configuration.
    """

    def __init__(self, stdlib_logger: logging.Logger | None = None) -> None:
        """Initialize the adapter.

        Args:
            stdlib_logger: Python logger to use (default: ``memokit``).
        """
        self._logger = stdlib_logger or logging.getLogger("memokit")

    def handle(self, record: LogRecord) -> None:
        """Forward the record with its keyword fields appended."""
        message = record.message
        if record.extra:
            extra_str = " ".join(f"{k}={v}" for k, v in record.extra.items())
            message = f"{record.message} | {extra_str}"
        self._logger.log(record.level.to_stdlib(), message, exc_info=record.exc_info)

    def flush(self) -> None:
        """Flush all handlers of the stdlib logger."""
        for handler in self._logger.handlers:
            handler.flush()

    def close(self) -> None:
        pass


# =============================================================================
# Logger Implementation
# =============================================================================


class MemokitLogger:
    """Logger with keyword fields and hierarchical propagation.

    Example:
        >>> logger = MemokitLogger("memokit.memoize", handlers=[StreamHandler()])
        >>> logger.debug("Cache hit", function="load", index=0)
    """

    def __init__(
        self,
        name: str,
        level: LogLevel = LogLevel.DEBUG,
        handlers: list[LogHandler] | None = None,
        propagate: bool = True,
    ) -> None:
        """Initialize the logger.

        Args:
            name: Logger name (dotted, e.g. ``memokit.pending``).
            level: Minimum log level.
            handlers: Log handlers.
            propagate: Whether to hand records to the parent logger.
        """
        self.name = name
        self.level = level
        self._handlers: list[LogHandler] = handlers or []
        self._propagate = propagate
        self._parent: MemokitLogger | None = None

    def add_handler(self, handler: LogHandler) -> None:
        """Add a handler to the logger."""
        if handler not in self._handlers:
            self._handlers.append(handler)

    def remove_handler(self, handler: LogHandler) -> None:
        """Remove a handler from the logger."""
        if handler in self._handlers:
            self._handlers.remove(handler)

    def is_enabled_for(self, level: LogLevel) -> bool:
        """Check if logger is enabled for the given level."""
        return level.value >= self.level.value

    def _log(
        self,
        level: LogLevel,
        message: str,
        exc_info: BaseException | None = None,
        **kwargs: Any,
    ) -> None:
        if not self.is_enabled_for(level):
            return

        record = LogRecord(
            level=level,
            message=message,
            logger_name=self.name,
            extra=kwargs,
            exc_info=exc_info,
        )
        self._dispatch(record)

    def _dispatch(self, record: LogRecord) -> None:
        for handler in self._handlers:
            try:
                handler.handle(record)
            except Exception:
                # Fail silently to avoid logging loops
                pass

        if self._propagate and self._parent:
            self._parent._dispatch(record)

    def debug(self, message: str, **kwargs: Any) -> None:
        """Log at DEBUG level."""
        self._log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        """Log at INFO level."""
        self._log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        """Log at WARNING level."""
        self._log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, exc_info: BaseException | None = None, **kwargs: Any) -> None:
        """Log at ERROR level."""
        self._log(LogLevel.ERROR, message, exc_info=exc_info, **kwargs)

    def exception(self, message: str, **kwargs: Any) -> None:
        """Log the exception currently being handled at ERROR level."""
        self._log(LogLevel.ERROR, message, exc_info=sys.exc_info()[1], **kwargs)


# =============================================================================
# Logger Registry
# =============================================================================


class LoggerRegistry:
    """Registry handing out one logger per dotted name."""

    def __init__(self) -> None:
        """Initialize the registry."""
        self._loggers: dict[str, MemokitLogger] = {}
        self._root_handlers: list[LogHandler] = []
        self._root_level: LogLevel = LogLevel.INFO

    def get_logger(self, name: str, level: LogLevel | None = None) -> MemokitLogger:
        """Get or create a logger by name.

        Args:
            name: Logger name.
            level: Optional level override for a newly created logger.

        Returns:
            MemokitLogger instance.
        """
        if name in self._loggers:
            return self._loggers[name]

        parent = None
        if "." in name:
            parent = self._loggers.get(name.rsplit(".", 1)[0])

        # Children reach the root handlers through their parent
        logger = MemokitLogger(
            name=name,
            level=level or self._root_level,
            handlers=[] if parent else list(self._root_handlers),
        )
        logger._parent = parent
        self._loggers[name] = logger
        return logger

    def configure(
        self,
        level: LogLevel = LogLevel.INFO,
        handlers: list[LogHandler] | None = None,
        format: str = "text",
    ) -> None:
        """Configure the default level and handlers for every logger.

        Args:
            level: Default log level.
            handlers: Default handlers (a stderr StreamHandler if omitted).
            format: Format of the default handler ('text' or 'json').
        """
        self._root_level = level

        if handlers is not None:
            self._root_handlers = list(handlers)
        else:
            formatter: LogFormatter = JSONFormatter() if format == "json" else TextFormatter()
            self._root_handlers = [StreamHandler(formatter=formatter, level=level)]

        for logger in self._loggers.values():
            logger.level = level
            logger._handlers = [] if logger._parent else list(self._root_handlers)


_registry = LoggerRegistry()


def get_logger(name: str, level: LogLevel | None = None) -> MemokitLogger:
    """Get a logger by name.

    Args:
        name: Logger name (typically __name__).
        level: Optional level override.

    Returns:
        MemokitLogger instance.

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Cache warmed", entries=10)
    """
    return _registry.get_logger(name, level)


def configure_logging(
    level: LogLevel | str = LogLevel.INFO,
    handlers: list[LogHandler] | None = None,
    format: str = "text",
) -> None:
    """Configure global logging settings.

    Args:
        level: Default log level (LogLevel or string).
        handlers: Default handlers.
        format: Format type ('text' or 'json').

    Example:
        >>> configure_logging(level="DEBUG", format="json")
    """
    if isinstance(level, str):
        level = LogLevel.from_string(level)
    _registry.configure(level=level, handlers=handlers, format=format)
