"""Testing utilities for memokit.

Example:
    >>> from memokit.testing import create_recording_hooks
    >>> hooks = create_recording_hooks()
    >>> square = memoize(lambda x: x * x, max_size=2, **hooks.as_options())
    >>> square(3)
    9
    >>> hooks.events
    ['add', 'change']
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Sequence

    from memokit.config import MemoizeConfig
    from memokit.store import CacheSnapshot, CacheStore


@dataclass(frozen=True, slots=True)
class RecordedEvent:
    """A hook invocation captured by RecordingHooks.

    Attributes:
        name: ``add``, ``hit`` or ``change``.
        snapshot: Copy of the cache taken when the hook ran.
        options: The options the hook received.
        memoized: The memoized function the hook received.
    """

    name: str
    snapshot: CacheSnapshot
    options: MemoizeConfig
    memoized: Any


class RecordingHooks:
    """Hooks that record every invocation together with a cache snapshot."""

    def __init__(self) -> None:
        """Initialize with no recorded events."""
        self._events: list[RecordedEvent] = []

    def _record(self, name: str, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        self._events.append(RecordedEvent(name, cache.snapshot(), options, memoized))

    def on_cache_add(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Record an add event."""
        self._record("add", cache, options, memoized)

    def on_cache_hit(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Record a hit event."""
        self._record("hit", cache, options, memoized)

    def on_cache_change(self, cache: CacheStore, options: MemoizeConfig, memoized: Any) -> None:
        """Record a change event."""
        self._record("change", cache, options, memoized)

    @property
    def events(self) -> list[str]:
        """Get the names of recorded events in order."""
        return [event.name for event in self._events]

    @property
    def records(self) -> list[RecordedEvent]:
        """Get all recorded events."""
        return list(self._events)

    def count(self, name: str) -> int:
        """Count recorded events with the given name."""
        return sum(1 for event in self._events if event.name == name)

    def reset(self) -> None:
        """Forget all recorded events."""
        self._events.clear()

    def as_options(self) -> dict[str, Any]:
        """Get the hooks as keyword options for memoize()."""
        return {
            "on_cache_add": self.on_cache_add,
            "on_cache_hit": self.on_cache_hit,
            "on_cache_change": self.on_cache_change,
        }


def create_recording_hooks() -> RecordingHooks:
    """Create recording hooks.

    Returns:
        RecordingHooks instance.
    """
    return RecordingHooks()


def assert_cache_keys(memoized: Any, expected: Sequence[tuple[Any, ...]]) -> None:
    """Assert the cache holds exactly these keys, most recent first.

    Args:
        memoized: The memoized function to inspect.
        expected: Expected keys in recency order.

    Raises:
        AssertionError: If the stored keys differ.
    """
    snapshot = memoized.cache_snapshot
    assert snapshot.keys == tuple(expected), (
        f"Expected keys={tuple(expected)!r}, got {snapshot.keys!r}"
    )
    assert snapshot.size == len(expected), (
        f"Expected size={len(expected)}, got {snapshot.size}"
    )
