"""Ordered cache store and LRU reordering.

The store keeps keys and values in two parallel lists, most recently used
first. All mutation goes through order_by_lru() and remove_entry() so the
two lists always stay the same length.

Example:
    >>> store = CacheStore()
    >>> order_by_lru(store, ("a",), 1, store.size, max_size=2)
    0
    >>> order_by_lru(store, ("b",), 2, store.size, max_size=2)
    0
    >>> store.snapshot().keys
    (('b',), ('a',))
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from memokit.matching import NOT_FOUND


# =============================================================================
# Snapshot
# =============================================================================


@dataclass(frozen=True, slots=True)
class CacheSnapshot:
    """Point-in-time copy of a cache store.

    Attributes:
        keys: Stored keys, most recently used first.
        values: Stored values, aligned with keys.
        size: Number of entries.
    """

    keys: tuple[tuple[Any, ...], ...]
    values: tuple[Any, ...]
    size: int

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "keys": list(self.keys),
            "values": list(self.values),
            "size": self.size,
        }


# =============================================================================
# Store
# =============================================================================


class CacheStore:
    """Parallel key/value lists ordered by recency.

    This is the live object handed to cache hooks; use snapshot() for a copy
    that later calls cannot mutate.
    """

    __slots__ = ("keys", "values")

    def __init__(self) -> None:
        self.keys: list[tuple[Any, ...]] = []
        self.values: list[Any] = []

    @property
    def size(self) -> int:
        """Get the number of entries."""
        return len(self.keys)

    def __len__(self) -> int:
        return len(self.keys)

    def __repr__(self) -> str:
        return f"CacheStore(size={self.size}, keys={self.keys!r})"

    def snapshot(self) -> CacheSnapshot:
        """Take a point-in-time copy of the store."""
        return CacheSnapshot(
            keys=tuple(self.keys),
            values=tuple(self.values),
            size=self.size,
        )

    def clear(self) -> None:
        """Remove all entries."""
        self.keys.clear()
        self.values.clear()


# =============================================================================
# LRU Reordering
# =============================================================================


def order_by_lru(
    store: CacheStore,
    key: tuple[Any, ...],
    value: Any,
    starting_index: int,
    max_size: int,
) -> int:
    """Move an entry to the front of the store and trim it to max_size.

    ``starting_index`` equal to ``store.size`` inserts a new entry; any
    smaller index promotes the existing entry found there. Entries between
    the front and the promoted one keep their relative order.

    Args:
        store: The store to reorder.
        key: Key of the entry.
        value: Value of the entry.
        starting_index: Current index of the entry, or store.size if new.
        max_size: Maximum number of entries to keep.

    Returns:
        Number of entries evicted from the tail.
    """
    keys = store.keys
    values = store.values

    if starting_index == len(keys):
        keys.insert(0, key)
        values.insert(0, value)
    elif starting_index:
        del keys[starting_index]
        del values[starting_index]
        keys.insert(0, key)
        values.insert(0, value)

    evicted = len(keys) - max_size
    if evicted <= 0:
        return 0

    del keys[max_size:]
    del values[max_size:]
    return evicted


def remove_entry(store: CacheStore, index: int) -> None:
    """Delete the entry at index from both lists."""
    del store.keys[index]
    del store.values[index]


def find_value_index(store: CacheStore, value: Any) -> int:
    """Find the entry holding this exact value object.

    Equal values and equal keys are ignored, so a newer entry for the same
    arguments is never mistaken for this one.

    Returns:
        Index of the entry, or NOT_FOUND.
    """
    for index, stored_value in enumerate(store.values):
        if stored_value is value:
            return index

    return NOT_FOUND
