"""Key equality, matching and lookup.

A key is a tuple of values. Two keys match either element-wise under an
equality predicate (the default) or through a user-supplied predicate that
sees both keys whole. The locator scans stored keys in recency order and
reports the first match.

Example:
    >>> get_key_index = create_get_key_index(is_equal=is_same_value_zero)
    >>> get_key_index([(1, "a"), (2, "b")], (2, "b"))
    1
    >>> get_key_index([(1, "a")], (3, "c")) == NOT_FOUND
    True
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Sequence

    Key = tuple[Any, ...]
    EqualityPredicate = Callable[[Any, Any], bool]
    KeyMatcher = Callable[[Key, Key], bool]
    KeyLocator = Callable[[Sequence[Key], Key], int]


NOT_FOUND = -1


# =============================================================================
# Equality Strategy
# =============================================================================


def is_same_value_zero(first: Any, second: Any) -> bool:
    """Check whether two values are equal under SameValueZero semantics.

    Identical objects and values comparing equal match; NaN matches NaN
    (any pair of self-unequal values), and ``0.0`` matches ``-0.0``.

    Args:
        first: The first value to compare.
        second: The second value to compare.

    Returns:
        True if the values are considered equal.
    """
    if first is second:
        return True
    if first == second:
        return True
    return first != first and second != second


# =============================================================================
# Key Matcher
# =============================================================================


def create_are_keys_equal(is_equal: EqualityPredicate) -> KeyMatcher:
    """Build an element-wise key matcher.

    Args:
        is_equal: Predicate applied to each pair of key elements.

    Returns:
        Function telling whether two keys have the same length and
        pairwise-equal elements.
    """

    def are_keys_equal(first: Key, second: Key) -> bool:
        if len(first) != len(second):
            return False

        for index in range(len(first)):
            if not is_equal(first[index], second[index]):
                return False

        return True

    return are_keys_equal


# =============================================================================
# Key Locator
# =============================================================================


def create_get_key_index(
    *,
    is_equal: EqualityPredicate = is_same_value_zero,
    is_matching_key: KeyMatcher | None = None,
) -> KeyLocator:
    """Build the function that finds a key among the stored keys.

    When ``is_matching_key`` is given it decides alone, receiving the stored
    key and the candidate key whole; otherwise keys are compared element-wise
    with ``is_equal``.

    Args:
        is_equal: Element equality predicate.
        is_matching_key: Optional whole-key predicate.

    Returns:
        Function returning the index of the first matching stored key, or
        NOT_FOUND.
    """
    are_keys_equal = is_matching_key or create_are_keys_equal(is_equal)

    def get_key_index(all_keys: Sequence[Key], key_to_match: Key) -> int:
        for index, stored_key in enumerate(all_keys):
            if are_keys_equal(stored_key, key_to_match):
                return index

        return NOT_FOUND

    return get_key_index
