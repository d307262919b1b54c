"""Cache key derivation.

A raw key holds the positional arguments of a call. Keyword arguments, when
present, follow a private marker as flattened ``name, value`` pairs sorted by
name, so ``f(1, b=2, c=3)`` and ``f(1, c=3, b=2)`` share one cache slot while
``f(1, "b", 2)`` does not collide with ``f(1, b=2)``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any


if TYPE_CHECKING:
    from collections.abc import Callable, Mapping


class _KeywordMark:
    __slots__ = ()

    def __repr__(self) -> str:
        return "<kwargs>"


KWARGS_MARK = _KeywordMark()


def make_key(args: tuple[Any, ...], kwargs: Mapping[str, Any]) -> tuple[Any, ...]:
    """Build the raw cache key for a call.

    Args:
        args: Positional arguments of the call.
        kwargs: Keyword arguments of the call.

    Returns:
        The positional arguments, followed by the keyword marker and the
        sorted keyword pairs when there are keyword arguments.
    """
    if not kwargs:
        return args

    key: list[Any] = [*args, KWARGS_MARK]
    for name in sorted(kwargs):
        key.append(name)
        key.append(kwargs[name])
    return tuple(key)


def normalize_key(key: Any) -> tuple[Any, ...]:
    """Coerce a transformed key into a key tuple.

    Lists and tuples become tuples; any other value, strings included, becomes
    a one-element key.
    """
    if isinstance(key, tuple):
        return key
    if isinstance(key, list):
        return tuple(key)
    return (key,)


def create_get_transformed_key(
    transform_key: Callable[[tuple[Any, ...]], Any],
) -> Callable[[tuple[Any, ...]], tuple[Any, ...]]:
    """Wrap a user key transform so it always yields a key tuple.

    Args:
        transform_key: Function receiving the raw key.

    Returns:
        Function returning the normalized transformed key.
    """

    def get_transformed_key(raw_key: tuple[Any, ...]) -> tuple[Any, ...]:
        return normalize_key(transform_key(raw_key))

    return get_transformed_key

