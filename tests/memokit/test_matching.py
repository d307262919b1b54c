"""Tests for memokit.matching module."""

from __future__ import annotations

import math

from memokit.matching import (
    NOT_FOUND,
    create_are_keys_equal,
    create_get_key_index,
    is_same_value_zero,
)


# =============================================================================
# Equality Strategy Tests
# =============================================================================


class TestIsSameValueZero:
    """Tests for the default equality predicate."""

    def test_equal_values(self) -> None:
        """Test equal values match."""
        assert is_same_value_zero(1, 1)
        assert is_same_value_zero("a", "a")
        assert is_same_value_zero((1, 2), (1, 2))

    def test_different_values(self) -> None:
        """Test different values do not match."""
        assert not is_same_value_zero(1, 2)
        assert not is_same_value_zero("a", "b")
        assert not is_same_value_zero(None, 0)

    def test_nan_matches_nan(self) -> None:
        """Test NaN matches NaN."""
        assert is_same_value_zero(math.nan, float("nan"))

    def test_nan_does_not_match_number(self) -> None:
        """Test NaN does not match an ordinary number."""
        assert not is_same_value_zero(math.nan, 1.0)
        assert not is_same_value_zero(1.0, math.nan)

    def test_signed_zeros_match(self) -> None:
        """Test 0.0 matches -0.0."""
        assert is_same_value_zero(0.0, -0.0)

    def test_identical_objects_match(self) -> None:
        """Test identity wins over a custom __eq__."""

        class NeverEqual:
            def __eq__(self, other: object) -> bool:
                return False

            __hash__ = object.__hash__

        value = NeverEqual()
        assert is_same_value_zero(value, value)


# =============================================================================
# Key Matcher Tests
# =============================================================================


class TestCreateAreKeysEqual:
    """Tests for element-wise key matching."""

    def test_matching_keys(self) -> None:
        """Test same-length pairwise-equal keys match."""
        are_keys_equal = create_are_keys_equal(is_same_value_zero)
        assert are_keys_equal((1, "a"), (1, "a"))
        assert are_keys_equal((), ())

    def test_length_mismatch(self) -> None:
        """Test keys of different length never match."""
        are_keys_equal = create_are_keys_equal(lambda a, b: True)
        assert not are_keys_equal((1,), (1, 2))

    def test_custom_equality(self) -> None:
        """Test the predicate is applied per element."""
        calls: list[tuple[object, object]] = []

        def case_insensitive(a: str, b: str) -> bool:
            calls.append((a, b))
            return a.lower() == b.lower()

        are_keys_equal = create_are_keys_equal(case_insensitive)
        assert are_keys_equal(("A", "b"), ("a", "B"))
        assert calls == [("A", "a"), ("b", "B")]

    def test_stops_at_first_mismatch(self) -> None:
        """Test comparison stops at the first unequal element."""
        calls: list[tuple[object, object]] = []

        def record(a: int, b: int) -> bool:
            calls.append((a, b))
            return a == b

        are_keys_equal = create_are_keys_equal(record)
        assert not are_keys_equal((1, 2, 3), (9, 2, 3))
        assert calls == [(1, 9)]


# =============================================================================
# Key Locator Tests
# =============================================================================


class TestCreateGetKeyIndex:
    """Tests for the key locator."""

    def test_finds_index(self) -> None:
        """Test locating a stored key."""
        get_key_index = create_get_key_index()
        assert get_key_index([(1,), (2,), (3,)], (2,)) == 1

    def test_not_found(self) -> None:
        """Test missing keys report NOT_FOUND."""
        get_key_index = create_get_key_index()
        assert get_key_index([(1,), (2,)], (5,)) == NOT_FOUND
        assert get_key_index([], (1,)) == NOT_FOUND

    def test_first_match_wins(self) -> None:
        """Test the earliest matching position is reported."""
        get_key_index = create_get_key_index(is_equal=lambda a, b: True)
        assert get_key_index([(1,), (2,)], (3,)) == 0

    def test_matching_key_overrides_equality(self) -> None:
        """Test is_matching_key receives whole keys and decides alone."""
        seen: list[tuple[object, object]] = []

        def same_id(stored: tuple, candidate: tuple) -> bool:
            seen.append((stored, candidate))
            return stored[0]["id"] == candidate[0]["id"]

        get_key_index = create_get_key_index(
            is_equal=lambda a, b: False,
            is_matching_key=same_id,
        )
        stored = [({"id": 1, "v": "x"},), ({"id": 2, "v": "y"},)]
        candidate = ({"id": 2, "v": "other"},)
        assert get_key_index(stored, candidate) == 1
        assert seen[0] == (stored[0], candidate)

    def test_matching_key_can_ignore_length(self) -> None:
        """Test a whole-key predicate may match keys of different length."""
        get_key_index = create_get_key_index(is_matching_key=lambda a, b: a[0] == b[0])
        assert get_key_index([(1, 2, 3)], (1,)) == 0

