"""Tests for memokit.exceptions module."""

from __future__ import annotations

import pytest

from memokit.exceptions import (
    ConfigurationError,
    InvalidConfigValueError,
    MemoizationError,
    MemokitError,
    NotCallableError,
    PendingResultError,
)


class TestMemokitError:
    """Tests for MemokitError base exception."""

    def test_basic_error(self) -> None:
        """Test basic error creation."""
        error = MemokitError("Test error")
        assert str(error) == "Test error"
        assert error.message == "Test error"
        assert error.details == {}
        assert error.cause is None

    def test_error_with_details(self) -> None:
        """Test details are included in the string form."""
        error = MemokitError("Cache error", details={"function": "load"})
        assert "Cache error" in str(error)
        assert "function" in str(error)

    def test_error_with_cause(self) -> None:
        """Test cause is kept."""
        cause = ValueError("bad")
        error = MemokitError("Wrapped", cause=cause)
        assert error.cause is cause
        assert "ValueError" in repr(error)

    def test_with_context(self) -> None:
        """Test with_context returns an enriched copy."""
        error = MemokitError("Error", details={"function": "load"})
        enriched = error.with_context(max_size=3)
        assert enriched.details == {"function": "load", "max_size": 3}
        assert error.details == {"function": "load"}
        assert enriched.message == "Error"

    def test_with_context_on_subclass(self) -> None:
        """Test with_context keeps subclass attributes."""
        error = InvalidConfigValueError("Bad value", config_key="max_size", value=0)
        enriched = error.with_context(source="env")
        assert isinstance(enriched, InvalidConfigValueError)
        assert enriched.config_key == "max_size"
        assert enriched.value == 0
        assert enriched.details["source"] == "env"
        assert "source" not in error.details


class TestConfigurationErrors:
    """Tests for configuration exceptions."""

    def test_configuration_error(self) -> None:
        """Test configuration error records the key."""
        error = ConfigurationError("Missing", config_key="max_size")
        assert error.config_key == "max_size"
        assert error.details["config_key"] == "max_size"

    def test_invalid_config_value(self) -> None:
        """Test invalid value error details."""
        error = InvalidConfigValueError(
            "max_size must be at least 1",
            config_key="max_size",
            value=0,
            expected="integer >= 1",
        )
        assert isinstance(error, ConfigurationError)
        assert error.value == 0
        assert error.expected == "integer >= 1"
        assert error.details["value"] == 0
        assert error.details["expected"] == "integer >= 1"


class TestMemoizationErrors:
    """Tests for memoization exceptions."""

    def test_not_callable_error(self) -> None:
        """Test not-callable error message and type."""
        error = NotCallableError(42)
        assert error.message == "You must pass a function to `memoize`."
        assert error.received_type == "int"
        assert isinstance(error, TypeError)
        assert isinstance(error, MemoizationError)

    def test_not_callable_caught_as_type_error(self) -> None:
        """Test the error can be caught as TypeError."""
        with pytest.raises(TypeError):
            raise NotCallableError("text")

    def test_pending_result_error(self) -> None:
        """Test pending error records the function name."""
        error = PendingResultError("Not awaitable", function_name="fetch")
        assert error.function_name == "fetch"
        assert error.details["function"] == "fetch"
        assert isinstance(error, MemokitError)
