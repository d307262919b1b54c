"""Tests for caching of pending (awaitable) results."""

from __future__ import annotations

import asyncio
import importlib.util
from typing import Any

import pytest


# Check if pytest-asyncio is available
HAS_PYTEST_ASYNCIO = importlib.util.find_spec("pytest_asyncio") is not None

asyncio_test = pytest.mark.skipif(
    not HAS_PYTEST_ASYNCIO,
    reason="pytest-asyncio not installed",
)

from memokit import CacheEventCounter, PendingResultError, ResultMode, memoize
from memokit.testing import assert_cache_keys, create_recording_hooks


# =============================================================================
# Adapter Errors (no event loop needed)
# =============================================================================


class TestPendingResultErrors:
    """Tests for results that cannot be cached as pending."""

    def test_non_awaitable_result(self) -> None:
        """Test a pending function returning a plain value is rejected."""
        memoized = memoize(lambda x: x, result_mode=ResultMode.PENDING)
        with pytest.raises(PendingResultError) as exc_info:
            memoized(1)
        assert exc_info.value.details["received_type"] == "int"
        assert memoized.cache.size == 0

    def test_result_mode_from_string(self) -> None:
        """Test the result mode can be given by name."""
        memoized = memoize(lambda x: x, result_mode="pending")
        assert memoized.options.is_pending
        with pytest.raises(PendingResultError):
            memoized(1)

    def test_no_running_loop(self) -> None:
        """Test calling a coroutine function outside a loop is rejected."""

        async def fetch(x: int) -> int:
            return x

        memoized = memoize(fetch)
        with pytest.raises(PendingResultError, match="running event loop"):
            memoized(1)
        assert memoized.cache.size == 0

    def test_sync_mode_caches_coroutine_object(self) -> None:
        """Test an explicit SYNC mode stores the returned object as is."""

        async def fetch(x: int) -> int:
            return x

        memoized = memoize(fetch, result_mode=ResultMode.SYNC)
        coroutine = memoized(1)
        try:
            assert memoized(1) is coroutine
        finally:
            coroutine.close()


# =============================================================================
# Settlement
# =============================================================================


@asyncio_test
class TestPendingResults:
    """Tests for pending result settlement."""

    @pytest.mark.asyncio
    async def test_concurrent_callers_share_computation(self) -> None:
        """Test callers with the same key await one computation."""
        calls = 0

        @memoize(max_size=2)
        async def fetch(x: int) -> int:
            nonlocal calls
            calls += 1
            await asyncio.sleep(0)
            return x * 2

        first = fetch(1)
        second = fetch(1)
        assert first is second
        assert await first == 2
        assert await second == 2
        assert calls == 1

    @pytest.mark.asyncio
    async def test_settled_result_served_from_cache(self) -> None:
        """Test later calls reuse the settled task."""
        calls = 0

        @memoize
        async def fetch(x: int) -> int:
            nonlocal calls
            calls += 1
            return x

        assert await fetch(5) == 5
        assert await fetch(5) == 5
        assert calls == 1

    @pytest.mark.asyncio
    async def test_settlement_fires_hit_and_change(self) -> None:
        """Test settlement fires hooks even after other entries were promoted."""
        hooks = create_recording_hooks()

        @memoize(max_size=3, **hooks.as_options())
        async def fetch(x: int) -> int:
            await asyncio.sleep(0)
            return x * 2

        first = fetch(1)
        second = fetch(2)
        assert fetch(1) is first
        assert hooks.events == ["add", "change", "add", "change", "hit", "change"]
        assert_cache_keys(fetch, [(1,), (2,)])

        hooks.reset()
        assert await first == 2
        assert await second == 4
        assert hooks.events == ["hit", "change", "hit", "change"]
        assert hooks.records[0].snapshot.keys == ((1,), (2,))

    @pytest.mark.asyncio
    async def test_counter_counts_settlement(self) -> None:
        """Test a settled result counts as a hit."""
        counter = CacheEventCounter()

        @memoize(**counter.as_options())
        async def fetch(x: int) -> int:
            return x

        await fetch(1)
        assert counter.adds == 1
        assert counter.hits == 1
        assert counter.changes == 2

    @pytest.mark.asyncio
    async def test_failure_evicts_entry(self) -> None:
        """Test a failed result is removed and recomputed on the next call."""
        calls = 0

        @memoize(max_size=2)
        async def flaky(x: int) -> int:
            nonlocal calls
            calls += 1
            if calls == 1:
                raise ValueError("boom")
            return x

        with pytest.raises(ValueError, match="boom"):
            await flaky(1)
        assert flaky.cache.size == 0

        assert await flaky(1) == 1
        assert calls == 2

    @pytest.mark.asyncio
    async def test_failure_keeps_other_entries(self) -> None:
        """Test rollback removes only the failed entry."""

        @memoize(max_size=3)
        async def load(x: int) -> int:
            if x < 0:
                raise ValueError("negative")
            return x

        assert await load(1) == 1
        with pytest.raises(ValueError):
            await load(-1)
        assert_cache_keys(load, [(1,)])

    @pytest.mark.asyncio
    async def test_failure_leaves_newer_equal_entry(self) -> None:
        """Test a stale failure does not remove a newer entry for the same key."""
        gate = asyncio.Event()
        attempts = 0

        @memoize(max_size=2)
        async def load(x: int) -> int:
            nonlocal attempts
            attempts += 1
            attempt = attempts
            await gate.wait()
            if attempt == 1:
                raise ValueError("stale")
            return x

        first = load(1)
        assert load.invalidate(1) is True
        second = load(1)
        assert second is not first

        gate.set()
        with pytest.raises(ValueError, match="stale"):
            await first
        assert await second == 1
        assert load.cache_snapshot.values == (second,)

    @pytest.mark.asyncio
    async def test_failure_leaves_newer_entry_without_arguments(self) -> None:
        """Test a stale failure keeps the newer entry of a zero-argument call."""
        gate = asyncio.Event()
        attempts = 0

        @memoize
        async def load() -> str:
            nonlocal attempts
            attempts += 1
            if attempts == 1:
                await gate.wait()
                raise ValueError("stale")
            return "ok"

        first = load()
        assert load.invalidate() is True
        second = load()
        assert await second == "ok"

        gate.set()
        with pytest.raises(ValueError, match="stale"):
            await first
        assert load.cache.size == 1
        assert load.cache_snapshot.values == (second,)
        assert load() is second

    @pytest.mark.asyncio
    async def test_failure_leaves_newer_entry_with_shared_transformed_key(self) -> None:
        """Test rollback ignores entries whose transformed key is the same object."""
        shared_key = ("tenant",)
        gate = asyncio.Event()

        @memoize(transform_key=lambda raw: shared_key)
        async def load(fail: bool) -> str:
            if fail:
                await gate.wait()
                raise ValueError("stale")
            return "ok"

        first = load(True)
        load.invalidate(True)
        second = load(False)
        assert await second == "ok"

        gate.set()
        with pytest.raises(ValueError, match="stale"):
            await first
        assert load.cache_snapshot.values == (second,)
        assert load.cache_snapshot.keys == (shared_key,)

    @pytest.mark.asyncio
    async def test_cancellation_evicts_entry(self) -> None:
        """Test a cancelled result is removed from the cache."""
        started = asyncio.Event()

        @memoize
        async def slow(x: int) -> int:
            started.set()
            await asyncio.sleep(10)
            return x

        task = slow(1)
        await started.wait()
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        assert slow.cache.size == 0

    @pytest.mark.asyncio
    async def test_settlement_hook_failure_evicts_entry(self) -> None:
        """Test a failing hook during settlement rolls the entry back."""

        def failing(cache: Any, options: Any, memoized: Any) -> None:
            raise RuntimeError("hook failed")

        @memoize(on_cache_hit=failing)
        async def fetch(x: int) -> int:
            return x

        with pytest.raises(RuntimeError, match="hook failed"):
            await fetch(1)
        assert fetch.cache.size == 0

    @pytest.mark.asyncio
    async def test_pending_function_returning_future(self) -> None:
        """Test any awaitable can be cached in PENDING mode."""
        loop = asyncio.get_running_loop()
        futures: list[asyncio.Future[int]] = []

        def start(x: int) -> asyncio.Future[int]:
            future: asyncio.Future[int] = loop.create_future()
            futures.append(future)
            return future

        memoized = memoize(start, result_mode=ResultMode.PENDING)
        task = memoized(1)
        assert memoized(1) is task
        futures[0].set_result(42)
        assert await task == 42
        assert len(futures) == 1
