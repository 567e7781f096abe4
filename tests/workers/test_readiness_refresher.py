"""Tests for the periodic readiness refresher.

Tests cover:
- Periodic refresh while running, stopped on context exit (normal or raising)
- A slow stale build never overwrites a newer result
- Build failures are logged and the loop keeps running
- stop() without start() is a no-op
"""

import asyncio
import threading

import pytest

from liftlog.workers.readiness_refresher import ReadinessRefresher


async def _wait_for(condition, timeout: float = 5.0) -> None:
    async def _poll() -> None:
        while not condition():
            await asyncio.sleep(0.01)

    await asyncio.wait_for(_poll(), timeout)


@pytest.mark.asyncio
async def test_periodic_refresh_until_stopped():
    """Test that results keep arriving while running and stop after exit."""
    results: list[int] = []
    refresher = ReadinessRefresher(lambda: 1, results.append, interval_seconds=0.01)

    async with refresher:
        assert refresher.running
        await _wait_for(lambda: len(results) >= 3)

    assert not refresher.running
    count = len(results)
    await asyncio.sleep(0.05)
    assert len(results) == count


@pytest.mark.asyncio
async def test_refresh_cancelled_when_block_raises():
    """Test that leaving the context through an exception still cancels the periodic task."""
    results: list[int] = []
    refresher = ReadinessRefresher(lambda: 1, results.append, interval_seconds=0.01)

    with pytest.raises(RuntimeError, match="view closed"):
        async with refresher:
            await _wait_for(lambda: len(results) >= 1)
            raise RuntimeError("view closed")

    assert not refresher.running
    count = len(results)
    await asyncio.sleep(0.05)
    assert len(results) == count


@pytest.mark.asyncio
async def test_stale_build_is_discarded():
    """Test that a build started earlier but finishing later is dropped."""
    slow_started = threading.Event()
    release_slow = threading.Event()
    applied: list[str] = []

    def build() -> str:
        if not slow_started.is_set():
            slow_started.set()
            release_slow.wait(timeout=5)
            return "slow"
        return "fast"

    refresher = ReadinessRefresher(build, applied.append, interval_seconds=60)

    slow = asyncio.create_task(refresher.refresh_now())
    await asyncio.to_thread(slow_started.wait, 5)

    assert await refresher.refresh_now() is True
    release_slow.set()
    assert await slow is False

    assert applied == ["fast"]
    assert refresher.last_applied == 2


@pytest.mark.asyncio
async def test_failed_build_does_not_stop_loop():
    """Test that an exception in one build is logged and the next build still runs."""
    calls = {"n": 0}
    results: list[int] = []

    def build() -> int:
        calls["n"] += 1
        if calls["n"] == 1:
            raise RuntimeError("training log unavailable")
        return calls["n"]

    async with ReadinessRefresher(build, results.append, interval_seconds=0.01):
        await _wait_for(lambda: len(results) >= 1)

    assert results[0] == 2


@pytest.mark.asyncio
async def test_stop_without_start():
    """Test that stop() is safe before start()."""
    refresher = ReadinessRefresher(lambda: None, lambda _: None)
    await refresher.stop()
    assert not refresher.running


def test_interval_must_be_positive():
    """Test that a non-positive interval is rejected."""
    with pytest.raises(ValueError):
        ReadinessRefresher(lambda: None, lambda _: None, interval_seconds=0)
