"""Periodic readiness refresher.

Recomputes readiness every `interval_seconds` while a consumer is active so
recovery countdowns stay current. The build itself is synchronous and
CPU-bound; it runs in a worker thread via asyncio.to_thread and its result is
delivered back on the event loop through `on_result`.

Builds are numbered in start order. A finished build is applied only if its
number is greater than the last applied one, so a slow stale build can never
overwrite a newer result.

`stop()` cancels the periodic task and waits for it; `async with` guarantees
that on every exit path. A build still running in its thread when the task is
cancelled finishes there, but its result is dropped.
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Callable
from contextlib import suppress
from typing import Generic, TypeVar

from loguru import logger

T = TypeVar("T")

DEFAULT_INTERVAL_SECONDS = 60.0


class ReadinessRefresher(Generic[T]):
    def __init__(
        self,
        build: Callable[[], T],
        on_result: Callable[[T], None],
        interval_seconds: float = DEFAULT_INTERVAL_SECONDS,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError(f"interval_seconds must be positive, got {interval_seconds}")
        self._build = build
        self._on_result = on_result
        self.interval_seconds = interval_seconds
        self._sequence = itertools.count(1)
        self._last_applied = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_applied(self) -> int:
        return self._last_applied

    def _deliver(self, sequence: int, result: T) -> bool:
        if sequence <= self._last_applied:
            logger.debug(f"[REFRESHER] Discarding stale build #{sequence} (last applied #{self._last_applied})")
            return False
        self._last_applied = sequence
        self._on_result(result)
        return True

    async def refresh_now(self) -> bool:
        """Run one build off the event loop and apply it if it is still the newest.

        Returns:
            True if the result was applied, False if it was discarded as stale
        """
        sequence = next(self._sequence)
        result = await asyncio.to_thread(self._build)
        return self._deliver(sequence, result)

    async def _run(self) -> None:
        logger.info(f"[REFRESHER] Started (interval={self.interval_seconds}s)")
        while True:
            try:
                await self.refresh_now()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.exception(f"[REFRESHER] Readiness refresh failed: {e}")
            await asyncio.sleep(self.interval_seconds)

    def start(self) -> None:
        """Start the periodic task on the running event loop (no-op if already running)."""
        if self.running:
            return
        self._task = asyncio.create_task(self._run(), name="readiness-refresher")

    async def stop(self) -> None:
        """Cancel the periodic task and wait until it has finished."""
        task = self._task
        self._task = None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
        logger.info("[REFRESHER] Stopped")

    async def __aenter__(self) -> ReadinessRefresher[T]:
        self.start()
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.stop()
