"""Fixed-interval background task with a skip-if-busy policy."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Awaitable, Callable

import structlog

logger = structlog.get_logger(__name__)


class PeriodicTask:
    """Run an async callable every ``interval_seconds``.

    Ticks fire on a fixed schedule. When a tick fires while the previous run
    is still in flight the tick is dropped; nothing is queued. A run that
    raises is logged and the schedule carries on.
    """

    def __init__(
        self,
        name: str,
        interval_seconds: float,
        func: Callable[[], Awaitable[object]],
        run_immediately: bool = False,
    ):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.name = name
        self.interval_seconds = interval_seconds
        self.func = func
        self.run_immediately = run_immediately
        self.skipped_ticks = 0
        self._running = False
        self._loop_task: asyncio.Task | None = None
        self._run_task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._running

    @property
    def busy(self) -> bool:
        return self._run_task is not None and not self._run_task.done()

    async def start(self) -> None:
        """Start the tick loop in a background task."""
        if self._running and self._loop_task and not self._loop_task.done():
            return
        self._running = True
        self._loop_task = asyncio.create_task(self._tick_loop(), name=f"{self.name}-ticker")
        logger.info("periodic_task_started", task=self.name, interval_seconds=self.interval_seconds)

    async def stop(self) -> None:
        """Stop ticking and wait for an in-flight run to finish."""
        self._running = False
        if self._loop_task:
            self._loop_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._loop_task
            self._loop_task = None
        if self._run_task:
            # Failures and cancellations were already logged by the done callback
            await asyncio.wait({self._run_task})
            self._run_task = None
        logger.info("periodic_task_stopped", task=self.name)

    def tick(self) -> bool:
        """Start one run unless the previous one is still active.

        Returns:
            True if a run was started, False if the tick was skipped
        """
        if self.busy:
            self.skipped_ticks += 1
            logger.warning("periodic_tick_skipped", task=self.name, skipped_ticks=self.skipped_ticks)
            return False

        self._run_task = asyncio.create_task(self.func(), name=f"{self.name}-run")
        self._run_task.add_done_callback(self._on_run_done)
        return True

    async def wait_idle(self) -> None:
        """Wait for the in-flight run, if any."""
        if self._run_task is not None:
            await asyncio.wait({self._run_task})

    async def _tick_loop(self) -> None:
        if self.run_immediately:
            self.tick()
        while self._running:
            await asyncio.sleep(self.interval_seconds)
            self.tick()

    def _on_run_done(self, task: asyncio.Task) -> None:
        if task.cancelled():
            logger.warning("periodic_run_cancelled", task=self.name)
            return
        exc = task.exception()
        if exc is not None:
            logger.error(
                "periodic_run_failed",
                task=self.name,
                error=str(exc),
                error_type=type(exc).__name__,
                exc_info=exc,
            )
