"""Poll scheduler - drives probe, diff and dispatch cycles."""

from __future__ import annotations

import time
from typing import Protocol

import structlog

from .diff import diff_snapshots
from .models import Notification
from .periodic import PeriodicTask
from .prober import StatusProber, probe_all
from .registry import ServerRegistry
from .store import SnapshotStore

logger = structlog.get_logger(__name__)


class NotificationSink(Protocol):
    async def dispatch(self, notifications: list[Notification]) -> None: ...


class PollScheduler:
    """Periodically probe every server and dispatch the resulting transitions.

    The snapshot store is owned exclusively by this class. A cycle probes
    all servers, waits for every probe, diffs against the stored set and only
    then swaps the store, so no reader ever sees a mix of two cycles.
    """

    def __init__(
        self,
        registry: ServerRegistry,
        prober: StatusProber,
        dispatcher: NotificationSink,
        interval_seconds: float,
    ):
        """
        Initialize PollScheduler.

        Args:
            registry: Servers to probe
            prober: Status prober (never raises)
            dispatcher: Receives each cycle's notifications
            interval_seconds: Time between cycle ticks
        """
        self.registry = registry
        self.prober = prober
        self.dispatcher = dispatcher
        self.store = SnapshotStore()
        self.last_cycle_timestamp = 0
        self._task = PeriodicTask(
            "poll-cycle",
            interval_seconds,
            self.run_cycle,
            run_immediately=True,
        )

    @property
    def task(self) -> PeriodicTask:
        return self._task

    async def start(self) -> None:
        await self._task.start()

    async def stop(self) -> None:
        await self._task.stop()

    async def run_cycle(self) -> list[Notification]:
        """Run one probe -> diff -> dispatch cycle.

        Returns:
            Notifications produced by the cycle (empty on cold start)
        """
        started = time.perf_counter()
        statuses = await probe_all(self.registry, self.prober)

        previous = self.store.current
        cold_start = self.store.is_empty
        result = diff_snapshots(previous.statuses, previous.players, statuses)
        snapshot = self.store.replace(statuses, result.players)
        self.last_cycle_timestamp = int(time.time())

        online = sum(1 for status in statuses.values() if status.online)
        logger.info(
            "poll_cycle_complete",
            cycle=snapshot.cycle,
            cold_start=cold_start,
            servers=len(statuses),
            online=online,
            notifications=len(result.notifications),
            duration_ms=round((time.perf_counter() - started) * 1000, 1),
        )

        if result.notifications:
            await self.dispatcher.dispatch(result.notifications)
        return result.notifications
