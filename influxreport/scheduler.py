"""
Scheduler for periodic InfluxDB reports.

Runs one report on a fixed interval in a background asyncio task. The
report itself is blocking (serialization and network I/O), so each run is
executed in a worker thread.

Key features:
- Async task scheduling with a configurable interval
- Graceful shutdown with a final flush of the writer
- Error handling with backoff
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from types import TracebackType
from typing import Any

from .config.settings import Settings
from .core.logging import get_logger
from .report import InfluxReport
from .snapshots import HealthStatus, MetricsData


logger = get_logger(__name__)

SnapshotProvider = Callable[[], MetricsData]
HealthProvider = Callable[[], HealthStatus]

MIN_INTERVAL = 0.01
MAX_BACKOFF = 60.0


class ReportScheduler:
    """
    Background scheduler for a periodic InfluxDB report.

    Every interval it takes a snapshot from the provider and runs the report
    with it. A failing run is logged and retried after a backoff; it never
    stops the scheduler.
    """

    def __init__(
        self,
        report: InfluxReport,
        snapshot_provider: SnapshotProvider,
        interval: float = 10.0,
        health_provider: HealthProvider | None = None,
    ):
        """
        Initialize the scheduler.

        Args:
            report: The report to run
            snapshot_provider: Returns the metrics snapshot for each run
            interval: Seconds between runs
            health_provider: Optionally returns the health status for each run
        """
        self.report = report
        self.snapshot_provider = snapshot_provider
        self.health_provider = health_provider
        self._interval = max(MIN_INTERVAL, interval)
        self._running = False
        self._task: asyncio.Task[Any] | None = None
        self._in_flight: asyncio.Future[None] | None = None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        snapshot_provider: SnapshotProvider,
        health_provider: HealthProvider | None = None,
    ) -> ReportScheduler:
        """Create a scheduler with a report built from the settings."""
        return cls(
            InfluxReport.from_settings(settings),
            snapshot_provider,
            interval=settings.report_interval,
            health_provider=health_provider,
        )

    @property
    def interval(self) -> float:
        return self._interval

    @property
    def is_running(self) -> bool:
        return self._running

    def set_interval(self, interval: float) -> None:
        """
        Set the interval between reports.

        Args:
            interval: Interval in seconds
        """
        self._interval = max(MIN_INTERVAL, interval)
        logger.info("report_interval_updated", interval=self._interval)

    async def start(self) -> None:
        """Start the background report task."""
        if self._running:
            return

        self._running = True
        logger.info("report_scheduler_start", interval=self._interval)
        self._task = asyncio.create_task(self._report_task())

    async def stop(self) -> None:
        """Stop the report task, then flush and close the report's writer."""
        if not self._running:
            return

        self._running = False
        logger.info("report_scheduler_stop")

        if self._task is not None:
            self._task.cancel()
            await asyncio.gather(self._task, return_exceptions=True)
            self._task = None

        # cancelling the loop does not stop a report already running in a
        # worker thread; it must finish before the writer is closed
        if self._in_flight is not None:
            await asyncio.gather(self._in_flight, return_exceptions=True)
            self._in_flight = None

        await asyncio.to_thread(self.report.close)

    async def run_once(self) -> None:
        """Take one snapshot and report it.

        The run is shielded so that cancelling the caller leaves it tracked
        until it completes; ``stop`` waits for it before closing the report.
        """
        run = asyncio.ensure_future(asyncio.to_thread(self._run_report))
        self._in_flight = run
        try:
            await asyncio.shield(run)
        finally:
            if run.done() and self._in_flight is run:
                self._in_flight = None

    def _run_report(self) -> None:
        data = self.snapshot_provider()
        health = self.health_provider() if self.health_provider else None
        self.report.run_report(data, health)

    async def _report_task(self) -> None:
        """Periodic task running the report."""
        while self._running:
            try:
                await self.run_once()

                # Wait for next interval
                await asyncio.sleep(self._interval)

            except asyncio.CancelledError:
                logger.info("report_task_cancelled")
                break
            except Exception as e:
                logger.error(
                    "report_task_error",
                    error=str(e),
                    error_type=type(e).__name__,
                    exc_info=e,
                )
                # Backoff on error
                backoff_time = min(self._interval * 2, MAX_BACKOFF)
                await asyncio.sleep(backoff_time)

    async def __aenter__(self) -> ReportScheduler:
        await self.start()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.stop()
