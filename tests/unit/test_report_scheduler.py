"""Tests for the periodic report scheduler."""

import asyncio
import threading
import time
from datetime import datetime
from typing import Any

import pytest

from influxreport.config.influx import InfluxConfig
from influxreport.config.settings import Settings
from influxreport.report import InfluxReport
from influxreport.scheduler import MIN_INTERVAL, ReportScheduler
from influxreport.snapshots import (
    GaugeValueSource,
    HealthCheckResult,
    HealthStatus,
    MetricsData,
)

from conftest import RecordingTransport, RecordingWriter


async def wait_for(condition: Any, timeout: float = 2.0) -> None:
    """Poll until the condition holds or the timeout expires."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not condition():
        if loop.time() > deadline:
            raise AssertionError("condition not met before timeout")
        await asyncio.sleep(0.01)


@pytest.fixture
def snapshot_provider(fixed_timestamp: datetime) -> Any:
    def provide() -> MetricsData:
        return MetricsData(
            context="app",
            timestamp=fixed_timestamp,
            gauges=(GaugeValueSource(name="queue", value=3),),
        )

    return provide


class TestReportScheduler:
    """Test the scheduler lifecycle and error handling."""

    async def test_run_once(
        self,
        report: InfluxReport,
        recording_writer: RecordingWriter,
        snapshot_provider: Any,
    ) -> None:
        scheduler = ReportScheduler(report, snapshot_provider)

        await scheduler.run_once()

        assert [str(r) for r in recording_writer.last_batch] == [
            "app.queue value=3 1464784215"
        ]
        assert not scheduler.is_running

    async def test_run_once_includes_health(
        self,
        report: InfluxReport,
        recording_writer: RecordingWriter,
        snapshot_provider: Any,
    ) -> None:
        status = HealthStatus(
            results=(HealthCheckResult(name="db", is_healthy=True, message="ok"),)
        )
        scheduler = ReportScheduler(report, snapshot_provider, health_provider=lambda: status)

        await scheduler.run_once()

        names = [r.name for r in recording_writer.last_batch]
        assert names == ["app.queue", "health_checks"]

    async def test_start_and_stop(
        self, influx_config: InfluxConfig, snapshot_provider: Any
    ) -> None:
        transport = RecordingTransport()
        influx_config.writer = RecordingWriter(transport)
        scheduler = ReportScheduler(
            InfluxReport.http(influx_config), snapshot_provider, interval=0.01
        )

        await scheduler.start()
        assert scheduler.is_running
        await wait_for(lambda: len(transport.payloads) >= 2)
        await scheduler.stop()

        assert not scheduler.is_running
        assert transport.closed is True

    async def test_stop_waits_for_report_in_flight(
        self, influx_config: InfluxConfig, fixed_timestamp: datetime
    ) -> None:
        events: list[str] = []
        started = threading.Event()

        class OrderedTransport(RecordingTransport):
            def send(self, payload: bytes) -> bytes | None:
                events.append("sent")
                return super().send(payload)

            def close(self) -> None:
                events.append("closed")
                super().close()

        def slow_provider() -> MetricsData:
            started.set()
            time.sleep(0.3)
            events.append("snapshot_taken")
            return MetricsData(
                context="ctx",
                timestamp=fixed_timestamp,
                gauges=(GaugeValueSource(name="g", value=1),),
            )

        transport = OrderedTransport()
        influx_config.writer = RecordingWriter(transport)
        scheduler = ReportScheduler(InfluxReport.http(influx_config), slow_provider, interval=60)

        await scheduler.start()
        await wait_for(started.is_set)
        await scheduler.stop()
        events.append("stopped")

        assert events == ["snapshot_taken", "sent", "closed", "stopped"]
        assert transport.payloads == [b"ctx.g value=1 1464784215"]

    async def test_start_twice_is_noop(
        self, report: InfluxReport, snapshot_provider: Any
    ) -> None:
        scheduler = ReportScheduler(report, snapshot_provider, interval=60)

        await scheduler.start()
        task = scheduler._task
        await scheduler.start()

        assert scheduler._task is task
        await scheduler.stop()

    async def test_stop_when_not_running(
        self, report: InfluxReport, snapshot_provider: Any
    ) -> None:
        scheduler = ReportScheduler(report, snapshot_provider)

        await scheduler.stop()

        assert not scheduler.is_running

    async def test_error_does_not_stop_scheduler(
        self,
        report: InfluxReport,
        recording_writer: RecordingWriter,
        snapshot_provider: Any,
        captured_logs: list[dict[str, Any]],
    ) -> None:
        calls = []

        def flaky() -> MetricsData:
            calls.append(1)
            if len(calls) == 1:
                raise RuntimeError("snapshot failed")
            return snapshot_provider()

        async with ReportScheduler(report, flaky, interval=0.01) as scheduler:
            await wait_for(lambda: len(recording_writer.flush_history) >= 1)
            assert scheduler.is_running

        errors = [e for e in captured_logs if e["event"] == "report_task_error"]
        assert errors[0]["error"] == "snapshot failed"
        assert errors[0]["error_type"] == "RuntimeError"

    def test_interval_is_clamped(self, report: InfluxReport, snapshot_provider: Any) -> None:
        scheduler = ReportScheduler(report, snapshot_provider, interval=0)
        assert scheduler.interval == MIN_INTERVAL

        scheduler.set_interval(5)
        assert scheduler.interval == 5

    def test_from_settings(self, snapshot_provider: Any) -> None:
        settings = Settings(
            influxdb=InfluxConfig(hostname="localhost", database="testdb"),
            report_interval=30,
        )

        scheduler = ReportScheduler.from_settings(settings, snapshot_provider)

        assert scheduler.interval == 30
        assert scheduler.report.writer.transport.describe().startswith("http://localhost:8086/")
        scheduler.report.close()
