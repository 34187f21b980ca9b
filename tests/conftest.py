"""Shared test fixtures and configuration for influxreport tests.

Fixtures build real components and replace only the network side: the
recording writer keeps every flushed batch instead of sending it.
"""

from collections.abc import Generator
from datetime import UTC, datetime
from typing import Any

import pytest
import structlog

from influxreport.adapters.writer import InfluxTransport, InfluxWriter
from influxreport.config.influx import InfluxConfig
from influxreport.line_protocol import batch_to_line
from influxreport.models import Batch
from influxreport.precision import Precision
from influxreport.report import InfluxReport
from influxreport.snapshots import HistogramValue, MeterValue


class RecordingTransport(InfluxTransport):
    """Transport double that keeps payloads and can be told to fail."""

    def __init__(
        self, precision: Precision | None = None, error: Exception | None = None
    ) -> None:
        self.precision = precision
        self.error = error
        self.payloads: list[bytes] = []
        self.closed = False

    def serialize(self, batch: Batch) -> bytes:
        return batch_to_line(batch, self.precision).encode("utf-8")

    def send(self, payload: bytes) -> bytes | None:
        if self.error is not None:
            raise self.error
        self.payloads.append(payload)
        return None

    def describe(self) -> str:
        return "recording://test"

    def close(self) -> None:
        self.closed = True


class RecordingWriter(InfluxWriter):
    """Writer double that snapshots each batch before it is cleared."""

    def __init__(self, transport: InfluxTransport | None = None, batch_size: int = 0, **kwargs: Any):
        super().__init__(transport or RecordingTransport(), batch_size, **kwargs)
        self.last_batch = Batch()
        self.flush_history: list[Batch] = []

    def _deliver(self, payload: bytes) -> bytes | None:
        self.last_batch = Batch(self.batch)
        self.flush_history.append(self.last_batch)
        return super()._deliver(payload)


@pytest.fixture
def fixed_timestamp() -> datetime:
    """A timestamp with whole seconds, so every precision divides evenly."""
    return datetime(2016, 6, 1, 12, 30, 15, tzinfo=UTC)


@pytest.fixture
def recording_writer() -> RecordingWriter:
    return RecordingWriter()


@pytest.fixture
def influx_config() -> InfluxConfig:
    return InfluxConfig(hostname="localhost", database="testdb")


@pytest.fixture
def report(
    influx_config: InfluxConfig, recording_writer: RecordingWriter
) -> Generator[InfluxReport, None, None]:
    """HTTP report with default collaborators and a recording writer."""
    influx_config.writer = recording_writer
    report = InfluxReport.http(influx_config)
    yield report
    report.close()


@pytest.fixture
def single_sample_histogram() -> HistogramValue:
    """Histogram after one update with the value 300."""
    return HistogramValue(
        count=1,
        last_value=300,
        min=300,
        mean=300,
        max=300,
        std_dev=0,
        median=300,
        sample_size=1,
        percentile_75=300,
        percentile_95=300,
        percentile_98=300,
        percentile_99=300,
        percentile_999=300,
    )


@pytest.fixture
def idle_meter() -> MeterValue:
    """Meter marked 300 times with no decay yet in the moving averages."""
    return MeterValue(
        count=300,
        mean_rate=12.5,
        one_minute_rate=0,
        five_minute_rate=0,
        fifteen_minute_rate=0,
    )


@pytest.fixture
def captured_logs() -> Generator[list[dict[str, Any]], None, None]:
    """Capture structlog events emitted during the test."""
    with structlog.testing.capture_logs() as logs:
        yield logs


def pytest_collection_modifyitems(
    config: pytest.Config, items: list[pytest.Item]
) -> None:
    """Modify test collection to add markers."""
    for item in items:
        if not any(marker.name == "integration" for marker in item.iter_markers()):
            item.add_marker(pytest.mark.unit)
