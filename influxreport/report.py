"""
InfluxDB report.

A report walks one metrics snapshot, converts every metric into records,
formats their names and keys, and writes them through the configured
writer. The writer is flushed once, after the whole snapshot (and the
health status, if any) has been written.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from types import TracebackType
from typing import Any

from .adapters.converter import InfluxConverter
from .adapters.formatter import InfluxFormatter
from .adapters.http import HttpTransport
from .adapters.json_http import JsonHttpTransport
from .adapters.udp import UdpTransport
from .adapters.writer import ErrorHandler, InfluxTransport, InfluxWriter
from .config.influx import InfluxConfig
from .config.settings import Settings
from .core.errors import ConfigurationError
from .core.logging import get_logger
from .models import Record
from .precision import Precision
from .snapshots import (
    CounterValue,
    HealthStatus,
    HistogramValue,
    MeterValue,
    MetricsData,
    MetricTags,
    MetricValueSource,
    TimerValue,
)


logger = get_logger(__name__)


class InfluxReport:
    """Reports metric snapshots to InfluxDB.

    The config must carry a converter, a formatter and a writer. Use
    ``InfluxReport.http``, ``InfluxReport.udp`` or ``InfluxReport.json`` to
    have the missing ones filled in with defaults for a transport.
    """

    def __init__(self, config: InfluxConfig) -> None:
        if config is None:
            raise ConfigurationError("InfluxDB configuration cannot be None")
        for name in ("converter", "formatter", "writer"):
            if getattr(config, name) is None:
                raise ConfigurationError(
                    f"InfluxDB configuration invalid: {name} cannot be None"
                )

        self.config = config
        self.converter: InfluxConverter = config.converter  # type: ignore[assignment]
        self.formatter: InfluxFormatter = config.formatter  # type: ignore[assignment]
        self.writer: InfluxWriter = config.writer  # type: ignore[assignment]

        logger.debug(
            "influx_report_initialized",
            transport=self.writer.transport.describe(),
            batch_size=self.writer.batch_size,
        )

    # Factories

    @classmethod
    def _with_defaults(
        cls,
        config: InfluxConfig,
        transport_factory: Any,
        error_handler: ErrorHandler | None,
        **updates: Any,
    ) -> InfluxReport:
        config = config.model_copy(update=updates)
        if config.converter is None:
            config.converter = InfluxConverter()
        if config.formatter is None:
            config.formatter = InfluxFormatter.default()
        if config.writer is None:
            transport: InfluxTransport = transport_factory(config)
            config.writer = InfluxWriter(transport, config.batch_size, error_handler)
        return cls(config)

    @classmethod
    def http(
        cls,
        config: InfluxConfig,
        scheme: str = "http",
        error_handler: ErrorHandler | None = None,
    ) -> InfluxReport:
        """Create a report that writes line protocol over HTTP(S)."""
        return cls._with_defaults(
            config, lambda c: HttpTransport(c, scheme), error_handler
        )

    @classmethod
    def udp(cls, config: InfluxConfig, error_handler: ErrorHandler | None = None) -> InfluxReport:
        """Create a report that writes line protocol over UDP."""
        return cls._with_defaults(config, UdpTransport, error_handler)

    @classmethod
    def json(cls, config: InfluxConfig, error_handler: ErrorHandler | None = None) -> InfluxReport:
        """Create a report for the legacy JSON series API.

        Precision is forced to seconds, and the default formatter leaves names
        and keys exactly as the metrics define them.
        """
        formatter = config.formatter or InfluxFormatter(
            lowercase_names=False, replace_space_char=None
        )
        return cls._with_defaults(
            config,
            JsonHttpTransport,
            error_handler,
            precision=Precision.SECONDS,
            formatter=formatter,
        )

    @classmethod
    def from_settings(
        cls, settings: Settings, error_handler: ErrorHandler | None = None
    ) -> InfluxReport:
        """Create a report for the transport and tags named in the settings."""
        config = settings.influxdb
        if config.converter is None:
            config = config.model_copy(
                update={"converter": InfluxConverter(settings.global_tags)}
            )
        if settings.transport == "udp":
            return cls.udp(config, error_handler)
        if settings.transport == "json":
            return cls.json(config, error_handler)
        return cls.http(config, settings.transport, error_handler)

    # Report flow

    def run_report(
        self, data: MetricsData, health_status: HealthStatus | None = None
    ) -> None:
        """Write one snapshot, and optionally its health status, then flush."""
        self.converter.timestamp = data.timestamp
        self._report_context(data, [])
        if health_status is not None and health_status.has_registered_checks:
            self.report_health(health_status)
        self.writer.flush()
        logger.debug("influx_report_completed", context=data.context)

    def _report_context(self, data: MetricsData, context_stack: list[str]) -> None:
        self.converter.timestamp = data.timestamp
        context = self.format_context_name(context_stack, data.context)

        for gauge in data.gauges:
            name = self.format_metric_name(context, gauge)
            self.report_gauge(name, gauge.value, gauge.unit, gauge.tags)
        for counter in data.counters:
            name = self.format_metric_name(context, counter)
            self.report_counter(name, counter.value, counter.unit, counter.tags)
        for meter in data.meters:
            name = self.format_metric_name(context, meter)
            self.report_meter(name, meter.value, meter.unit, meter.tags)
        for histogram in data.histograms:
            name = self.format_metric_name(context, histogram)
            self.report_histogram(name, histogram.value, histogram.unit, histogram.tags)
        for timer in data.timers:
            name = self.format_metric_name(context, timer)
            self.report_timer(name, timer.value, timer.unit, timer.tags)

        child_stack = [*context_stack, data.context]
        for child in data.child_metrics:
            self._report_context(child, child_stack)

    def format_context_name(self, context_stack: Sequence[str], context_name: str) -> str:
        name = self.formatter.format_context_name(context_stack, context_name)
        if name is not None:
            return name
        names = [*context_stack, context_name]
        return " - ".join(n for n in names if n and n.strip())

    def format_metric_name(self, context: str, metric: MetricValueSource) -> str:
        name = self.formatter.format_metric_name(context, metric.name, metric.unit, metric.tags)
        if name is not None:
            return name
        return f"[{context}] {metric.name}"

    def report_gauge(self, name: str, value: float, unit: str, tags: MetricTags) -> None:
        self._write(self.converter.get_gauge_records(name, tags, unit, value))

    def report_counter(self, name: str, value: CounterValue, unit: str, tags: MetricTags) -> None:
        self._write(self.converter.get_counter_records(name, tags, unit, value))

    def report_meter(self, name: str, value: MeterValue, unit: str, tags: MetricTags) -> None:
        self._write(self.converter.get_meter_records(name, tags, unit, value))

    def report_histogram(
        self, name: str, value: HistogramValue, unit: str, tags: MetricTags
    ) -> None:
        self._write(self.converter.get_histogram_records(name, tags, unit, value))

    def report_timer(self, name: str, value: TimerValue, unit: str, tags: MetricTags) -> None:
        self._write(self.converter.get_timer_records(name, tags, unit, value))

    def report_health(self, status: HealthStatus) -> None:
        self._write(self.converter.get_health_records(status))

    def _write(self, records: Iterable[Record]) -> None:
        self.writer.write_records(self.formatter.format_record(r) for r in records)

    # Lifecycle

    def close(self) -> None:
        """Flush anything still buffered and close the writer."""
        self.writer.close()

    def __enter__(self) -> InfluxReport:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()
