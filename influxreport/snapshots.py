"""
Metric snapshot models.

These are the read-only values handed to the reporter for one reporting
cycle: gauges, counters, meters, histograms and timers grouped into a tree
of named contexts, plus the results of the registered health checks.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


MetricTags = tuple[str, ...]
"""Tag strings attached to a metric, e.g. ``("key1=value1", "tag2")``."""


def parse_metric_tags(value: Any) -> MetricTags:
    """Normalize a comma-separated string or a sequence into ``MetricTags``."""
    if value is None:
        return ()
    if isinstance(value, str):
        value = value.split(",")
    return tuple(tag.strip() for tag in value if tag and tag.strip())


class SnapshotModel(BaseModel):
    """Base for snapshot values; snapshots are immutable once taken."""

    model_config = ConfigDict(frozen=True)


class CounterItem(SnapshotModel):
    """A labeled sub-bucket of a counter."""

    item: str
    count: int
    percent: float


class CounterValue(SnapshotModel):
    count: int
    items: tuple[CounterItem, ...] = ()


class MeterValue(SnapshotModel):
    """Rates are expressed per ``rate_unit``."""

    count: int
    mean_rate: float
    one_minute_rate: float
    five_minute_rate: float
    fifteen_minute_rate: float
    rate_unit: str = "s"
    items: tuple[MeterItem, ...] = ()


class MeterItem(SnapshotModel):
    """A labeled sub-bucket of a meter."""

    item: str
    value: MeterValue
    percent: float


class HistogramValue(SnapshotModel):
    count: int
    last_value: float
    min: float
    mean: float
    max: float
    std_dev: float
    median: float
    sample_size: int
    percentile_75: float
    percentile_95: float
    percentile_98: float
    percentile_99: float
    percentile_999: float
    last_user_value: str | None = None
    min_user_value: str | None = None
    max_user_value: str | None = None


class TimerValue(SnapshotModel):
    rate: MeterValue
    histogram: HistogramValue
    active_sessions: int
    total_time: int
    duration_unit: str = "ms"


class MetricValueSource(SnapshotModel):
    """Identity of one metric: name, unit and tags."""

    name: str
    unit: str = ""
    tags: MetricTags = ()

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags(cls, v: Any) -> MetricTags:
        return parse_metric_tags(v)


class GaugeValueSource(MetricValueSource):
    value: float


class CounterValueSource(MetricValueSource):
    value: CounterValue


class MeterValueSource(MetricValueSource):
    value: MeterValue


class HistogramValueSource(MetricValueSource):
    value: HistogramValue


class TimerValueSource(MetricValueSource):
    value: TimerValue


class MetricsData(SnapshotModel):
    """A snapshot of one metrics context and its child contexts."""

    context: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    gauges: tuple[GaugeValueSource, ...] = ()
    counters: tuple[CounterValueSource, ...] = ()
    meters: tuple[MeterValueSource, ...] = ()
    histograms: tuple[HistogramValueSource, ...] = ()
    timers: tuple[TimerValueSource, ...] = ()
    child_metrics: tuple[MetricsData, ...] = ()


class HealthCheckResult(SnapshotModel):
    name: str
    is_healthy: bool
    message: str


class HealthStatus(SnapshotModel):
    results: tuple[HealthCheckResult, ...] = ()

    @property
    def is_healthy(self) -> bool:
        return all(result.is_healthy for result in self.results)

    @property
    def has_registered_checks(self) -> bool:
        return bool(self.results)


MeterValue.model_rebuild()
MetricsData.model_rebuild()
